"""MELPA-style archive collector (melpa, melpa-stable)."""

from typing import Optional

from elpa_catalog.collectors.base import BaseCollector
from elpa_catalog.models import Package
from elpa_catalog.schemas import (
    melpa_archive_json,
    melpa_download_counts_json,
    melpa_recipes_json,
    recipe_url,
)
from elpa_catalog.validation import is_absolute_url


class MelpaCollector(BaseCollector):
    """Collect packages from a MELPA-style archive.

    MELPA publishes three files:

    - archive.json has most of what we need: version, dependencies, summary,
      and a props object with URL, commit, keywords and people.
    - recipes.json has the build recipes. The fetcher and repository give a
      cleaner source URL than the one packages declare themselves.
    - download_counts.json maps package names to download counts.
    """

    kind = "melpa"

    def collect(self) -> list[Package]:
        """Collect every package of the archive, joined with recipes and downloads."""
        archive_cache, recipes_cache, downloads_cache = self.config.cache_names

        raw_archive = self.fetcher.get_json(self.archive, self.config.archive_url, archive_cache)
        raw_recipes = self.fetcher.get_json(self.archive, self.config.recipes_url, recipes_cache)
        raw_downloads = self.fetcher.get_json(
            self.archive, self.config.downloads_url, downloads_cache
        )

        archive = self.validate(melpa_archive_json, raw_archive)
        recipes = self.validate(melpa_recipes_json, raw_recipes)
        downloads = self.validate(melpa_download_counts_json, raw_downloads)

        packages = []
        for name, entry in archive.items():
            props = entry.props
            fields = {
                "name": name,
                "archive": self.archive,
                "version": entry.ver,
                "dependencies": entry.deps,
                "summary": entry.desc,
                "download_count": downloads.get(name),
                "maintainers": props.maintainers if props.maintainers is not None else props.maintainer,
                "authors": props.authors,
                "keywords": props.keywords,
                "commit_hash": props.commit,
            }
            # revdesc is dropped

            fields["source_url"] = self._source_url(name, recipes.get(name), props.url)

            packages.append(self.validate(Package, fields, key=name))

        print(f"Collected {len(packages)} packages from {self.archive}")
        return packages

    def _source_url(self, name: str, recipe, declared_url: Optional[str]) -> Optional[str]:
        """Prefer the recipe's repository URL, else the URL the package declares."""
        if recipe is None:
            problem = "has no recipe"
        else:
            url = recipe_url(recipe)
            if is_absolute_url(url):
                return url
            problem = f"has a recipe URL that is not absolute ({url})"

        if declared_url is None:
            self.notice(f"{name} {problem} and no declared URL")
        else:
            self.notice(f"{name} {problem}, falling back to its declared URL {declared_url}")
        return declared_url
