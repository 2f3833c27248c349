"""Queries behind the package table: filtering, sorting, pagination.

Nothing here renders anything. The search term influencing the name order is
passed explicitly to the functions that need it.
"""

import math
from dataclasses import dataclass
from functools import cached_property, cmp_to_key
from pathlib import Path
from typing import Iterable, Optional, Sequence

from elpa_catalog.catalog import load_snapshot
from elpa_catalog.errors import SnapshotError
from elpa_catalog.indexes import CatalogIndexes, build_indexes
from elpa_catalog.models import Catalog, Package
from elpa_catalog.version_list import compare_version_lists

DEFAULT_PAGE_SIZE = 200

# Archives hidden unless asked for; they mostly duplicate another archive
HIDDEN_ARCHIVES = ("melpa-stable",)

SORT_COLUMNS = ("name", "summary", "version", "archive", "downloads")

ARCHIVE_PACKAGE_URLS = {
    "gnu": "https://elpa.gnu.org/packages/{name}.html",
    "nongnu": "https://elpa.nongnu.org/nongnu/{name}.html",
    "melpa": "https://melpa.org/#/{name}",
    "melpa-stable": "https://stable.melpa.org/#/{name}",
}


def archive_package_url(archive: str, name: str) -> Optional[str]:
    """Return the page of package `name` on `archive`, if the archive has one."""
    template = ARCHIVE_PACKAGE_URLS.get(archive)
    if template is None:
        return None
    return template.format(name=name)


def link_display(url: str) -> str:
    """Shorten a URL for display: ``https://x.com/a/`` becomes ``x.com/a``."""
    for scheme in ("https://", "http://"):
        if url.startswith(scheme):
            url = url[len(scheme):]
            break
    return url[:-1] if url.endswith("/") else url


def compare_names(a: str, b: str, filter_term: str = "") -> int:
    """Order names with an exact match of `filter_term` first, then prefix matches."""
    if a == b:
        return 0
    if filter_term == a:
        return -1
    if filter_term == b:
        return 1
    a_prefix = a.startswith(filter_term)
    b_prefix = b.startswith(filter_term)
    if a_prefix and not b_prefix:
        return -1
    if b_prefix and not a_prefix:
        return 1
    return -1 if a < b else 1


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def default_archive_selection(archives: Iterable[str]) -> dict[str, bool]:
    """Which archives are shown by default: all but :data:`HIDDEN_ARCHIVES`."""
    return {archive: archive not in HIDDEN_ARCHIVES for archive in archives}


def filter_packages(
    packages: Iterable[Package],
    term: str = "",
    archives: Optional[Iterable[str]] = None,
) -> list[Package]:
    """Keep packages whose name or summary contains `term` (case-insensitive).

    If `archives` is given, only packages from those archives are kept.
    """
    needle = term.lower()
    allowed = set(archives) if archives is not None else None
    return [
        package
        for package in packages
        if (allowed is None or package.archive in allowed)
        and (needle in package.name.lower() or needle in package.summary.lower())
    ]


def sort_packages(
    packages: Iterable[Package],
    column: str = "name",
    descending: bool = False,
    filter_term: str = "",
) -> list[Package]:
    """Sort packages by one of :data:`SORT_COLUMNS`.

    Packages without a download count always sort last.
    """
    if column == "name":
        key = cmp_to_key(lambda a, b: compare_names(a.name, b.name, filter_term))
    elif column == "summary":
        key = cmp_to_key(lambda a, b: _cmp(a.summary, b.summary))
    elif column == "version":
        key = cmp_to_key(lambda a, b: compare_version_lists(a.version, b.version))
    elif column == "archive":
        key = cmp_to_key(lambda a, b: _cmp(a.archive, b.archive))
    elif column == "downloads":
        packages = list(packages)
        counted = [p for p in packages if p.download_count is not None]
        missing = [p for p in packages if p.download_count is None]
        counted.sort(key=lambda p: p.download_count, reverse=descending)
        return counted + missing
    else:
        raise ValueError(f"cannot sort by {column!r}, expected one of {SORT_COLUMNS}")
    return sorted(packages, key=key, reverse=descending)


@dataclass
class Page:
    rows: list[Package]
    page_index: int
    page_count: int
    total: int

    @property
    def can_previous(self) -> bool:
        return self.page_index > 0

    @property
    def can_next(self) -> bool:
        return self.page_index < self.page_count - 1


def paginate(rows: Sequence[Package], page_index: int = 0, page_size: int = DEFAULT_PAGE_SIZE) -> Page:
    """Return one page of `rows`; out-of-range indexes are clamped."""
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    page_count = max(math.ceil(len(rows) / page_size), 1)
    page_index = min(max(page_index, 0), page_count - 1)
    start = page_index * page_size
    return Page(
        rows=list(rows[start:start + page_size]),
        page_index=page_index,
        page_count=page_count,
        total=len(rows),
    )


@dataclass
class CatalogView:
    """A loaded catalog, or an explicit empty state explaining why there is none."""

    catalog: Optional[Catalog] = None
    error: Optional[str] = None

    @classmethod
    def from_snapshot(cls, path: Path) -> "CatalogView":
        try:
            return cls(catalog=load_snapshot(path))
        except SnapshotError as e:
            return cls(error=str(e))

    @property
    def packages(self) -> Sequence[Package]:
        return self.catalog.packages if self.catalog is not None else ()

    @cached_property
    def indexes(self) -> CatalogIndexes:
        if self.catalog is None:
            return CatalogIndexes()
        return build_indexes(self.catalog)

    @property
    def archives(self) -> list[str]:
        return list(dict.fromkeys(package.archive for package in self.packages))

    def query(
        self,
        term: str = "",
        archives: Optional[Iterable[str]] = None,
        column: str = "name",
        descending: bool = False,
        page_index: int = 0,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Page:
        """Filter, sort and paginate the way the package table does."""
        if archives is None:
            selection = default_archive_selection(self.archives)
            archives = [archive for archive, shown in selection.items() if shown]
        rows = filter_packages(self.packages, term, archives)
        rows = sort_packages(rows, column, descending, filter_term=term)
        return paginate(rows, page_index, page_size)
