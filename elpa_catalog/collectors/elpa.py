"""ELPA-style archive collector (gnu, nongnu, jcs-elpa).

ELPA archives publish ``archive-contents``, a Lisp data file. An external
converter turns it into JSON of the form::

    {"name": [version, deps-or-null, summary, kind, props?], ...}
"""

from elpa_catalog.collectors.base import BaseCollector
from elpa_catalog.models import Package
from elpa_catalog.schemas import elpa_converted_json


class ElpaCollector(BaseCollector):
    """Collect packages from an ELPA archive through the converter."""

    kind = "elpa"

    def collect(self) -> list[Package]:
        raw = self.fetcher.get_converted_json(
            self.archive, self.config.url, self.config.cache_name
        )
        entries = self.validate(elpa_converted_json, raw)

        packages = []
        for name, entry in entries.items():
            fields = {
                "name": name,
                "archive": self.archive,
                "version": entry.version,
                "dependencies": entry.dependencies,
                "summary": entry.summary,
            }
            props = entry.props
            if props is not None:
                # The input is singular, the record field is plural
                fields["maintainers"] = props.maintainer
                fields["authors"] = props.authors
                fields["keywords"] = props.keywords
                fields["commit_hash"] = props.commit
                fields["source_url"] = props.url

            packages.append(self.validate(Package, fields, key=name))

        print(f"Collected {len(packages)} packages from {self.archive}")
        return packages
