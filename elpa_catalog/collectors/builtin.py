"""Built-in package collector, reading the epkgs SQLite database.

epkgs stores most text columns as JSON string literals, so a package named
emacs is stored as ``'"emacs"'``. Keyword columns are plain text.
"""

import sqlite3

from elpa_catalog.collectors.base import BaseCollector
from elpa_catalog.errors import RetrievalError
from elpa_catalog.models import Package
from elpa_catalog.schemas import EpkgsBuiltinPackage

PACKAGES_QUERY = """
SELECT name, summary
FROM packages
WHERE class = 'builtin'
  AND name != '"emacs"'
"""

KEYWORDS_QUERY = "SELECT keyword FROM keywords WHERE package = ?"

AUTHORS_QUERY = "SELECT name, email FROM authors WHERE package = ?"

MAINTAINERS_QUERY = "SELECT name, email FROM maintainers WHERE package = ?"

# A dependency is any other package providing a feature this package requires
DEPENDENCIES_QUERY = """
SELECT package FROM provided
WHERE feature IN (
  SELECT feature FROM required
  WHERE package = ?
)
AND package != ?
"""


class BuiltinCollector(BaseCollector):
    """Collect packages bundled with Emacs from the epkgs database."""

    kind = "builtin"

    def collect(self) -> list[Package]:
        """Collect every built-in package.

        Built-ins carry no version in epkgs, so records get an empty version
        list, and dependencies get empty (any version) constraints.
        """
        db_path = self.config.db_path
        if not db_path.exists():
            raise RetrievalError(self.archive, str(db_path), "epkgs database not found")

        print(f"Reading built-in packages from {db_path}...")
        rows = self._query_rows()

        builtins = [
            self.validate(EpkgsBuiltinPackage, row, key=row["name"]) for row in rows
        ]

        packages = []
        for builtin in builtins:
            fields = {
                "name": builtin.name,
                "archive": self.archive,
                "version": [],
                "dependencies": {dep: [] for dep in builtin.dependencies},
                "summary": builtin.summary,
                "maintainers": [person.display() for person in builtin.maintainers],
                "authors": [person.display() for person in builtin.authors],
                "keywords": builtin.keywords,
            }
            packages.append(self.validate(Package, fields, key=builtin.name))

        print(f"Collected {len(packages)} built-in packages")
        return packages

    def _query_rows(self) -> list[dict]:
        """Read each built-in package row along with its related rows."""
        db_uri = f"{self.config.db_path.resolve().as_uri()}?mode=ro"
        try:
            conn = sqlite3.connect(db_uri, uri=True)
        except sqlite3.Error as e:
            raise RetrievalError(self.archive, str(self.config.db_path), str(e)) from e

        conn.row_factory = sqlite3.Row
        try:
            rows = []
            for package in conn.execute(PACKAGES_QUERY).fetchall():
                name = package["name"]
                rows.append(
                    {
                        "name": name,
                        "summary": package["summary"],
                        "keywords": [
                            row["keyword"] for row in conn.execute(KEYWORDS_QUERY, (name,))
                        ],
                        "authors": [dict(row) for row in conn.execute(AUTHORS_QUERY, (name,))],
                        "maintainers": [
                            dict(row) for row in conn.execute(MAINTAINERS_QUERY, (name,))
                        ],
                        "dependencies": [
                            row["package"] for row in conn.execute(DEPENDENCIES_QUERY, (name, name))
                        ],
                    }
                )
            return rows
        except sqlite3.Error as e:
            raise RetrievalError(self.archive, str(self.config.db_path), str(e)) from e
        finally:
            conn.close()
