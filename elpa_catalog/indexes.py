"""Lookup structures derived from a catalog."""

from dataclasses import dataclass, field

from elpa_catalog.models import Catalog, Package


@dataclass
class CatalogIndexes:
    """In-memory indexes over a catalog's records.

    The lists hold the catalog's own Package objects, never copies. Rebuilt
    from scratch whenever a catalog is loaded.
    """

    # package name → records, one per archive publishing it, in catalog order
    by_name: dict[str, list[Package]] = field(default_factory=dict)

    # keyword → every record declaring it
    by_keyword: dict[str, list[Package]] = field(default_factory=dict)

    # (package, dependency) pairs, one per dependency of each record
    dependency_edges: list[tuple[str, str]] = field(default_factory=list)

    def keyword_package_names(self) -> dict[str, list[str]]:
        """Map each keyword to package names, merging the same name across archives."""
        return {
            keyword: list(dict.fromkeys(package.name for package in packages))
            for keyword, packages in self.by_keyword.items()
        }

    def reverse_dependencies(self, name: str) -> list[str]:
        """Names of the packages that depend on `name`."""
        return list(dict.fromkeys(pkg for pkg, dep in self.dependency_edges if dep == name))


def build_indexes(catalog: Catalog) -> CatalogIndexes:
    """Build every index in a single pass over the catalog."""
    indexes = CatalogIndexes()
    for package in catalog.packages:
        indexes.by_name.setdefault(package.name, []).append(package)
        # A package can have more than one keyword
        for keyword in package.keywords or ():
            indexes.by_keyword.setdefault(keyword, []).append(package)
        for dependency in package.dependencies:
            indexes.dependency_edges.append((package.name, dependency))
    return indexes
