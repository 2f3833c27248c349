"""Unified catalog of Emacs packages from GNU ELPA, NonGNU ELPA, MELPA and friends."""

from elpa_catalog.catalog import build_catalog, load_snapshot, write_snapshot
from elpa_catalog.indexes import CatalogIndexes, build_indexes
from elpa_catalog.models import Catalog, Package

__version__ = "0.1.0"

__all__ = [
    "Catalog",
    "CatalogIndexes",
    "Package",
    "build_catalog",
    "build_indexes",
    "load_snapshot",
    "write_snapshot",
]
