"""Build the catalog from all sources, and read and write its snapshot."""

import os
import tempfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence

from pydantic import ValidationError

from elpa_catalog.collectors import SourceFetcher, collector_for
from elpa_catalog.errors import SnapshotError
from elpa_catalog.models import Catalog, Package


@dataclass
class SourceResult:
    """Records and diagnostics produced by one source."""

    archive: str
    packages: list[Package]
    notices: list[str] = field(default_factory=list)


def collect_sources(
    sources: Sequence,
    fetcher: Optional[SourceFetcher] = None,
    max_workers: Optional[int] = None,
) -> list[SourceResult]:
    """Run the collector of every source and return results in source order.

    Sources are collected in parallel since they share no state. If any of
    them fails, the first failure in source order is raised once the
    collectors already running have finished, and nothing is returned.
    """
    if not sources:
        return []

    fetcher = fetcher or SourceFetcher()
    collectors = [collector_for(source, fetcher) for source in sources]

    with ThreadPoolExecutor(max_workers=max_workers or len(collectors)) as executor:
        futures = [executor.submit(collector.collect) for collector in collectors]
        try:
            return [
                SourceResult(collector.archive, future.result(), collector.notices)
                for collector, future in zip(collectors, futures)
            ]
        except BaseException:
            for future in futures:
                future.cancel()
            raise


def assemble_catalog(results: Sequence[SourceResult], collected_at: datetime) -> Catalog:
    packages = [package for result in results for package in result.packages]
    return Catalog(collected_at=collected_at, packages=tuple(packages))


def build_catalog(
    sources: Sequence,
    fetcher: Optional[SourceFetcher] = None,
    collected_at: Optional[datetime] = None,
    max_workers: Optional[int] = None,
) -> Catalog:
    """Collect every source and return the combined catalog.

    Args:
        sources: Source configurations, in the order records should appear.
        fetcher: Retrieval helper shared by the collectors.
        collected_at: Timestamp to stamp; defaults to the start of the run.
        max_workers: Thread pool size; defaults to one thread per source.

    Raises:
        CatalogError: if any source fails. No catalog is produced.
    """
    collected_at = collected_at or datetime.now(timezone.utc)
    results = collect_sources(sources, fetcher, max_workers=max_workers)
    return assemble_catalog(results, collected_at)


def write_snapshot(catalog: Catalog, path: Path) -> Path:
    """Write the catalog as JSON, replacing any previous snapshot atomically."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(catalog.to_json())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return path


def load_snapshot(path: Path) -> Catalog:
    """Read a snapshot written by :func:`write_snapshot`.

    Raises:
        SnapshotError: if the file is missing, unreadable, or malformed.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SnapshotError(path, str(e)) from e
    try:
        return Catalog.from_json(text)
    except ValidationError as e:
        raise SnapshotError(path, f"{e.error_count()} validation error(s): {e.errors()[0]['msg']}") from e
