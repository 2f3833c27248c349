#!/usr/bin/env python3
"""Collect Emacs packages from all configured archives into one catalog.

Usage:
    elpa-catalog collect                          # Collect every source
    elpa-catalog collect --sources gnu melpa      # Collect some sources
    elpa-catalog collect --skip builtin           # Skip a source
    elpa-catalog collect --list                   # List configured sources
    elpa-catalog search magit                     # Query the snapshot
    elpa-catalog show magit                       # One package, every archive
    elpa-catalog load-epkgs cache/epkg.sql        # Build the epkgs database
"""

import argparse
import sys
from datetime import datetime, timezone
from pathlib import Path

from loguru import logger
from pydantic import ValidationError
from tabulate import tabulate

from elpa_catalog.catalog import assemble_catalog, collect_sources, write_snapshot
from elpa_catalog.collectors import SourceFetcher
from elpa_catalog.config import DEFAULT_SOURCES, Settings, load_sources
from elpa_catalog.epkgs import load_sql_dump
from elpa_catalog.errors import CatalogError
from elpa_catalog.listing import SORT_COLUMNS, CatalogView, archive_package_url, link_display
from elpa_catalog.logging_setup import setup_logging
from elpa_catalog.version_list import format_version


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return number


def select_sources(sources, only=None, skip=()):
    """Return `sources` restricted to the archives in `only`, minus `skip`."""
    selected = [s for s in sources if not only or "all" in only or s.archive in only]
    return [s for s in selected if s.archive not in skip]


def resolve_sources(sources, settings: Settings):
    """Point built-in sources without an explicit database at the configured one."""
    resolved = []
    for source in sources:
        if source.kind == "builtin" and "db_path" not in source.model_fields_set:
            source = source.model_copy(update={"db_path": settings.epkgs_db})
        resolved.append(source)
    return resolved


def cmd_collect(args, settings: Settings) -> int:
    try:
        sources = load_sources(args.config) if args.config else DEFAULT_SOURCES
    except (OSError, ValueError, ValidationError) as e:
        print(f"Cannot load sources from {args.config}: {e}", file=sys.stderr)
        return 1

    if args.list:
        print("Configured sources:")
        for source in sources:
            print(f"  - {source.archive} ({source.kind})")
        return 0

    sources = resolve_sources(select_sources(sources, args.sources, args.skip), settings)
    if not sources:
        print("No sources selected to run")
        return 1

    fetcher = SourceFetcher(
        cache_dir=args.cache_dir or settings.cache_dir,
        converter_command=settings.converter_command,
        timeout=settings.request_timeout,
        converter_timeout=settings.converter_timeout,
    )
    collected_at = datetime.now(timezone.utc)
    print(f"Collecting from: {', '.join(s.archive for s in sources)}\n")

    try:
        results = collect_sources(sources, fetcher)
    except CatalogError as e:
        logger.error(f"Collection aborted, no snapshot written: {e}")
        return 1

    catalog = assemble_catalog(results, collected_at)
    try:
        output_path = write_snapshot(catalog, args.output or settings.output_path)
    except OSError as e:
        logger.error(f"Cannot write snapshot: {e}")
        return 1

    # Print summary
    print(f"\n{'=' * 60}")
    print("SUMMARY")
    print(f"{'=' * 60}")
    for result in results:
        print(f"  {result.archive}: {len(result.packages)} packages")
        for notice in result.notices:
            print(f"    - {notice}")

    print(f"\nTotal: {len(catalog.packages)} packages written to {output_path}")
    return 0


def _view(args, settings: Settings):
    view = CatalogView.from_snapshot(args.snapshot or settings.output_path)
    if view.error:
        print(view.error, file=sys.stderr)
    return view


def cmd_search(args, settings: Settings) -> int:
    view = _view(args, settings)
    if view.catalog is None:
        return 1

    page = view.query(
        term=args.term,
        archives=args.archive,
        column=args.sort,
        descending=args.desc,
        page_index=args.page - 1,
        page_size=args.page_size,
    )
    rows = [
        [
            package.archive,
            package.name,
            package.summary,
            format_version(package.version),
            package.download_count if package.download_count is not None else "-",
            link_display(package.source_url) if package.source_url else "-",
        ]
        for package in page.rows
    ]
    headers = ["archive", "name", "summary", "version", "downloads", "url"]
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    print(
        f"\n{page.total} matches, page {page.page_index + 1}/{page.page_count} "
        f"(collected {view.catalog.collected_at.isoformat()})"
    )
    return 0


def cmd_show(args, settings: Settings) -> int:
    view = _view(args, settings)
    if view.catalog is None:
        return 1

    entries = view.indexes.by_name.get(args.name)
    if not entries:
        print(f"No package named {args.name}", file=sys.stderr)
        return 1

    for package in entries:
        print(f"{package.name} ({package.archive}) {format_version(package.version)}")
        print(f"  {package.summary}")
        page_url = archive_package_url(package.archive, package.name)
        if page_url:
            print(f"  Archive page: {page_url}")
        if package.source_url:
            print(f"  Source: {package.source_url}")
        if package.keywords:
            print(f"  Keywords: {', '.join(package.keywords)}")
        if package.maintainers:
            print(f"  Maintainers: {', '.join(package.maintainers)}")
        if package.authors:
            print(f"  Authors: {', '.join(package.authors)}")
        if package.dependencies:
            deps = [
                f"{dep} {format_version(ver)}".rstrip()
                for dep, ver in package.dependencies.items()
            ]
            print(f"  Depends on: {', '.join(deps)}")
        print()

    dependents = view.indexes.reverse_dependencies(args.name)
    if dependents:
        print(f"Required by: {', '.join(dependents)}")
    return 0


def cmd_load_epkgs(args, settings: Settings) -> int:
    db_path = args.db or settings.epkgs_db
    try:
        count = load_sql_dump(args.sql_dump, db_path, overwrite=args.force)
    except FileExistsError as e:
        print(f"{e}; pass --force to replace it", file=sys.stderr)
        return 1
    print(f"Loaded {count} statements into {db_path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="elpa-catalog",
        description="Collect Emacs package metadata from several archives",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__.split("Usage:", 1)[1],
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Diagnostic verbosity (default: ELPA_CATALOG_LOG_LEVEL or INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    collect = subparsers.add_parser("collect", help="Build the catalog snapshot")
    collect.add_argument(
        "--sources",
        nargs="+",
        default=["all"],
        help="Archives to collect from (default: all)",
    )
    collect.add_argument("--skip", nargs="+", default=[], help="Archives to skip")
    collect.add_argument("--config", type=Path, help="JSON file listing the sources")
    collect.add_argument("--output", type=Path, help="Snapshot path")
    collect.add_argument("--cache-dir", type=Path, help="Directory of cached payloads")
    collect.add_argument(
        "--list", action="store_true", help="List configured sources and exit"
    )
    collect.set_defaults(func=cmd_collect)

    search = subparsers.add_parser("search", help="Search the catalog snapshot")
    search.add_argument("term", nargs="?", default="", help="Text to look for in names and summaries")
    search.add_argument("--snapshot", type=Path, help="Snapshot path")
    search.add_argument(
        "--archive",
        nargs="+",
        default=None,
        help="Archives to include (default: all but melpa-stable)",
    )
    search.add_argument("--sort", choices=SORT_COLUMNS, default="name")
    search.add_argument("--desc", action="store_true", help="Sort in descending order")
    search.add_argument("--page", type=_positive_int, default=1)
    search.add_argument("--page-size", type=_positive_int, default=50)
    search.set_defaults(func=cmd_search)

    show = subparsers.add_parser("show", help="Show one package")
    show.add_argument("name")
    show.add_argument("--snapshot", type=Path, help="Snapshot path")
    show.set_defaults(func=cmd_show)

    load_epkgs = subparsers.add_parser("load-epkgs", help="Build the epkgs database from its SQL dump")
    load_epkgs.add_argument("sql_dump", type=Path)
    load_epkgs.add_argument("--db", type=Path, help="Database path")
    load_epkgs.add_argument("--force", action="store_true", help="Replace an existing database")
    load_epkgs.set_defaults(func=cmd_load_epkgs)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings()
    setup_logging(args.log_level or settings.log_level)
    return args.func(args, settings)


if __name__ == "__main__":
    sys.exit(main())
