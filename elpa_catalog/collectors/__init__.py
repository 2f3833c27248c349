"""Package collectors for each archive family."""

from typing import Optional

from elpa_catalog.collectors.base import BaseCollector, SourceFetcher, get_session
from elpa_catalog.collectors.builtin import BuiltinCollector
from elpa_catalog.collectors.elpa import ElpaCollector
from elpa_catalog.collectors.melpa import MelpaCollector

COLLECTORS: dict[str, type[BaseCollector]] = {
    "melpa": MelpaCollector,
    "elpa": ElpaCollector,
    "builtin": BuiltinCollector,
}


def collector_for(config, fetcher: Optional[SourceFetcher] = None) -> BaseCollector:
    """Return the collector handling `config`, dispatching on its kind."""
    try:
        collector_class = COLLECTORS[config.kind]
    except KeyError:
        raise ValueError(f"no collector for source kind {config.kind!r}") from None
    return collector_class(config, fetcher)


__all__ = [
    "BaseCollector",
    "BuiltinCollector",
    "COLLECTORS",
    "ElpaCollector",
    "MelpaCollector",
    "SourceFetcher",
    "collector_for",
    "get_session",
]
