"""Source definitions and runtime settings.

Settings come from environment variables prefixed with ``ELPA_CATALOG_``
(``ELPA_CATALOG_CACHE_DIR=/tmp/cache``), falling back to the defaults below.
Sources default to :data:`DEFAULT_SOURCES` and can be replaced by a JSON file
holding a list of source objects (see :func:`load_sources`).
"""

import json
from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from elpa_catalog.models import ARCHIVES, BUILTIN_ARCHIVE

DEFAULT_CACHE_DIR = Path("cache")
DEFAULT_EPKGS_DB = DEFAULT_CACHE_DIR / "epkgs.sqlite"


class _Source(BaseModel):
    archive: str = Field(description="Archive tag stamped on every record of this source")

    @field_validator("archive")
    @classmethod
    def _known_archive(cls, value: str) -> str:
        if value not in ARCHIVES:
            raise ValueError(f"unknown archive {value!r}, expected one of {ARCHIVES}")
        return value


class MelpaSourceConfig(_Source):
    """A MELPA-style archive serving archive.json, recipes.json and download_counts.json."""

    kind: Literal["melpa"] = "melpa"
    base_url: str = Field(description="Archive root, e.g. https://melpa.org")

    def _url(self, filename: str) -> str:
        return f"{self.base_url.rstrip('/')}/{filename}"

    @property
    def archive_url(self) -> str:
        return self._url("archive.json")

    @property
    def recipes_url(self) -> str:
        return self._url("recipes.json")

    @property
    def downloads_url(self) -> str:
        return self._url("download_counts.json")

    @property
    def cache_names(self) -> tuple[str, str, str]:
        return (
            f"{self.archive}-archive.json",
            f"{self.archive}-recipes.json",
            f"{self.archive}-download-counts.json",
        )


class ElpaSourceConfig(_Source):
    """An ELPA-style archive whose archive-contents goes through the converter."""

    kind: Literal["elpa"] = "elpa"
    url: str = Field(description="Archive root holding archive-contents")

    @property
    def cache_name(self) -> str:
        return f"{self.archive}.json"


class BuiltinSourceConfig(_Source):
    """The epkgs database of packages bundled with Emacs."""

    kind: Literal["builtin"] = "builtin"
    archive: Literal["builtin"] = BUILTIN_ARCHIVE
    db_path: Path = Field(default=DEFAULT_EPKGS_DB, description="epkgs SQLite file")


SourceConfig = Annotated[
    Union[MelpaSourceConfig, ElpaSourceConfig, BuiltinSourceConfig],
    Field(discriminator="kind"),
]

_source_list = TypeAdapter(list[SourceConfig])

DEFAULT_SOURCES: list[SourceConfig] = [
    ElpaSourceConfig(archive="gnu", url="https://elpa.gnu.org/packages/"),
    ElpaSourceConfig(archive="nongnu", url="https://elpa.nongnu.org/nongnu/"),
    ElpaSourceConfig(archive="jcs-elpa", url="https://jcs-emacs.github.io/jcs-elpa/packages/"),
    MelpaSourceConfig(archive="melpa", base_url="https://melpa.org"),
    MelpaSourceConfig(archive="melpa-stable", base_url="https://stable.melpa.org"),
    BuiltinSourceConfig(),
]


def parse_sources(data: object) -> list[SourceConfig]:
    """Validate a list of source objects.

    Raises:
        ValueError: if two sources share an archive tag.
        pydantic.ValidationError: if a source is malformed.
    """
    sources = _source_list.validate_python(data)
    seen = set()
    for source in sources:
        if source.archive in seen:
            raise ValueError(f"archive {source.archive!r} is configured more than once")
        seen.add(source.archive)
    return sources


def load_sources(path: Path) -> list[SourceConfig]:
    """Read source definitions from a JSON file."""
    with open(path, encoding="utf-8") as f:
        return parse_sources(json.load(f))


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="ELPA_CATALOG_")

    cache_dir: Path = DEFAULT_CACHE_DIR
    output_path: Path = Path("combined.json")
    epkgs_db: Path = DEFAULT_EPKGS_DB
    # Command converting an archive-contents URL (appended) to JSON on stdout
    converter_command: list[str] = ["sh", "./elpa-to-json", "-"]
    request_timeout: float = 60
    converter_timeout: float = 600
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
