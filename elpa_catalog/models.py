"""Unified data models for the package catalog."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from elpa_catalog.validation import Dependencies, VersionList

# Archive tags a record may carry
ARCHIVES = ("gnu", "nongnu", "jcs-elpa", "melpa", "melpa-stable", "builtin")

BUILTIN_ARCHIVE = "builtin"


class Package(BaseModel):
    """One package as published by one archive."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(min_length=1, description="Package name, unique within an archive")
    archive: str = Field(description="Archive the record comes from (e.g., 'gnu', 'melpa')")
    version: VersionList = Field(description="Version list; empty for built-ins")
    dependencies: Dependencies = Field(
        default_factory=dict,
        description="Dependency name to minimum version list ([] means any)",
    )
    summary: str = Field(description="One-line description")

    # Popularity (MELPA only)
    download_count: Optional[int] = Field(
        default=None, ge=0, alias="downloadCount", description="MELPA download count"
    )

    # People and metadata
    maintainers: Optional[list[str]] = Field(
        default=None, description='"Name" or "Name <email>" strings'
    )
    authors: Optional[list[str]] = Field(
        default=None, description='"Name" or "Name <email>" strings'
    )
    keywords: Optional[list[str]] = Field(default=None, description="Free-text tags")
    commit_hash: Optional[str] = Field(
        default=None, alias="commitHash", description="Commit the package was built from"
    )
    source_url: Optional[str] = Field(
        default=None, alias="sourceUrl", description="Upstream repository or homepage URL"
    )

    @field_validator("archive")
    @classmethod
    def _known_archive(cls, value: str) -> str:
        if value not in ARCHIVES:
            raise ValueError(f"unknown archive {value!r}")
        return value


class Catalog(BaseModel):
    """Snapshot of every package from every source, as of `collected_at`."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    collected_at: datetime = Field(alias="collectedDate", description="When the run started")
    packages: tuple[Package, ...] = Field(default=(), description="All records, in source order")

    def to_json(self, indent: Optional[int] = 1) -> str:
        """Serialize with the snapshot field names, leaving out absent fields."""
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=indent)

    @classmethod
    def from_json(cls, text: str) -> "Catalog":
        return cls.model_validate_json(text)
