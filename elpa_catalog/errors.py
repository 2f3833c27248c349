"""Exceptions raised while building or reading the catalog."""

from pathlib import Path
from typing import Any, Optional, Union

from pydantic import ValidationError

# Key used when a whole payload, rather than one of its records, is malformed
PAYLOAD_KEY = "<payload>"


class CatalogError(Exception):
    """Base class for errors that abort a collection run."""

    def __init__(self, source: Optional[str], message: str):
        self.source = source
        super().__init__(message)


class RetrievalError(CatalogError):
    """A source could not be fetched or converted."""

    def __init__(self, source: Optional[str], url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(source, f"{source}: failed to retrieve {url}: {reason}")


class RecordValidationError(CatalogError):
    """A record of a source does not match the shape expected for it."""

    def __init__(
        self,
        source: Optional[str],
        key: str,
        field: str,
        reason: str,
        value: Any = None,
    ):
        self.key = key
        self.field = field
        self.reason = reason
        self.value = value
        message = f"{source}: invalid record {key!r}, field {field!r}: {reason}"
        if value is not None:
            message += f" (got {repr(value)[:200]})"
        super().__init__(source, message)

    @classmethod
    def from_validation_error(
        cls,
        source: Optional[str],
        exc: ValidationError,
        key: Optional[str] = None,
    ) -> "RecordValidationError":
        """Build from the first error of a pydantic ValidationError.

        When `key` is not given, the first element of the error location is
        taken as the record key, which is what validating a whole
        ``{name: record}`` payload produces.
        """
        error = exc.errors()[0]
        loc = [str(part) for part in error.get("loc", ())]
        if key is None:
            key = loc.pop(0) if loc else PAYLOAD_KEY
        field = ".".join(loc) or "<record>"
        return cls(source, key, field, error.get("msg", str(exc)), error.get("input"))


class SnapshotError(CatalogError):
    """The catalog snapshot file is missing or malformed."""

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(None, f"cannot read catalog snapshot {path}: {reason}")
