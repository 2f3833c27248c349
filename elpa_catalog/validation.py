"""Normalization rules applied to raw archive metadata.

Upstream archives are not consistent with each other, and sometimes not with
themselves. The functions here turn the known variations into one shape:

- URLs go through an ordered list of rewrites, each a no-op unless its
  precondition holds, followed by a single strict absolute-URL check.
- Author and maintainer lists may be given as lists of display strings or as
  ``{name: email}`` maps; both become lists of strings.
- A null dependency map becomes an empty one.
- The epkgs database stores some text columns as JSON string literals.

The ``Annotated`` types at the bottom plug these into pydantic models.
"""

import json
from typing import Annotated, Any, Callable, Optional

from loguru import logger
from pydantic import (
    AfterValidator,
    AnyUrl,
    BeforeValidator,
    StrictInt,
    TypeAdapter,
    ValidationError,
)

# Literal values some packages use instead of a URL; kept as-is
URL_SENTINELS = ("not distributed yet", "none yet")

_absolute_url = TypeAdapter(AnyUrl)


def strip_colon_prefix(url: str) -> str:
    """Drop a leading ``": "`` (package "nikola" declares its URL that way)."""
    if not url.startswith(": "):
        return url
    logger.info(f'"{url}" starts with a colon. Automatically fixing...')
    return url[2:]


def fix_https_typo(url: str) -> str:
    """Rewrite the ``htts://`` misspelling to ``https://``."""
    if not url.startswith("htts://"):
        return url
    logger.info(f"{url} misspelled https. Automatically fixing...")
    return "https://" + url[len("htts://"):]


def add_missing_protocol(url: str) -> str:
    """Prefix bare ``host/path`` URLs with ``https://``."""
    if url.startswith("http"):
        return url
    logger.info(f"{url} is missing the protocol. Automatically fixing...")
    return "https://" + url


URL_REPAIRS: tuple[Callable[[str], str], ...] = (
    strip_colon_prefix,
    fix_https_typo,
    add_missing_protocol,
)


def is_absolute_url(url: str) -> bool:
    try:
        _absolute_url.validate_python(url)
    except ValidationError:
        return False
    return True


def repair_url(raw: str) -> str:
    """Run `raw` through :data:`URL_REPAIRS` and check the result.

    Returns the repaired string itself (not a normalized form of it).

    Raises:
        ValueError: if the repaired URL is still not an absolute URL.
    """
    if raw in URL_SENTINELS:
        return raw
    url = raw
    for repair in URL_REPAIRS:
        url = repair(url)
    if not is_absolute_url(url):
        raise ValueError(f"{raw!r} is not a valid URL, even after repairs")
    return url


def normalize_people(value: Any) -> Any:
    """Turn a ``{name: email}`` map into ``["Name <email>", "Name", ...]``.

    Lists are passed through for the field type to check.
    """
    if not isinstance(value, dict):
        return value
    people = []
    for name, email in value.items():
        if email is not None and not isinstance(email, str):
            raise ValueError(f"email of {name!r} must be a string or null")
        people.append(f"{name} <{email}>" if email else name)
    return people


def normalize_dependencies(value: Any) -> Any:
    if value is None:
        return {}
    return value


def decode_json_string(value: Any) -> str:
    """Decode a text column that holds a JSON string literal.

    Tab characters are stripped first; the dump contains raw tabs inside
    some literals, which JSON does not allow.
    """
    if not isinstance(value, str):
        raise ValueError("expected a JSON-encoded string")
    try:
        decoded = json.loads(value.replace("\t", ""))
    except json.JSONDecodeError as e:
        raise ValueError(f"undecodable JSON string {value!r}: {e.msg}") from e
    if not isinstance(decoded, str):
        raise ValueError(f"{value!r} does not encode a string")
    return decoded


VersionList = list[StrictInt]
SourceUrl = Annotated[str, AfterValidator(repair_url)]
People = Annotated[list[str], BeforeValidator(normalize_people)]
Dependencies = Annotated[
    dict[str, VersionList], BeforeValidator(normalize_dependencies)
]
JsonString = Annotated[str, BeforeValidator(decode_json_string)]
OptionalJsonString = Optional[JsonString]
