"""Base collector class and retrieval utilities."""

import json
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional, Sequence

import requests
from loguru import logger
from pydantic import ValidationError
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from elpa_catalog.errors import RecordValidationError, RetrievalError
from elpa_catalog.models import Package

DEFAULT_CONVERTER_COMMAND = ("sh", "./elpa-to-json", "-")

_MISSING = object()


def get_session(retries: int = 3) -> requests.Session:
    """Create a requests session with retry logic."""
    session = requests.Session()
    retry = Retry(
        total=retries,
        backoff_factor=0.5,
        status_forcelist=[429, 500, 502, 503, 504],
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


class SourceFetcher:
    """Retrieve raw source payloads, reusing cached copies when present.

    Each payload is cached under ``cache_dir/<cache_name>``. A readable cache
    file is used as-is and skips retrieval; an unreadable one is ignored and
    the payload is fetched again. Without a `cache_dir` nothing is cached.
    """

    def __init__(
        self,
        cache_dir: Optional[Path] = None,
        session: Optional[requests.Session] = None,
        converter_command: Sequence[str] = DEFAULT_CONVERTER_COMMAND,
        timeout: float = 60,
        converter_timeout: float = 600,
    ):
        self.cache_dir = Path(cache_dir) if cache_dir is not None else None
        self.session = session or get_session()
        self.converter_command = list(converter_command)
        self.timeout = timeout
        self.converter_timeout = converter_timeout

    def get_json(self, source: str, url: str, cache_name: Optional[str] = None) -> Any:
        """Fetch `url` and parse it as JSON."""
        cached = self._read_cache(cache_name)
        if cached is not _MISSING:
            return cached

        print(f"Fetching {url}...")
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise RetrievalError(source, url, str(e)) from e

        text = response.text
        payload = self._parse(source, url, text)
        self._write_cache(cache_name, text)
        return payload

    def get_converted_json(
        self, source: str, url: str, cache_name: Optional[str] = None
    ) -> Any:
        """Run the archive-contents converter on `url` and parse its output.

        Only stdout carries the JSON; stderr is kept apart and logged.
        """
        cached = self._read_cache(cache_name)
        if cached is not _MISSING:
            return cached

        command = [*self.converter_command, url]
        print(f"Converting {url}...")
        try:
            result = subprocess.run(
                command,
                check=True,
                capture_output=True,
                text=True,
                timeout=self.converter_timeout,
            )
        except subprocess.CalledProcessError as e:
            raise RetrievalError(
                source,
                url,
                f"converter exited with status {e.returncode}: {(e.stderr or '').strip()[:200]}",
            ) from e
        except subprocess.TimeoutExpired as e:
            raise RetrievalError(source, url, "converter timed out") from e
        except OSError as e:
            raise RetrievalError(source, url, f"cannot run converter: {e}") from e

        if result.stderr:
            logger.debug(f"Converter output for {url}: {result.stderr.strip()}")

        payload = self._parse(source, url, result.stdout)
        self._write_cache(cache_name, result.stdout)
        return payload

    @staticmethod
    def _parse(source: str, url: str, text: str) -> Any:
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise RetrievalError(source, url, f"response is not JSON: {e}") from e

    def _cache_path(self, cache_name: Optional[str]) -> Optional[Path]:
        if self.cache_dir is None or not cache_name:
            return None
        return self.cache_dir / cache_name

    def _read_cache(self, cache_name: Optional[str]) -> Any:
        path = self._cache_path(cache_name)
        if path is None or not path.exists():
            return _MISSING
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            logger.warning(f"Ignoring unreadable cache file {path}: {e}")
            return _MISSING

    def _write_cache(self, cache_name: Optional[str], text: str) -> None:
        path = self._cache_path(cache_name)
        if path is None:
            return
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                f.write(text)
        except OSError as e:
            logger.warning(f"Could not write cache file {path}: {e}")


class BaseCollector(ABC):
    """Abstract base class for source collectors."""

    kind: str = "unknown"

    def __init__(self, config, fetcher: Optional[SourceFetcher] = None):
        self.config = config
        self.fetcher = fetcher or SourceFetcher()
        # Non-fatal diagnostics gathered during collect()
        self.notices: list[str] = []

    @property
    def archive(self) -> str:
        return self.config.archive

    @abstractmethod
    def collect(self) -> list[Package]:
        """Collect every package of this source.

        The raw payload is validated as a whole before any record is built.

        Returns:
            List of Package objects, in payload order.

        Raises:
            RetrievalError: if the payload cannot be obtained.
            RecordValidationError: if any record is malformed.
        """
        pass

    def notice(self, message: str) -> None:
        self.notices.append(message)
        logger.warning(f"{self.archive}: {message}")

    def validate(self, adapter, payload: Any, key: Optional[str] = None) -> Any:
        """Validate `payload` with a pydantic model or TypeAdapter."""
        try:
            if hasattr(adapter, "validate_python"):
                return adapter.validate_python(payload)
            return adapter.model_validate(payload)
        except ValidationError as e:
            raise RecordValidationError.from_validation_error(self.archive, e, key=key) from e
