"""Shared fixtures: canned archive payloads, a stub HTTP session, an epkgs database."""

import json
import sqlite3
from pathlib import Path

import pytest
import requests
from loguru import logger

from elpa_catalog.collectors import SourceFetcher
from elpa_catalog.config import BuiltinSourceConfig, ElpaSourceConfig, MelpaSourceConfig


class StubResponse:
    def __init__(self, text: str, status_code: int = 200, url: str = ""):
        self.text = text
        self.status_code = status_code
        self.url = url

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error for url: {self.url}")


class StubSession:
    """Serves canned bodies by URL and records what was requested.

    A value may be a JSON-serializable object, a raw string, or a
    ``(body, status_code)`` tuple. Unknown URLs raise ConnectionError.
    """

    def __init__(self, responses: dict):
        self.responses = responses
        self.requested: list[str] = []

    def get(self, url, timeout=None):
        self.requested.append(url)
        if url not in self.responses:
            raise requests.ConnectionError(f"no route to {url}")
        body, status = self.responses[url], 200
        if isinstance(body, tuple):
            body, status = body
        if not isinstance(body, str):
            body = json.dumps(body)
        return StubResponse(body, status, url)


def write_json(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture()
def log_messages():
    """Collect loguru messages emitted during the test."""
    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)


@pytest.fixture()
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture()
def melpa_config() -> MelpaSourceConfig:
    return MelpaSourceConfig(archive="melpa", base_url="https://melpa.example")


@pytest.fixture()
def elpa_config() -> ElpaSourceConfig:
    return ElpaSourceConfig(archive="gnu", url="https://elpa.example/packages/")


@pytest.fixture()
def melpa_archive() -> dict:
    return {
        "magit": {
            "ver": [20240101, 1200],
            "deps": {"emacs": [25, 1], "dash": [2, 19, 1]},
            "desc": "A Git porcelain inside Emacs",
            "type": "tar",
            "props": {
                "commit": "abc123",
                "revdesc": "v4.0.0-1-gabc123",
                "keywords": ["git", "tools", "vc"],
                "maintainers": {"Jonas Bernoulli": "emacs.magit@jonas.bernoulli.dev"},
                "authors": {"Marius Vollmer": None, "Jonas Bernoulli": "jonas@bernoul.li"},
                "url": "https://github.com/magit/magit",
            },
        },
        "dash": {
            "ver": [20231120, 1056],
            "deps": None,
            "desc": "A modern list library for Emacs",
            "type": "single",
            "props": {
                "keywords": ["extensions", "lisp"],
                "authors": ["Magnar Sveen <magnars@gmail.com>"],
                "url": "github.com/magnars/dash.el",
            },
        },
        "nikola": {
            "ver": [20190102, 2312],
            "deps": {"emacs": [24, 4]},
            "desc": "Simple wrapper for nikola",
            "type": "single",
            "props": {"url": ": https://gitlab.com/drymer/nikola.el"},
        },
    }


@pytest.fixture()
def melpa_recipes() -> dict:
    return {
        "magit": {"fetcher": "github", "repo": "magit/magit", "files": ["lisp/magit*.el"]},
        "dash": {"fetcher": "sourcehut", "repo": "magnars/dash.el"},
        "unrelated": {"fetcher": "hg", "url": "https://hg.example/unrelated"},
    }


@pytest.fixture()
def melpa_downloads() -> dict:
    return {"magit": 4123456, "dash": 0}


@pytest.fixture()
def elpa_payload() -> dict:
    return {
        "company": [
            [1, 0, 2],
            {"emacs": [26, 1]},
            "Modular text completion framework",
            "tar",
            {
                "url": "https://github.com/company-mode/company-mode",
                "keywords": ["abbrev", "convenience", "matching"],
                "maintainer": ["Dmitry Gutov <dmitry@gutov.dev>"],
                "authors": {"Nikolaj Schumacher": None},
                "commit": "f2d4c1",
            },
        ],
        "ada-mode": [[8, 1, -4], None, "major-mode for editing Ada sources", "single"],
    }


@pytest.fixture()
def melpa_fetcher(cache_dir, melpa_config, melpa_archive, melpa_recipes, melpa_downloads):
    """A fetcher whose session serves the canned MELPA payloads."""
    session = StubSession(
        {
            melpa_config.archive_url: melpa_archive,
            melpa_config.recipes_url: melpa_recipes,
            melpa_config.downloads_url: melpa_downloads,
        }
    )
    return SourceFetcher(cache_dir=cache_dir, session=session)


@pytest.fixture()
def epkgs_db(tmp_path: Path) -> Path:
    """A small epkgs database, with text columns JSON-encoded as in the real dump."""
    db_path = tmp_path / "epkgs.sqlite"
    conn = sqlite3.connect(db_path)
    conn.executescript(
        """
        CREATE TABLE packages (name TEXT, class TEXT, library TEXT, homepage TEXT,
                               summary TEXT, commentary TEXT);
        CREATE TABLE keywords (package TEXT, keyword TEXT);
        CREATE TABLE authors (package TEXT, name TEXT, email TEXT);
        CREATE TABLE maintainers (package TEXT, name TEXT, email TEXT);
        CREATE TABLE provided (package TEXT, feature TEXT);
        CREATE TABLE required (package TEXT, feature TEXT);
        """
    )
    conn.executemany(
        "INSERT INTO packages (name, class, summary) VALUES (?, ?, ?)",
        [
            ('"emacs"', "builtin", '"GNU Emacs"'),
            ('"cl-lib"', "builtin", '"Common Lisp extensions for Emacs"'),
            ('"eieio"', "builtin", '"Enhanced\tImplementation of Emacs Interpreted Objects"'),
            ('"magit"', "elpa", '"A Git porcelain inside Emacs"'),
        ],
    )
    conn.executemany(
        "INSERT INTO keywords VALUES (?, ?)",
        [('"cl-lib"', "extensions"), ('"cl-lib"', "lisp")],
    )
    conn.executemany(
        "INSERT INTO authors VALUES (?, ?, ?)",
        [
            ('"cl-lib"', '"Jane Doe"', '"jane@example.com"'),
            ('"cl-lib"', '"Bob"', None),
        ],
    )
    conn.executemany(
        "INSERT INTO maintainers VALUES (?, ?, ?)",
        [('"cl-lib"', None, '"emacs-devel@gnu.org"')],
    )
    conn.executemany(
        "INSERT INTO provided VALUES (?, ?)",
        [('"cl-lib"', "cl-lib"), ('"cl-lib"', "cl-macs"), ('"eieio"', "eieio")],
    )
    conn.executemany(
        "INSERT INTO required VALUES (?, ?)",
        # cl-lib requires a feature it provides itself
        [('"eieio"', "cl-lib"), ('"eieio"', "cl-macs"), ('"cl-lib"', "cl-macs")],
    )
    conn.commit()
    conn.close()
    return db_path


@pytest.fixture()
def builtin_config(epkgs_db: Path) -> BuiltinSourceConfig:
    return BuiltinSourceConfig(db_path=epkgs_db)
