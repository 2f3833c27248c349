"""Tests for loading the epkgs SQL dump."""

import sqlite3

import pytest

from elpa_catalog.collectors import BuiltinCollector
from elpa_catalog.config import BuiltinSourceConfig
from elpa_catalog.epkgs import load_sql_dump

DUMP = """\
PRAGMA foreign_keys=OFF;
BEGIN TRANSACTION;
CREATE TABLE packages (name TEXT, class TEXT, library TEXT, homepage TEXT,
                       summary TEXT, commentary TEXT);
CREATE TABLE keywords (package TEXT, keyword TEXT);
CREATE TABLE authors (package TEXT, name TEXT, email TEXT);
CREATE TABLE maintainers (package TEXT, name TEXT, email TEXT);
CREATE TABLE provided (package TEXT, feature TEXT);
CREATE TABLE required (package TEXT, feature TEXT);
INSERT INTO packages VALUES('"cl-lib"','builtin',NULL,NULL,'"Common Lisp extensions; for Emacs"',
'"Multi-line
commentary"');
INSERT INTO keywords VALUES('"cl-lib"','lisp');
COMMIT;
"""


def write_dump(tmp_path, text=DUMP):
    path = tmp_path / "epkg.sql"
    path.write_text(text, encoding="utf-8")
    return path


def test_loads_statements_spanning_lines(tmp_path) -> None:
    db_path = tmp_path / "db" / "epkgs.sqlite"
    count = load_sql_dump(write_dump(tmp_path), db_path)
    assert count == 11
    conn = sqlite3.connect(db_path)
    try:
        [(summary, commentary)] = conn.execute("SELECT summary, commentary FROM packages").fetchall()
    finally:
        conn.close()
    assert summary == '"Common Lisp extensions; for Emacs"'
    assert commentary == '"Multi-line\ncommentary"'


def test_dump_without_transaction(tmp_path) -> None:
    text = "CREATE TABLE t (x INTEGER);\nINSERT INTO t VALUES (1);\nINSERT INTO t VALUES (2);\n"
    db_path = tmp_path / "epkgs.sqlite"
    assert load_sql_dump(write_dump(tmp_path, text), db_path) == 3
    conn = sqlite3.connect(db_path)
    try:
        assert conn.execute("SELECT count(*) FROM t").fetchone() == (2,)
    finally:
        conn.close()


def test_loaded_database_feeds_the_builtin_collector(tmp_path) -> None:
    db_path = tmp_path / "epkgs.sqlite"
    load_sql_dump(write_dump(tmp_path), db_path)
    [package] = BuiltinCollector(BuiltinSourceConfig(db_path=db_path)).collect()
    assert package.name == "cl-lib"
    assert package.summary == "Common Lisp extensions; for Emacs"
    assert package.keywords == ["lisp"]


def test_refuses_to_replace_existing_database(tmp_path) -> None:
    db_path = tmp_path / "epkgs.sqlite"
    db_path.write_bytes(b"keep me")
    with pytest.raises(FileExistsError):
        load_sql_dump(write_dump(tmp_path), db_path)
    assert db_path.read_bytes() == b"keep me"


def test_overwrite(tmp_path) -> None:
    db_path = tmp_path / "epkgs.sqlite"
    db_path.write_bytes(b"stale")
    load_sql_dump(write_dump(tmp_path), db_path, overwrite=True)
    conn = sqlite3.connect(db_path)
    try:
        assert conn.execute("SELECT count(*) FROM keywords").fetchone() == (1,)
    finally:
        conn.close()


def test_failed_statement_removes_partial_database(tmp_path) -> None:
    text = "CREATE TABLE t (x INTEGER);\nINSERT INTO missing VALUES (1);\n"
    db_path = tmp_path / "epkgs.sqlite"
    with pytest.raises(sqlite3.Error):
        load_sql_dump(write_dump(tmp_path, text), db_path)
    assert not db_path.exists()
