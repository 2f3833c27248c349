"""Load an epkgs SQL dump into the SQLite database read by BuiltinCollector."""

import sqlite3
from pathlib import Path


def load_sql_dump(sql_path: Path, db_path: Path, overwrite: bool = False) -> int:
    """Replay the statements of `sql_path` into a new database at `db_path`.

    Statements may span lines; each is executed once complete.

    Args:
        sql_path: The SQL dump (epkg.sql).
        db_path: Where to create the database.
        overwrite: Replace `db_path` if it already exists.

    Returns:
        The number of statements executed.

    Raises:
        FileExistsError: if `db_path` exists and `overwrite` is false.
        sqlite3.Error: if a statement fails; the partial database is removed.
    """
    sql_path, db_path = Path(sql_path), Path(db_path)
    if db_path.exists():
        if not overwrite:
            raise FileExistsError(f"{db_path} already exists")
        db_path.unlink()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    count = 0
    # Autocommit mode, so the dump may carry its own BEGIN and COMMIT
    conn = sqlite3.connect(db_path, isolation_level=None)
    try:
        statement = ""
        with open(sql_path, encoding="utf-8") as f:
            for line in f:
                statement += line
                if not sqlite3.complete_statement(statement):
                    continue
                if statement.lstrip().upper().startswith("BEGIN"):
                    if conn.in_transaction:
                        conn.execute("COMMIT")
                elif not conn.in_transaction:
                    conn.execute("BEGIN")
                conn.execute(statement)
                statement = ""
                count += 1
        if conn.in_transaction:
            conn.execute("COMMIT")
    except BaseException:
        conn.close()
        db_path.unlink(missing_ok=True)
        raise
    conn.close()
    return count
