"""
Database connection management.
"""
import sqlite3
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from ..exceptions import DatabaseError
from .schema import Schema, check_schema


class DBManager:
    """
    Opens one SQLite store. The Lightroom catalog is opened read-write, the
    Aperture databases read-only. Connections run in autocommit mode so
    the caller owns the transaction boundary (see `transaction`).
    """
    def __init__(self, db_path: Path, read_only: bool = False,
                 schema: Optional[Schema] = None):
        self.db_path = db_path
        self.read_only = read_only
        self.schema = schema
        self._conn: Optional[sqlite3.Connection] = None

    def connect(self) -> sqlite3.Connection:
        if self._conn:
            return self._conn

        if not self.db_path.exists():
            raise DatabaseError(f"Database not found: {self.db_path}")

        mode = "ro" if self.read_only else "rw"
        logging.info(f"Opening database ({mode}): {self.db_path}")
        uri = f"{self.db_path.resolve().as_uri()}?mode={mode}"
        try:
            self._conn = sqlite3.connect(uri, uri=True, isolation_level=None)
        except sqlite3.Error as e:
            raise DatabaseError(f"Can't open database {self.db_path}: {e}") from e

        if self.schema:
            check_schema(self._conn, self.schema)

        return self._conn

    def close(self):
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        return self.connect()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


@contextmanager
def transaction(conn: sqlite3.Connection, commit: bool = True) -> Iterator[sqlite3.Connection]:
    """
    Wraps the block in BEGIN ... COMMIT.
    Any exception rolls everything back; commit=False rolls back even on
    success (dry runs).
    """
    conn.execute("BEGIN")
    try:
        yield conn
    except BaseException:
        logging.error("Rolling back all catalog changes.")
        conn.execute("ROLLBACK")
        raise

    if commit:
        conn.execute("COMMIT")
        logging.debug("Catalog changes committed.")
    else:
        conn.execute("ROLLBACK")
        logging.info("Dry run: catalog changes rolled back.")
