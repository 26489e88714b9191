import sqlite3
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from ..exceptions import BindError, DatabaseError, StepError
from ..models import CatalogImage

Params = Union[Sequence[Any], Dict[str, Any]]


class DBOperations:
    """
    Thin statement layer over one sqlite3 connection.
    Every sqlite3 error is re-raised as BindError (bad parameters) or
    StepError (rejected statement) carrying the offending SQL.
    """
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def execute(self, sql: str, params: Params = ()) -> sqlite3.Cursor:
        try:
            return self.conn.execute(sql, params)
        except (sqlite3.ProgrammingError, sqlite3.InterfaceError, OverflowError) as e:
            raise BindError(f"Failed to bind parameters: {e}", sql) from e
        except sqlite3.Error as e:
            raise StepError(f"Failed to execute statement: {e}", sql) from e

    def fetchone(self, sql: str, params: Params = ()) -> Optional[Tuple]:
        return self.execute(sql, params).fetchone()

    def fetchall(self, sql: str, params: Params = ()) -> List[Tuple]:
        return self.execute(sql, params).fetchall()

    def fetch_value(self, sql: str, params: Params = ()) -> Any:
        """Returns the first column of the first row, or None if there is no row."""
        row = self.fetchone(sql, params)
        return row[0] if row else None

    def run_cleanup(self, statements: Sequence[str], params: Params = ()):
        """
        Runs independent DELETE statements in the given order (children
        before parents). A failing statement does not stop the remaining
        ones; if any failed, DatabaseError is raised at the end.
        """
        failed = []
        for sql in statements:
            try:
                self.execute(sql, params)
            except DatabaseError as e:
                logging.error(f"Failed to execute {sql}: {e}")
                failed.append(sql)

        if failed:
            raise DatabaseError(f"{len(failed)} of {len(statements)} cleanup statements failed")

    # --- Adobe_variablesTable ---

    def get_variable(self, name: str) -> Any:
        return self.fetch_value("SELECT value FROM Adobe_variablesTable WHERE name = ?", (name,))

    def has_variable(self, name: str) -> bool:
        return self.fetchone("SELECT 1 FROM Adobe_variablesTable WHERE name = ?", (name,)) is not None

    def update_variable(self, name: str, value: Any) -> int:
        """Returns the number of rows changed (0 when the variable does not exist)."""
        cur = self.execute("UPDATE Adobe_variablesTable SET value = ? WHERE name = ?", (value, name))
        return cur.rowcount

    def insert_variable(self, id_local: int, id_global: str, name: str, value: Any):
        self.execute("""
            INSERT INTO Adobe_variablesTable (id_local, id_global, name, type, value)
            VALUES (?, ?, ?, NULL, ?)
        """, (id_local, id_global, name, value))

    # --- Image list ---

    def fetch_catalog_images(self) -> List[CatalogImage]:
        """
        Fetches every image together with the file name and modification
        time we use to find it in the Aperture library.
        """
        rows = self.fetchall("""
            SELECT I.id_local, F.originalFilename, O.pathFromRoot, I.orientation,
                   F.externalModTime, I.copyName
            FROM Adobe_images I, AgLibraryFile F, AgLibraryFolder O, AgLibraryRootFolder R
            WHERE F.id_local = I.rootFile
            AND O.id_local = F.folder
            AND R.id_local = O.rootFolder
            ORDER BY I.id_local
        """)
        logging.debug(f"Catalog lists {len(rows)} images.")
        return [
            CatalogImage(
                image_id=r[0], file_name=r[1] or "", folder_path=r[2] or "",
                orientation=r[3] or "", mod_time=int(r[4] or 0), copy_name=r[5],
            )
            for r in rows
        ]
