import logging
import sqlite3
from typing import Any, Dict, Iterable, List, Optional, Sequence, Type

import psycopg2

from addonstore.errors import ConflictInsertNoOp, StoreReadError, StoreWriteError

logger = logging.getLogger(__name__)

DB_ERRORS = (sqlite3.Error, psycopg2.Error)


class BaseRepository:
    def __init__(self, manager, table_name: str, model_class: Optional[Type] = None, key: str = "id"):
        self.manager = manager
        self.table_name = table_name
        self.model_class = model_class
        self.key = key

    def _to_model(self, row: Dict[str, Any]) -> Any:
        if self.model_class:
            return self.model_class(**row)
        return row

    def _fetch_all(self, query: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        conn = self.manager.get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(self.manager.placeholder_query(query), tuple(params))
            return [dict(row) for row in cursor.fetchall()]
        except DB_ERRORS as e:
            raise StoreReadError(f"Error reading {self.table_name}: {e}") from e
        finally:
            conn.close()

    def _fetch_one(self, query: str, params: Sequence[Any] = ()) -> Optional[Dict[str, Any]]:
        rows = self._fetch_all(query, params)
        return rows[0] if rows else None

    def _execute(self, conn, query: str, params: Sequence[Any] = ()) -> int:
        cursor = conn.cursor()
        cursor.execute(self.manager.placeholder_query(query), tuple(params))
        return cursor.rowcount

    def _execute_many(self, conn, query: str, rows: Sequence[Sequence[Any]]) -> int:
        cursor = conn.cursor()
        cursor.executemany(self.manager.placeholder_query(query), [tuple(r) for r in rows])
        return cursor.rowcount

    def _write(self, query: str, params: Sequence[Any] = ()) -> int:
        try:
            with self.manager.transaction() as conn:
                return self._execute(conn, query, params)
        except DB_ERRORS as e:
            raise StoreWriteError(f"Error writing {self.table_name}: {e}") from e

    def _insert_query(self, columns: Sequence[str], on_conflict: str = "") -> str:
        column_list = ", ".join(columns)
        placeholders = ", ".join(["%s"] * len(columns))
        query = f"INSERT INTO {self.table_name} ({column_list}) VALUES ({placeholders})"
        if on_conflict:
            query += f" {on_conflict}"
        return query

    def _insert_rows(self, conn, columns: Sequence[str], rows: Sequence[Sequence[Any]], on_conflict: str = "") -> int:
        if not rows:
            return 0
        affected = self._execute_many(conn, self._insert_query(columns, on_conflict), rows)
        if affected == 0:
            raise ConflictInsertNoOp(self.table_name, len(rows))
        return affected

    def insert_many(self, columns: Sequence[str], rows: Sequence[Sequence[Any]], on_conflict: str = "") -> int:
        """Insert rows in one statement batch; raises ConflictInsertNoOp if nothing changed."""
        try:
            with self.manager.transaction() as conn:
                return self._insert_rows(conn, columns, rows, on_conflict)
        except DB_ERRORS as e:
            raise StoreWriteError(f"Error inserting into {self.table_name}: {e}") from e

    def insert_many_tolerant(self, columns: Sequence[str], rows: Sequence[Sequence[Any]], on_conflict: str = "") -> int:
        try:
            return self.insert_many(columns, rows, on_conflict)
        except ConflictInsertNoOp as e:
            logger.debug(str(e))
            return 0

    def replace_for(self, column: str, ids: Iterable[Any], columns: Sequence[str], rows: Sequence[Sequence[Any]], on_conflict: str = "") -> int:
        """Delete every row whose column is in ids, then insert rows, in one transaction."""
        ids = list(ids)
        try:
            with self.manager.transaction() as conn:
                for chunk in _chunks(ids, 500):
                    placeholders = ", ".join(["%s"] * len(chunk))
                    self._execute(
                        conn,
                        f"DELETE FROM {self.table_name} WHERE {column} IN ({placeholders})",
                        chunk,
                    )
                try:
                    return self._insert_rows(conn, columns, rows, on_conflict)
                except ConflictInsertNoOp as e:
                    logger.debug(str(e))
                    return 0
        except DB_ERRORS as e:
            raise StoreWriteError(f"Error replacing rows in {self.table_name}: {e}") from e

    def replace_all(self, columns: Sequence[str], rows: Sequence[Sequence[Any]]) -> int:
        """Delete every row of the table, then insert rows, in one transaction."""
        try:
            with self.manager.transaction() as conn:
                self._execute(conn, f"DELETE FROM {self.table_name}")
                if not rows:
                    return 0
                return self._execute_many(conn, self._insert_query(columns), rows)
        except DB_ERRORS as e:
            raise StoreWriteError(f"Error replacing rows in {self.table_name}: {e}") from e

    def get(self, id: Any) -> Optional[Any]:
        row = self._fetch_one(f"SELECT * FROM {self.table_name} WHERE {self.key} = %s", (id,))
        return self._to_model(row) if row else None

    def count(self) -> int:
        row = self._fetch_one(f"SELECT COUNT(*) AS total FROM {self.table_name}")
        return int(row["total"]) if row else 0

    def delete(self, id: Any) -> bool:
        return self._write(f"DELETE FROM {self.table_name} WHERE {self.key} = %s", (id,)) > 0


def _chunks(items: List[Any], size: int) -> Iterable[List[Any]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]
