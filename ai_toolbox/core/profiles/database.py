import sqlite3
import logging
import os
import json
import threading
from contextlib import contextmanager
from typing import Optional

from ai_toolbox.core.errors import StoreFailure


class DocumentStore:
    """
    JSON document store on top of one SQLite connection.

    Records are addressed by (table, record_id). One lock guards the whole
    connection; callers hold it across multi-step operations via session().
    The handle is owned by the application: open() at startup, close() on quit.
    """

    def __init__(self, db_path: str):
        self.logger = logging.getLogger("DocumentStore")
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

    # --- Lifetime ---
    def open(self):
        with self._lock:
            if self._conn is not None:
                return self
            if self.db_path != ":memory:":
                os.makedirs(os.path.dirname(os.path.abspath(self.db_path)), exist_ok=True)
            try:
                self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
                self._create_tables()
            except sqlite3.Error as e:
                self._conn = None
                raise StoreFailure(f"Failed to open database {self.db_path}: {e}") from e
            self.logger.info(f"Database opened at {self.db_path}")
            return self

    def close(self):
        with self._lock:
            if self._conn is None:
                return
            self._conn.close()
            self._conn = None
            self.logger.info("Database closed.")

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def _create_tables(self):
        self._conn.execute('''CREATE TABLE IF NOT EXISTS documents (
            tbl TEXT NOT NULL,
            record_id TEXT NOT NULL,
            content TEXT NOT NULL,
            PRIMARY KEY(tbl, record_id)
        )''')
        self._conn.execute("CREATE INDEX IF NOT EXISTS idx_documents_tbl ON documents (tbl)")
        self._conn.commit()

    @contextmanager
    def session(self):
        """Hold the store lock for the duration of a multi-step operation."""
        with self._lock:
            self._require_open()
            yield self

    def _require_open(self):
        if self._conn is None:
            raise StoreFailure("Database is closed")

    def _query(self, sql: str, params=()) -> list:
        with self._lock:
            self._require_open()
            try:
                return self._conn.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                raise StoreFailure(f"Query failed: {e}") from e

    def _execute(self, sql: str, params=()):
        with self._lock:
            self._require_open()
            try:
                cursor = self._conn.execute(sql, params)
                self._conn.commit()
                return cursor
            except sqlite3.Error as e:
                self._conn.rollback()
                raise StoreFailure(f"Query failed: {e}") from e

    @staticmethod
    def _decode(table: str, record_id: str, content: str) -> dict:
        try:
            record = json.loads(content)
        except json.JSONDecodeError as e:
            raise StoreFailure(f"Failed to deserialize {table}:{record_id}: {e}") from e
        if not isinstance(record, dict):
            raise StoreFailure(f"Failed to deserialize {table}:{record_id}: not an object")
        return record

    # --- Queries ---
    def select(self, table: str) -> list:
        """All records of a table as [(record_id, dict)] in insertion order."""
        rows = self._query(
            "SELECT record_id, content FROM documents WHERE tbl = ? ORDER BY rowid", (table,)
        )
        return [(rid, self._decode(table, rid, content)) for rid, content in rows]

    def get(self, table: str, record_id: str) -> Optional[dict]:
        rows = self._query(
            "SELECT content FROM documents WHERE tbl = ? AND record_id = ?", (table, record_id)
        )
        return self._decode(table, record_id, rows[0][0]) if rows else None

    def count(self, table: str) -> int:
        rows = self._query("SELECT COUNT(*) FROM documents WHERE tbl = ?", (table,))
        return rows[0][0] if rows else 0

    def create(self, table: str, record_id: str, content: dict):
        try:
            data = json.dumps(content, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StoreFailure(f"Failed to serialize {table}:{record_id}: {e}") from e
        self._execute(
            "INSERT INTO documents (tbl, record_id, content) VALUES (?, ?, ?)",
            (table, record_id, data),
        )

    def delete(self, table: str, record_id: str = None):
        """Delete one record, or every record of the table when record_id is None."""
        if record_id is None:
            self._execute("DELETE FROM documents WHERE tbl = ?", (table,))
        else:
            self._execute("DELETE FROM documents WHERE tbl = ? AND record_id = ?", (table, record_id))

    def patch(self, table: str, changes: dict, record_id: str = None) -> int:
        """
        Set the given keys on one record (or all records of the table) in a single commit.
        Returns the number of records touched.
        """
        with self._lock:
            self._require_open()
            if record_id is None:
                targets = self.select(table)
            else:
                record = self.get(table, record_id)
                targets = [(record_id, record)] if record is not None else []

            try:
                for rid, record in targets:
                    record.update(changes)
                    self._conn.execute(
                        "UPDATE documents SET content = ? WHERE tbl = ? AND record_id = ?",
                        (json.dumps(record, ensure_ascii=False), table, rid),
                    )
                self._conn.commit()
            except sqlite3.Error as e:
                self._conn.rollback()
                raise StoreFailure(f"Failed to update {table}: {e}") from e
            return len(targets)
