# Rev 0.1.0
from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from ..models.documents import Document, WriteOp, parent_collection, split_path
from .db import Database
from .document_store import DocumentStore


class SQLiteDocumentStore(DocumentStore):
    """
    Document store persisted as JSON rows in the `documents` table.
    A batch is one SQLite transaction, so it lands completely or not at all.
    Live subscriptions are in-process: only writes made through this
    instance are pushed to subscribers.
    """

    def __init__(self, db_or_path: Union[Database, Path, str]) -> None:
        super().__init__()
        if isinstance(db_or_path, Database):
            self._db = db_or_path
            self._owns_db = False
        else:
            self._db = Database(db_or_path)
            self._owns_db = True
        self._db.run_migrations()

    @property
    def database(self) -> Database:
        return self._db

    def close(self) -> None:
        if self._owns_db:
            self._db.close()

    # -------------------------
    # Row mapping
    # -------------------------
    @staticmethod
    def _row_to_document(row: sqlite3.Row) -> Document:
        return Document(row["path"], json.loads(row["data"]))

    # -------------------------
    # Reads
    # -------------------------
    def _fetch_document(self, path: str) -> Optional[Document]:
        row = self._db.conn.execute(
            "SELECT path, data FROM documents WHERE path = ?", (path,)
        ).fetchone()
        return self._row_to_document(row) if row else None

    def _fetch_collection(self, path: str) -> List[Document]:
        rows = self._db.conn.execute(
            "SELECT path, data FROM documents WHERE collection_path = ? ORDER BY seq",
            (path,),
        ).fetchall()
        return [self._row_to_document(r) for r in rows]

    def _fetch_group(self, collection_id: str, field: str, value: Any) -> List[Document]:
        rows = self._db.conn.execute(
            "SELECT path, data FROM documents WHERE collection_id = ? ORDER BY seq",
            (collection_id,),
        ).fetchall()
        docs = [self._row_to_document(r) for r in rows]
        return [d for d in docs if d.data.get(field) == value]

    # -------------------------
    # Writes
    # -------------------------
    def _commit(self, ops: Sequence[WriteOp]) -> None:
        with self._db.transaction() as con:
            for op in ops:
                if op.kind == "set":
                    self._upsert(con, op.path, op.data or {})
                elif op.kind == "update":
                    row = con.execute("SELECT data FROM documents WHERE path = ?", (op.path,)).fetchone()
                    if row is None:
                        raise KeyError(f"no document to update at {op.path}")
                    merged: Dict[str, Any] = json.loads(row["data"])
                    merged.update(op.data or {})
                    con.execute(
                        "UPDATE documents SET data = ?, updated_at_utc = datetime('now') WHERE path = ?",
                        (json.dumps(merged), op.path),
                    )
                else:
                    con.execute("DELETE FROM documents WHERE path = ?", (op.path,))

    @staticmethod
    def _upsert(con: sqlite3.Connection, path: str, data: Dict[str, Any]) -> None:
        parts = split_path(path)
        # set on an existing path keeps its position in the collection
        con.execute(
            """
            INSERT INTO documents(path, collection_path, collection_id, doc_id, data, seq, updated_at_utc)
            VALUES (?, ?, ?, ?, ?, (SELECT COALESCE(MAX(seq), 0) + 1 FROM documents), datetime('now'))
            ON CONFLICT(path) DO UPDATE SET data = excluded.data, updated_at_utc = excluded.updated_at_utc
            """,
            (path, parent_collection(path), parts[-2], parts[-1], json.dumps(data)),
        )
