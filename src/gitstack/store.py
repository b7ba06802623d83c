"""SQLite-backed document store for users and shadow issues/pull requests.

Each document is a JSON body in a single ``documents`` table, tagged with
its collection name. Lookups filter on top-level JSON fields. There is no
referential integrity between collections.
"""

import logging
import sqlite3
from contextlib import closing
from enum import Enum
from pathlib import Path
from typing import Any, Optional, TypeVar

from gitstack.models import Document

logger = logging.getLogger(__name__)

D = TypeVar("D", bound=Document)

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS documents (
    id          TEXT PRIMARY KEY,
    collection  TEXT NOT NULL,
    body        TEXT NOT NULL,
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_documents_collection ON documents (collection, created_at);
"""


class DocumentStore:
    """Tiny document store over one SQLite file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with closing(self._connect()) as db:
            db.executescript(_SCHEMA)
        logger.info("Document store ready at %s", self.path)

    def _connect(self) -> sqlite3.Connection:
        db = sqlite3.connect(str(self.path), timeout=5)
        db.row_factory = sqlite3.Row
        db.execute("PRAGMA journal_mode=WAL")
        return db

    # ── Writes ────────────────────────────────────────────────────────────

    def save(self, doc: D) -> D:
        """Insert or replace *doc*, refreshing its ``updatedAt``."""
        doc.touch()
        body = doc.model_dump_json(by_alias=True)
        with closing(self._connect()) as db, db:
            db.execute(
                """
                INSERT INTO documents (id, collection, body, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    body = excluded.body,
                    updated_at = excluded.updated_at
                """,
                (
                    doc.id,
                    doc.collection,
                    body,
                    doc.created_at.isoformat(),
                    doc.updated_at.isoformat(),
                ),
            )
        return doc

    def delete(self, model: type[D], doc_id: str) -> bool:
        with closing(self._connect()) as db, db:
            cursor = db.execute(
                "DELETE FROM documents WHERE collection = ? AND id = ?",
                (model.collection, doc_id),
            )
        return cursor.rowcount > 0

    # ── Reads ─────────────────────────────────────────────────────────────

    def get(self, model: type[D], doc_id: str) -> Optional[D]:
        with closing(self._connect()) as db:
            row = db.execute(
                "SELECT body FROM documents WHERE collection = ? AND id = ?",
                (model.collection, doc_id),
            ).fetchone()
        if row is None:
            return None
        return model.model_validate_json(row["body"])

    def find(self, model: type[D], **filters: Any) -> list[D]:
        """Return documents whose fields equal every filter, oldest first."""
        clauses = ["collection = ?"]
        params: list[Any] = [model.collection]
        for name, value in filters.items():
            clauses.append("json_extract(body, ?) = ?")
            params.append(f"$.{_field_key(model, name)}")
            params.append(_sql_value(value))

        sql = f"SELECT body FROM documents WHERE {' AND '.join(clauses)} ORDER BY created_at, id"
        with closing(self._connect()) as db:
            rows = db.execute(sql, params).fetchall()
        return [model.model_validate_json(row["body"]) for row in rows]

    def find_one(self, model: type[D], **filters: Any) -> Optional[D]:
        found = self.find(model, **filters)
        return found[0] if found else None


def _field_key(model: type[Document], name: str) -> str:
    field = model.model_fields.get(name)
    if field is None:
        raise ValueError(f"{model.__name__} has no field {name!r}")
    return field.alias or name


def _sql_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        # json_extract yields 0/1 for JSON booleans
        return int(value)
    return value
