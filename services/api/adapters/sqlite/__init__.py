# services/api/adapters/sqlite/__init__.py
from __future__ import annotations

import json
import os
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
    Text,
    create_engine,
    delete,
    event,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Engine

# ---- Engine (SQLite) with WAL & pragmas -------------------------------------

def _ensure_dir(path: str):
    d = os.path.dirname(path)
    if d and not os.path.isdir(d):
        os.makedirs(d, exist_ok=True)

def make_engine(db_url: str) -> Engine:
    # Create data dir if sqlite file
    if db_url.startswith("sqlite:///"):
        file_path = db_url.replace("sqlite:///", "", 1)
        _ensure_dir(file_path)

    engine = create_engine(db_url, future=True, pool_pre_ping=True)

    # Apply pragmas per-connection
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):  # type: ignore
        if isinstance(dbapi_connection, sqlite3.Connection):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL;")
            cursor.execute("PRAGMA synchronous=NORMAL;")
            cursor.close()

    return engine

# ---- Schema via SQLAlchemy Core ---------------------------------------------

metadata = MetaData()

documents = Table(
    "documents",
    metadata,
    Column("collection", String, nullable=False),
    Column("doc_id", String, nullable=False),
    Column("body", Text, nullable=False),  # JSON
    Column("seq", Integer, nullable=False),  # insertion order within a collection
    Column("updated_at", DateTime, nullable=False, default=datetime.utcnow),
    PrimaryKeyConstraint("collection", "doc_id", name="pk_documents"),
)

# ---- Store implementation ---------------------------------------------------

@dataclass(frozen=True)
class SqliteDocumentStore:
    engine: Engine

    @classmethod
    def from_url(cls, db_url: str = "sqlite:///data/desk_sync.db") -> "SqliteDocumentStore":
        eng = make_engine(db_url)
        metadata.create_all(eng)
        return cls(engine=eng)

    def set_document(self, collection: str, doc_id: str, document: Dict[str, Any]) -> None:
        body = json.dumps(document, ensure_ascii=False, default=str)
        with self.engine.begin() as conn:
            res = conn.execute(
                update(documents)
                .where(documents.c.collection == collection, documents.c.doc_id == doc_id)
                .values(body=body, updated_at=datetime.utcnow())
            )
            if res.rowcount:
                return

            last = conn.execute(
                select(documents.c.seq)
                .where(documents.c.collection == collection)
                .order_by(documents.c.seq.desc())
                .limit(1)
            ).scalar()
            conn.execute(
                insert(documents).values(
                    collection=collection,
                    doc_id=doc_id,
                    body=body,
                    seq=(last or 0) + 1,
                    updated_at=datetime.utcnow(),
                )
            )

    def get_document(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self.engine.begin() as conn:
            body = conn.execute(
                select(documents.c.body).where(
                    documents.c.collection == collection,
                    documents.c.doc_id == doc_id,
                )
            ).scalar()
        return json.loads(body) if body is not None else None

    def list_documents(self, collection: str) -> List[Dict[str, Any]]:
        with self.engine.begin() as conn:
            rows = conn.execute(
                select(documents.c.body)
                .where(documents.c.collection == collection)
                .order_by(documents.c.seq.asc())
            ).scalars().all()
        return [json.loads(b) for b in rows]

    def delete_document(self, collection: str, doc_id: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(
                delete(documents).where(
                    documents.c.collection == collection,
                    documents.c.doc_id == doc_id,
                )
            )
