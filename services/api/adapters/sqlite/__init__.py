# services/api/adapters/sqlite/__init__.py
from __future__ import annotations

import os
import sqlite3
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    JSON,
    Column,
    Float,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    select,
    insert,
    update,
    event,
    text,
)
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from uuid import uuid4

from core.aging import utc_now_iso

# ---- Engine (SQLite) with WAL & pragmas -------------------------------------

def _ensure_dir(path: str):
    d = os.path.dirname(path)
    if d and not os.path.isdir(d):
        os.makedirs(d, exist_ok=True)

def make_engine(db_url: str) -> Engine:
    if db_url in ("sqlite://", "sqlite:///:memory:"):
        # Single shared connection, otherwise every checkout sees an empty DB
        engine = create_engine(
            db_url,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
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
            cursor.execute("PRAGMA temp_store=MEMORY;")
            cursor.close()

    return engine

# ---- Schema via SQLAlchemy Core ---------------------------------------------
# Timestamps are stored as ISO-8601 strings (same as the Sheets backend) so
# rows round-trip identically across backends.

metadata = MetaData()

projects = Table(
    "projects",
    metadata,
    Column("id", String, primary_key=True),
    Column("project_name", String),
    Column("project_number", String),
)

drawing_log = Table(
    "drawing_log",
    metadata,
    Column("id", String, primary_key=True),
    Column("project_id", String),
    Column("dwg", String),
    Column("status", String),
    Column("description", Text),
    Column("total_weight", Float),
    Column("latest_submitted_date", String),
    Column("release_status", String),
    Column("pdf_path", Text),
    Column("created_at", String),
)

drawings_yet_to_release = Table(
    "drawings_yet_to_release",
    metadata,
    Column("id", String, primary_key=True),
    Column("project_id", String),
    Column("dwg_no", String),
    Column("status", String),
    Column("description", Text),
    Column("total_weight_tons", Float),
    Column("latest_submitted_date", String),
    Column("release_status", String),
    Column("pdf_path", Text),
    Column("created_at", String),
)

drawings_yet_to_return = Table(
    "drawings_yet_to_return",
    metadata,
    Column("id", String, primary_key=True),
    Column("project_id", String),
    Column("dwg_no", String),
    Column("status", String),
    Column("description", Text),
    Column("total_weight_tons", Float),
    Column("latest_submitted_date", String),
    Column("release_status", String),
    Column("pdf_path", Text),
    Column("created_at", String),
)

drawings = Table(
    "drawings",
    metadata,
    Column("id", String, primary_key=True),
    Column("project_id", String),
    Column("dwg_no", String),
    Column("release_status", String),
    Column("revision_status", String),
    Column("revision_number", Integer),
    Column("corrected_date", String),
    Column("editor_id", String),
    Column("editor_name", String),
    Column("pdf_path", Text),
    Column("updated_at", String),
)

drawing_annotations = Table(
    "drawing_annotations",
    metadata,
    # seq = insertion order, breaks created_at ties
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("id", String, nullable=False, unique=True),
    Column("drawing_id", String, nullable=False),
    Column("annotations", JSON, nullable=False),
    Column("pdf_url", Text, nullable=False),
    Column("revision_number", Integer, nullable=False, default=1),
    Column("revision_status", String, nullable=False, default="REVISION"),
    Column("corrected_date", String),
    Column("editor_id", String),
    Column("editor_name", String),
    Column("created_at", String, nullable=False),
)

Index("idx_annotations_drawing", drawing_annotations.c.drawing_id, drawing_annotations.c.created_at)
Index("idx_log_dwg", drawing_log.c.dwg)
Index("idx_ytrel_dwg", drawings_yet_to_release.c.dwg_no)
Index("idx_ytret_dwg", drawings_yet_to_return.c.dwg_no)

TABLES = {t.name: t for t in (projects, drawing_log, drawings_yet_to_release, drawings_yet_to_return, drawings)}

# ---- Adapter implementation --------------------------------------------------

@dataclass(frozen=True)
class SqliteAdapter:
    engine: Engine

    @classmethod
    def from_url(cls, db_url: str = "sqlite:///data/drawings.db") -> "SqliteAdapter":
        eng = make_engine(db_url)
        metadata.create_all(eng)
        return cls(engine=eng)

    def _all(self, table: Table) -> List[Dict[str, Any]]:
        with self.engine.begin() as conn:
            rows = conn.execute(select(table).order_by(table.c.created_at.desc())).mappings().all()
            return [dict(row) for row in rows]

    # Seeding (not part of DrawingStorage)
    def add_rows(self, table_name: str, rows: List[Dict[str, Any]]) -> None:
        table = TABLES[table_name]
        cols = set(table.c.keys())
        payload = [{"id": str(uuid4()), **{k: v for k, v in r.items() if k in cols}} for r in rows]
        if not payload:
            return
        with self.engine.begin() as conn:
            conn.execute(insert(table), payload)

    # Drawing sources
    def fetch_drawing_log(self) -> List[Dict[str, Any]]:
        return self._all(drawing_log)

    def fetch_yet_to_release(self) -> List[Dict[str, Any]]:
        return self._all(drawings_yet_to_release)

    def fetch_yet_to_return(self) -> List[Dict[str, Any]]:
        return self._all(drawings_yet_to_return)

    # Projects / drawings
    def get_project(self, project_id: str) -> Optional[Dict[str, Any]]:
        with self.engine.begin() as conn:
            row = conn.execute(select(projects).where(projects.c.id == project_id)).mappings().first()
            return dict(row) if row else None

    def get_drawing(self, drawing_id: str) -> Optional[Dict[str, Any]]:
        with self.engine.begin() as conn:
            row = conn.execute(select(drawings).where(drawings.c.id == drawing_id)).mappings().first()
            return dict(row) if row else None

    def update_drawing(self, drawing_id: str, updates: Dict[str, Any]) -> bool:
        allowed = {k: v for k, v in updates.items() if k in drawings.c and k != "id"}
        if not allowed:
            return self.get_drawing(drawing_id) is not None
        with self.engine.begin() as conn:
            res = conn.execute(update(drawings).where(drawings.c.id == drawing_id).values(**allowed))
            return res.rowcount > 0

    # Revisions (append-only)
    def insert_revision(self, record: Dict[str, Any]) -> Dict[str, Any]:
        row = {k: v for k, v in record.items() if k in drawing_annotations.c and k != "seq"}
        row.setdefault("id", str(uuid4()))
        row.setdefault("created_at", utc_now_iso())
        with self.engine.begin() as conn:
            conn.execute(insert(drawing_annotations).values(**row))
        return row

    def list_revisions(self, drawing_id: str) -> List[Dict[str, Any]]:
        with self.engine.begin() as conn:
            q = (
                select(drawing_annotations)
                .where(drawing_annotations.c.drawing_id == drawing_id)
                .order_by(drawing_annotations.c.created_at.desc(), drawing_annotations.c.seq.desc())
            )
            rows = conn.execute(q).mappings().all()
            out = []
            for row in rows:
                d = dict(row)
                d.pop("seq", None)
                out.append(d)
            return out

    def get_latest_revision(self, drawing_id: str) -> Optional[Dict[str, Any]]:
        revisions = self.list_revisions(drawing_id)
        return revisions[0] if revisions else None

    def ping(self) -> None:
        with self.engine.begin() as conn:
            conn.execute(text("SELECT 1")).fetchone()
