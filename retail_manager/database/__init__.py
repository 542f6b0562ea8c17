# database/__init__.py
from __future__ import annotations

import logging
from pathlib import Path
import sqlite3

from ..config import DB_PATH
from ..constants import SCHEMA_VERSION, TABLE_SCHEMA_VERSION
from . import schema as schema_module

_log = logging.getLogger(__name__)


def _ensure_version_table(conn: sqlite3.Connection) -> None:
    """
    Record the schema version the file was last opened with. The schema
    itself has just been applied, so an older stamp is moved forward.
    """
    conn.execute(f"""
        CREATE TABLE IF NOT EXISTS {TABLE_SCHEMA_VERSION}(
            id INTEGER PRIMARY KEY CHECK (id=1),
            version TEXT NOT NULL
        );
    """)
    stored = stored_schema_version(conn)
    if stored is None:
        conn.execute(
            f"INSERT INTO {TABLE_SCHEMA_VERSION}(id, version) VALUES (1, ?);",
            (SCHEMA_VERSION,),
        )
    elif stored != SCHEMA_VERSION:
        _log.info("database schema upgraded from %s to %s", stored, SCHEMA_VERSION)
        conn.execute(
            f"UPDATE {TABLE_SCHEMA_VERSION} SET version=? WHERE id=1;", (SCHEMA_VERSION,)
        )


def stored_schema_version(conn: sqlite3.Connection) -> str | None:
    row = conn.execute(f"SELECT version FROM {TABLE_SCHEMA_VERSION} WHERE id=1;").fetchone()
    return row[0] if row else None


def get_connection(db_path: Path | str | None = None) -> sqlite3.Connection:
    """
    Returns a sqlite3.Connection with:
      - WAL mode
      - foreign_keys ON
      - row_factory = sqlite3.Row (so rows behave like dicts and tuples)
    Ensures the schema and version row are applied idempotently.
    """
    path = Path(db_path) if db_path is not None else DB_PATH
    path.parent.mkdir(parents=True, exist_ok=True)

    # Always apply the schema (idempotent: uses CREATE IF NOT EXISTS / DROP TRIGGER IF EXISTS)
    schema_module.init_schema(path)

    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    conn.execute("PRAGMA journal_mode = WAL;")

    _ensure_version_table(conn)

    conn.commit()
    return conn


__all__ = [
    "get_connection",
    "stored_schema_version",
]
