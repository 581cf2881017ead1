# src/memory/sqlite_store.py
"""SQLite-based memory store (MEMORY_BACKEND=sqlite).

Uses stdlib sqlite3. One row per identity; traits stored as JSON.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from speechwright.core.models import Identity
from speechwright.memory.base_memory_store import BaseMemoryStore
from speechwright.memory.models import MemoryProfile

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS speechwriter_memory (
    identity TEXT PRIMARY KEY,
    data TEXT NOT NULL,
    runs_count INTEGER NOT NULL DEFAULT 0,
    last_updated TEXT DEFAULT CURRENT_TIMESTAMP
);
"""


class SqliteMemoryStore(BaseMemoryStore):
    """SQLite-backed trait profiles."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.executescript(_SCHEMA)

    async def load_traits(self, identity: Identity) -> MemoryProfile | None:
        key = identity.key
        if key is None:
            return None
        row = self._conn.execute(
            "SELECT data FROM speechwriter_memory WHERE identity = ?", (key,)
        ).fetchone()
        if row is None:
            return None
        return MemoryProfile.model_validate_json(row[0])

    async def _write_profile(self, profile: MemoryProfile) -> None:
        self._conn.execute(
            """INSERT OR REPLACE INTO speechwriter_memory
               (identity, data, runs_count, last_updated)
               VALUES (?, ?, ?, CURRENT_TIMESTAMP)""",
            (profile.identity, profile.model_dump_json(), profile.runs_count),
        )
        self._conn.commit()

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
