# src/storage/sqlite_store.py
"""SQLite run store (RUN_STORE_BACKEND=sqlite).

Uses stdlib sqlite3. The full record is kept as JSON next to the indexed
identity and timestamp columns.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from speechwright.core.models import Identity
from speechwright.storage.base_run_store import BaseRunStore
from speechwright.storage.models import SavedRun, SpeechFeedback

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS speeches (
    id TEXT PRIMARY KEY,
    identity TEXT NOT NULL,
    created_at TEXT NOT NULL,
    data TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_speeches_identity ON speeches(identity, created_at);

CREATE TABLE IF NOT EXISTS speech_feedback (
    id TEXT PRIMARY KEY,
    run_id TEXT NOT NULL,
    identity TEXT NOT NULL,
    judge_winner INTEGER NOT NULL,
    user_choice INTEGER NOT NULL,
    agreement INTEGER NOT NULL,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_feedback_identity ON speech_feedback(identity, created_at);
"""


class SqliteRunStore(BaseRunStore):
    """SQLite-backed run history."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    async def _insert(self, run: SavedRun) -> None:
        self._conn.execute(
            "INSERT INTO speeches (id, identity, created_at, data) VALUES (?, ?, ?, ?)",
            (run.id, run.identity, run.created_at.isoformat(), run.model_dump_json()),
        )
        self._conn.commit()

    async def _insert_feedback(self, feedback: SpeechFeedback) -> None:
        self._conn.execute(
            """INSERT INTO speech_feedback
               (id, run_id, identity, judge_winner, user_choice, agreement, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                feedback.id,
                feedback.run_id,
                feedback.identity,
                feedback.judge_winner,
                feedback.user_choice,
                int(feedback.agreement),
                feedback.created_at.isoformat(),
            ),
        )
        self._conn.commit()

    async def list_runs(self, identity: Identity, limit: int = 20) -> list[SavedRun]:
        key = identity.key
        if key is None:
            return []
        cursor = self._conn.execute(
            "SELECT data FROM speeches WHERE identity = ? ORDER BY created_at DESC LIMIT ?",
            (key, limit),
        )
        runs: list[SavedRun] = []
        for (data,) in cursor.fetchall():
            try:
                runs.append(SavedRun.model_validate_json(data))
            except ValueError as e:
                logger.warning("Skipping malformed run record: %s", e)
        return runs

    async def list_feedback(self, identity: Identity) -> list[SpeechFeedback]:
        key = identity.key
        if key is None:
            return []
        cursor = self._conn.execute(
            """SELECT id, run_id, identity, judge_winner, user_choice, agreement, created_at
               FROM speech_feedback WHERE identity = ? ORDER BY created_at, rowid""",
            (key,),
        )
        return [
            SpeechFeedback(
                id=row[0],
                run_id=row[1],
                identity=row[2],
                judge_winner=row[3],
                user_choice=row[4],
                agreement=bool(row[5]),
                created_at=row[6],
            )
            for row in cursor.fetchall()
        ]

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
