# src/storage/json_store.py
"""JSON Lines run store (RUN_STORE_BACKEND=json).

Appends one line per run to ``<root>/<identity>.jsonl`` and one line per
feedback entry to ``<root>/<identity>.feedback.jsonl``.
"""

from __future__ import annotations

import logging
from pathlib import Path

from speechwright.core.models import Identity
from speechwright.storage.base_run_store import BaseRunStore
from speechwright.storage.models import SavedRun, SpeechFeedback

logger = logging.getLogger(__name__)


class JsonRunStore(BaseRunStore):
    """File-based run history."""

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)

    async def _insert(self, run: SavedRun) -> None:
        self._append(self._history_path(run.identity), run.model_dump_json())

    async def _insert_feedback(self, feedback: SpeechFeedback) -> None:
        self._append(self._history_path(feedback.identity, "feedback"), feedback.model_dump_json())

    async def list_runs(self, identity: Identity, limit: int = 20) -> list[SavedRun]:
        key = identity.key
        if key is None:
            return []
        path = self._history_path(key)
        if not path.exists():
            return []

        runs: list[SavedRun] = []
        for line_no, line in enumerate(path.read_text(encoding="utf-8").splitlines(), 1):
            if not line.strip():
                continue
            try:
                runs.append(SavedRun.model_validate_json(line))
            except ValueError as e:
                logger.warning("Skipping malformed run record %s:%d: %s", path.name, line_no, e)
        runs.sort(key=lambda r: r.created_at, reverse=True)
        return runs[:limit]

    async def list_feedback(self, identity: Identity) -> list[SpeechFeedback]:
        key = identity.key
        if key is None:
            return []
        path = self._history_path(key, "feedback")
        if not path.exists():
            return []
        entries: list[SpeechFeedback] = []
        for line_no, line in enumerate(path.read_text(encoding="utf-8").splitlines(), 1):
            if not line.strip():
                continue
            try:
                entries.append(SpeechFeedback.model_validate_json(line))
            except ValueError as e:
                logger.warning("Skipping malformed feedback %s:%d: %s", path.name, line_no, e)
        return entries

    @staticmethod
    def _append(path: Path, line: str) -> None:
        with path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")

    def _history_path(self, key: str, kind: str | None = None) -> Path:
        safe_key = key.replace("/", "_").replace("\\", "_").replace(":", "_")
        suffix = f".{kind}.jsonl" if kind else ".jsonl"
        return self._root / f"{safe_key}{suffix}"
