# src/memory/json_store.py
"""JSON file-based memory store (MEMORY_BACKEND=json).

One JSON file per identity under ``<data_root>/memory``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from speechwright.core.errors import StoreError
from speechwright.core.models import Identity
from speechwright.memory.base_memory_store import BaseMemoryStore
from speechwright.memory.models import MemoryProfile

logger = logging.getLogger(__name__)


class JsonMemoryStore(BaseMemoryStore):
    """File-based trait profiles."""

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)

    async def load_traits(self, identity: Identity) -> MemoryProfile | None:
        key = identity.key
        if key is None:
            return None
        path = self._profile_path(key)
        if not path.exists():
            return None
        try:
            return MemoryProfile(**json.loads(path.read_text(encoding="utf-8")))
        except (json.JSONDecodeError, ValueError) as e:
            raise StoreError(f"Corrupt memory profile for {key}: {e}") from e

    async def _write_profile(self, profile: MemoryProfile) -> None:
        path = self._profile_path(profile.identity)
        path.write_text(profile.model_dump_json(indent=2), encoding="utf-8")
        logger.debug("Wrote memory profile %s (runs=%d)", profile.identity, profile.runs_count)

    def _profile_path(self, key: str) -> Path:
        safe_key = key.replace("/", "_").replace("\\", "_").replace(":", "_")
        return self._root / f"{safe_key}.json"
