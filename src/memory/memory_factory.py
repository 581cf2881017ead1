# src/memory/memory_factory.py
"""Factory for memory store instantiation."""

from __future__ import annotations

from speechwright.config.settings import Settings
from speechwright.memory.base_memory_store import BaseMemoryStore


def create_memory_store(settings: Settings | None = None) -> BaseMemoryStore | None:
    """Instantiate the configured memory backend, or None when disabled."""
    if settings is None or settings.memory_backend == "none":
        return None

    root = settings.data_root.expanduser()

    if settings.memory_backend == "json":
        from speechwright.memory.json_store import JsonMemoryStore
        return JsonMemoryStore(root / "memory")

    if settings.memory_backend == "sqlite":
        from speechwright.memory.sqlite_store import SqliteMemoryStore
        return SqliteMemoryStore(root / "speechwright.db")

    raise ValueError(f"Unsupported memory backend: {settings.memory_backend!r}")
