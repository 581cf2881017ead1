# src/storage/store_factory.py
"""Factory: instantiate the run store from configuration."""

from __future__ import annotations

from speechwright.config.settings import Settings
from speechwright.storage.base_run_store import BaseRunStore


def create_run_store(settings: Settings | None = None) -> BaseRunStore | None:
    """Create the configured run store, or None when persistence is off.

    Raises:
        ValueError: If the backend is not supported.
    """
    if settings is None or settings.run_store_backend == "none":
        return None

    root = settings.data_root.expanduser()

    if settings.run_store_backend == "json":
        from speechwright.storage.json_store import JsonRunStore
        return JsonRunStore(root / "runs")

    if settings.run_store_backend == "sqlite":
        from speechwright.storage.sqlite_store import SqliteRunStore
        return SqliteRunStore(root / "speechwright.db")

    raise ValueError(f"Unsupported run store backend: {settings.run_store_backend!r}")
