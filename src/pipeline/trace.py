# src/pipeline/trace.py
"""Append-only trace of stage transitions for one run.

The trace is for observability only: nothing in the pipeline branches on it.
Every entry is mirrored to the ``speechwright.pipeline.trace`` logger.
"""

from __future__ import annotations

import logging
from typing import Iterator

from speechwright.core.models import TraceEntry
from speechwright.logging.context import set_stage_context

logger = logging.getLogger(__name__)


class TraceLog:
    """Ordered, append-only sequence of (stage, message) entries."""

    def __init__(self) -> None:
        self._entries: list[TraceEntry] = []

    def record(self, stage: str, message: str) -> TraceEntry:
        """Append an entry and log it."""
        entry = TraceEntry(stage=stage, message=message)
        self._entries.append(entry)
        set_stage_context(stage)
        logger.info("%s: %s", stage, message)
        return entry

    @property
    def entries(self) -> tuple[TraceEntry, ...]:
        return tuple(self._entries)

    @property
    def last(self) -> TraceEntry | None:
        return self._entries[-1] if self._entries else None

    def stages(self) -> list[str]:
        """Stage names in recording order (with repeats)."""
        return [e.stage for e in self._entries]

    def snapshot(self) -> list[TraceEntry]:
        """Copy of the entries, for persistence and the final result."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TraceEntry]:
        return iter(tuple(self._entries))
