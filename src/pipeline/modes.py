# src/pipeline/modes.py
"""Generate-vs-refine mode selection."""

from __future__ import annotations

from typing import Iterable

from speechwright.core.models import Mode, RunRequest

DEFAULT_TRIGGERS: tuple[str, ...] = (
    "new speech",
    "start again",
    "start over",
    "fresh speech",
    "fresh talk",
    "ignore the previous",
    "ignore the last",
    "different topic",
    "different subject",
)


def looks_like_new_request(instruction: str, triggers: Iterable[str] = DEFAULT_TRIGGERS) -> bool:
    """True when the instruction asks to start over (case-insensitive)."""
    lowered = instruction.lower()
    return any(t.lower() in lowered for t in triggers if t)


def choose_mode(request: RunRequest, triggers: Iterable[str] = DEFAULT_TRIGGERS) -> Mode:
    """Refine only with a complete prior context and no start-over phrase."""
    if request.refinement is None or not request.refinement.is_complete:
        return "generate"
    if looks_like_new_request(request.brief, triggers):
        return "generate"
    return "refine"
