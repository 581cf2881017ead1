# src/core/errors.py
"""Exception hierarchy for the speech pipeline.

Stage errors never reach the caller of ``SpeechPipeline.run()``: the
orchestrator converts them into a failed ``PipelineResult`` and a trace entry.
"""

from __future__ import annotations


class SpeechwrightError(Exception):
    """Base class for all speechwright errors."""


class StageError(SpeechwrightError):
    """A pipeline stage could not produce a usable output."""

    stage: str = "pipeline"

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        self.cause = cause
        super().__init__(message)


class PlannerError(StageError):
    """Planner output did not parse into a Plan."""

    stage = "planner"


class DrafterError(StageError):
    """Drafter could not produce two non-empty candidates."""

    stage = "drafter"


class StoreError(SpeechwrightError):
    """Persistence or memory backend failure."""
