# src/logging/context.py
"""Contextual logging support: attach run_id, identity, mode and stage to records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Set once per run, then per stage.
_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_identity: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "identity", default=None
)
_mode: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "mode", default=None
)
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)


@dataclass
class LogContext:
    """Snapshot of current logging context."""

    run_id: str | None = None
    identity: str | None = None
    mode: str | None = None
    stage: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        run_id=_run_id.get(),
        identity=_identity.get(),
        mode=_mode.get(),
        stage=_stage.get(),
    )


def set_run_context(run_id: str, identity: str | None = None) -> None:
    """Set run-level context (called once per pipeline run)."""
    _run_id.set(run_id)
    _identity.set(identity)


def set_mode_context(mode: str) -> None:
    _mode.set(mode)


def set_stage_context(stage: str | None) -> None:
    """Set stage-level context (called on every stage transition)."""
    _stage.set(stage)


def clear_context() -> None:
    """Reset all context variables."""
    _run_id.set(None)
    _identity.set(None)
    _mode.set(None)
    _stage.set(None)
