# src/storage/models.py
"""Storage domain models: SavedRun, SpeechFeedback."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

from speechwright.core.models import CandidatePair, JudgeVerdict, TraceEntry

DraftChoice = Literal[1, 2]


class SavedRun(BaseModel):
    """One persisted run, keyed by caller identity."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    identity: str
    brief: str
    final_text: str | None = None
    draft_1: str | None = None
    draft_2: str | None = None
    winner: int | None = None
    judge_reason: str | None = None
    trace: list[TraceEntry] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_run(
        cls,
        identity: str,
        brief: str,
        final_text: str | None,
        candidates: CandidatePair | None,
        verdict: JudgeVerdict | None,
        trace: list[TraceEntry],
        run_id: str | None = None,
    ) -> SavedRun:
        extra = {"id": run_id} if run_id else {}
        return cls(
            identity=identity,
            brief=brief,
            final_text=final_text,
            draft_1=candidates.first if candidates else None,
            draft_2=candidates.second if candidates else None,
            winner=verdict.winner if verdict else None,
            judge_reason=verdict.reason if verdict else None,
            trace=trace,
            **extra,
        )


class SpeechFeedback(BaseModel):
    """The caller's preferred draft recorded against the judge's pick."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    run_id: str = Field(min_length=1)
    identity: str
    judge_winner: DraftChoice
    user_choice: DraftChoice
    agreement: bool
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
