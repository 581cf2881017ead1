# src/pipeline/state.py
"""Run-scoped state: the context every stage receives, and the working record
the orchestrator fills in before freezing it into a ``PipelineResult``.
"""

from __future__ import annotations

import random
import uuid
from dataclasses import dataclass, field
from typing import Literal

from speechwright.core.models import (
    CandidatePair,
    GuardrailOutcome,
    JudgeVerdict,
    Mode,
    NormalizedIntent,
    Plan,
    PipelineResult,
    RunRequest,
    RunStatus,
)
from speechwright.memory.models import MemoryProfile
from speechwright.pipeline.trace import TraceLog
from speechwright.tracking.call_logger import CallLogger


@dataclass
class RunContext:
    """Per-run collaborators shared by all stages. Never shared across runs."""

    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    trace: TraceLog = field(default_factory=TraceLog)
    call_logger: CallLogger = field(default_factory=CallLogger)
    rng: random.Random = field(default_factory=random.Random)

    @classmethod
    def create(cls, seed: int | None = None) -> RunContext:
        """New context; ``seed`` makes the judge permutation reproducible."""
        return cls(rng=random.Random(seed))


@dataclass
class RunState:
    """Mutable working record of one run, filled in stage by stage."""

    request: RunRequest
    context: RunContext
    mode: Mode = "generate"
    memory: MemoryProfile | None = None
    intent: NormalizedIntent | None = None
    presets: list[str] = field(default_factory=list)
    plan: Plan | None = None
    candidates: CandidatePair | None = None
    verdict: JudgeVerdict | None = None
    guardrail: GuardrailOutcome | None = None
    final_text: str | None = None
    status: RunStatus = "succeeded"

    @property
    def trace(self) -> TraceLog:
        return self.context.trace

    @property
    def run_id(self) -> str:
        return self.context.run_id

    def fail(self, status: Literal["failed", "rejected"] = "failed") -> None:
        self.status = status
        self.final_text = None

    def to_result(self) -> PipelineResult:
        """Freeze the working record into the caller-facing result."""
        return PipelineResult(
            run_id=self.run_id,
            mode=self.mode,
            status=self.status,
            final_text=self.final_text,
            candidates=self.candidates,
            winner=self.verdict.winner if self.verdict else None,
            verdict=self.verdict,
            guardrail=self.guardrail,
            plan=self.plan,
            intent=self.intent,
            presets=list(self.presets),
            trace=self.trace.snapshot(),
        )
