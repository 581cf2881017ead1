# src/core/models.py
"""Core domain models: requests, stage outputs and the pipeline result.

Stage outputs are frozen: once a stage has produced a value, later stages
read it but never modify it.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from speechwright.core.text import dedupe

Mode = Literal["generate", "refine"]
RunStatus = Literal["succeeded", "failed", "rejected"]
GuardrailStatus = Literal["ok", "edited", "flagged"]


# === REQUEST ===


class RunHints(BaseModel):
    """Optional structured hints supplied alongside the free-text brief."""

    model_config = ConfigDict(frozen=True)

    audience: str | None = None
    event_context: str | None = None
    tone: str | None = None
    duration: str | None = None
    must_include: list[str] = Field(default_factory=list)
    must_avoid: list[str] = Field(default_factory=list)

    @field_validator("must_include", "must_avoid")
    @classmethod
    def _dedupe(cls, v: list[str]) -> list[str]:
        return dedupe(v)


class Identity(BaseModel):
    """Caller identity: an authenticated id or an anonymous id, never both."""

    model_config = ConfigDict(frozen=True)

    user_id: str | None = None
    anon_id: str | None = None

    @property
    def is_set(self) -> bool:
        return bool(self.user_id or self.anon_id)

    @property
    def is_ambiguous(self) -> bool:
        return bool(self.user_id and self.anon_id)

    @property
    def key(self) -> str | None:
        """Storage key, e.g. ``user:42`` or ``anon:abc``."""
        if self.user_id:
            return f"user:{self.user_id}"
        if self.anon_id:
            return f"anon:{self.anon_id}"
        return None


class RefinementContext(BaseModel):
    """Prior final text and the instruction that produced it."""

    model_config = ConfigDict(frozen=True)

    prior_text: str | None = None
    prior_instruction: str | None = None

    @property
    def is_complete(self) -> bool:
        return bool(
            self.prior_text and self.prior_text.strip()
            and self.prior_instruction and self.prior_instruction.strip()
        )

    @property
    def is_partial(self) -> bool:
        has_text = bool(self.prior_text and self.prior_text.strip())
        has_instruction = bool(
            self.prior_instruction and self.prior_instruction.strip()
        )
        return has_text != has_instruction


class RunRequest(BaseModel):
    """Input to a single pipeline invocation.

    Emptiness and consistency rules are checked by the orchestrator rather
    than at construction, so that a bad request produces a rejected
    ``PipelineResult`` with a distinct trace message.
    """

    model_config = ConfigDict(frozen=True)

    brief: str = ""
    hints: RunHints = Field(default_factory=RunHints)
    identity: Identity = Field(default_factory=Identity)
    refinement: RefinementContext | None = None

    @classmethod
    def build(
        cls,
        brief: str,
        *,
        audience: str | None = None,
        event_context: str | None = None,
        tone: str | None = None,
        duration: str | None = None,
        must_include: list[str] | None = None,
        must_avoid: list[str] | None = None,
        user_id: str | None = None,
        anon_id: str | None = None,
        prior_text: str | None = None,
        prior_instruction: str | None = None,
    ) -> RunRequest:
        """Build a request from flat keyword arguments."""
        refinement = None
        if prior_text is not None or prior_instruction is not None:
            refinement = RefinementContext(
                prior_text=prior_text, prior_instruction=prior_instruction
            )
        return cls(
            brief=brief,
            hints=RunHints(
                audience=audience,
                event_context=event_context,
                tone=tone,
                duration=duration,
                must_include=must_include or [],
                must_avoid=must_avoid or [],
            ),
            identity=Identity(user_id=user_id, anon_id=anon_id),
            refinement=refinement,
        )

    @property
    def prior_text(self) -> str | None:
        if self.refinement is None:
            return None
        return self.refinement.prior_text


# === STAGE OUTPUTS ===


class NormalizedIntent(BaseModel):
    """Structured reading of the brief, produced once per run."""

    model_config = ConfigDict(frozen=True)

    goal: str | None = None
    role: str | None = None
    audience: str | None = None
    intent: str | None = None
    format: str | None = None
    tone: str | None = None
    duration: str | None = None
    event_context: str | None = None
    domains: list[str] = Field(default_factory=list)
    must_include: list[str] = Field(default_factory=list)
    must_avoid: list[str] = Field(default_factory=list)
    source: Literal["model", "heuristic"] = "heuristic"

    @field_validator("domains", "must_include", "must_avoid")
    @classmethod
    def _dedupe(cls, v: list[str]) -> list[str]:
        return dedupe(v)


class Pillar(BaseModel):
    """One structural pillar of the planned speech."""

    model_config = ConfigDict(frozen=True)

    title: str
    summary: str = ""


class PlanConstraints(BaseModel):
    """Authoritative must-include / must-avoid set used by every later stage."""

    model_config = ConfigDict(frozen=True)

    must_include: list[str] = Field(default_factory=list)
    must_avoid: list[str] = Field(default_factory=list)

    @field_validator("must_include", "must_avoid")
    @classmethod
    def _dedupe(cls, v: list[str]) -> list[str]:
        return dedupe(v)

    def merged_with(
        self, must_include: list[str], must_avoid: list[str]
    ) -> PlanConstraints:
        """Return a new constraint set including the extra items."""
        return PlanConstraints(
            must_include=[*self.must_include, *must_include],
            must_avoid=[*self.must_avoid, *must_avoid],
        )


class Plan(BaseModel):
    """Structured plan the drafter and later stages treat as ground truth."""

    model_config = ConfigDict(frozen=True)

    core_message: str
    audience: str = ""
    event_context: str = ""
    tone: str = ""
    duration: str = ""
    pillars: list[Pillar] = Field(default_factory=list)
    constraints: PlanConstraints = Field(default_factory=PlanConstraints)
    is_fallback: bool = False


class CandidatePair(BaseModel):
    """Exactly two non-empty candidate texts."""

    model_config = ConfigDict(frozen=True)

    first: str
    second: str

    @field_validator("first", "second")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("candidate text must be non-empty")
        return v

    def get(self, index: int) -> str:
        """Return candidate 1 or 2."""
        if index == 1:
            return self.first
        if index == 2:
            return self.second
        raise IndexError(f"candidate index must be 1 or 2, got {index}")


class JudgeVerdict(BaseModel):
    """Judge decision, already mapped back to original candidate identity."""

    model_config = ConfigDict(frozen=True)

    winner: Literal[1, 2]
    presented_winner: Literal[1, 2]
    swapped: bool = False
    reason: str = ""
    defaulted: bool = False


class GuardrailOutcome(BaseModel):
    """Result of constraint enforcement on the selected candidate."""

    model_config = ConfigDict(frozen=True)

    status: GuardrailStatus
    text: str
    issues: list[str] = Field(default_factory=list)
    skipped: bool = False

    @model_validator(mode="after")
    def _ok_has_no_issues(self) -> GuardrailOutcome:
        if self.status == "ok" and self.issues:
            raise ValueError("guardrail status 'ok' cannot carry issues")
        return self

    @property
    def needs_review(self) -> bool:
        return self.status == "flagged"


# === TRACE & RESULT ===


class TraceEntry(BaseModel):
    """One (stage, message) pair of the run trace."""

    model_config = ConfigDict(frozen=True)

    stage: str
    message: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class PipelineResult(BaseModel):
    """Externally visible outcome of one run. Built once, never mutated."""

    model_config = ConfigDict(frozen=True)

    run_id: str
    mode: Mode = "generate"
    status: RunStatus
    final_text: str | None = None
    candidates: CandidatePair | None = None
    winner: Literal[1, 2] | None = None
    verdict: JudgeVerdict | None = None
    guardrail: GuardrailOutcome | None = None
    plan: Plan | None = None
    intent: NormalizedIntent | None = None
    presets: list[str] = Field(default_factory=list)
    trace: list[TraceEntry] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status == "succeeded" and self.final_text is not None

    @property
    def failed_stage(self) -> str | None:
        """Stage named by the last trace entry of a failed or rejected run."""
        if self.succeeded or not self.trace:
            return None
        return self.trace[-1].stage
