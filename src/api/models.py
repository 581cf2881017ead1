# src/api/models.py
"""API-level models: GenerateRequest, GenerateResponse, FeedbackRequest and friends.

Field names follow the web payload (camelCase); snake_case is accepted too.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from speechwright.core.models import Identity, PipelineResult, RunRequest, TraceEntry
from speechwright.core.text import split_list


class ConfigOverrides(BaseModel):
    """Per-request overrides: a validated subset of Settings."""

    drafter_mode: Literal["split", "combined"] | None = None
    planner_strict: bool | None = None
    guardrail_fail_open: bool | None = None
    judge_seed: int | None = None
    llm_default_model: str | None = None


class GenerateRequest(BaseModel):
    """Web-layer request body."""

    model_config = ConfigDict(populate_by_name=True)

    brief: str = ""
    audience: str | None = None
    event_context: str | None = Field(default=None, alias="eventContext")
    tone: str | None = None
    duration: str | None = None
    key_points: str | list[str] | None = Field(default=None, alias="keyPoints")
    red_lines: str | list[str] | None = Field(default=None, alias="redLines")
    user_id: str | None = Field(default=None, alias="userId")
    anon_id: str | None = Field(default=None, alias="anonId")
    previous_version_text: str | None = Field(default=None, alias="previousVersionText")
    previous_request_text: str | None = Field(default=None, alias="previousRequestText")
    config_overrides: ConfigOverrides | None = Field(default=None, alias="configOverrides")

    def to_run_request(self) -> RunRequest:
        """Convert to the pipeline request. Free-text lists split on newlines/semicolons."""
        return RunRequest.build(
            self.brief,
            audience=self.audience or None,
            event_context=self.event_context or None,
            tone=self.tone or None,
            duration=self.duration or None,
            must_include=split_list(self.key_points),
            must_avoid=split_list(self.red_lines),
            user_id=self.user_id or None,
            anon_id=self.anon_id or None,
            prior_text=self.previous_version_text or None,
            prior_instruction=self.previous_request_text or None,
        )


class DraftsView(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    draft_1: str = Field(alias="draft1")
    draft_2: str = Field(alias="draft2")
    winner: Literal[1, 2] | None = None


class JudgeView(BaseModel):
    winner: Literal[1, 2]
    reason: str


class GenerateResponse(BaseModel):
    """Caller-facing payload built from a PipelineResult."""

    model_config = ConfigDict(populate_by_name=True)

    run_id: str = Field(alias="runId")
    mode: Literal["generate", "refine"]
    status: Literal["succeeded", "failed", "rejected"]
    final_speech: str | None = Field(default=None, alias="finalSpeech")
    drafts: DraftsView | None = None
    judge: JudgeView | None = None
    guardrail_status: str | None = Field(default=None, alias="guardrailStatus")
    needs_review: bool = Field(default=False, alias="needsReview")
    issues: list[str] = Field(default_factory=list)
    presets: list[str] = Field(default_factory=list)
    trace: list[TraceEntry] = Field(default_factory=list)
    error: str | None = None

    @classmethod
    def from_result(cls, result: PipelineResult) -> GenerateResponse:
        drafts = None
        if result.candidates is not None:
            drafts = DraftsView(
                draft_1=result.candidates.first,
                draft_2=result.candidates.second,
                winner=result.winner,
            )
        judge = None
        if result.verdict is not None:
            judge = JudgeView(winner=result.verdict.winner, reason=result.verdict.reason)

        error = None
        if result.status == "rejected":
            error = result.trace[-1].message if result.trace else "rejected"
        elif result.status == "failed":
            error = "Pipeline completed without a final speech."

        guardrail = result.guardrail
        return cls(
            run_id=result.run_id,
            mode=result.mode,
            status=result.status,
            final_speech=result.final_text,
            drafts=drafts,
            judge=judge,
            guardrail_status=guardrail.status if guardrail else None,
            needs_review=guardrail.needs_review if guardrail else False,
            issues=list(guardrail.issues) if guardrail else [],
            presets=list(result.presets),
            trace=list(result.trace),
            error=error,
        )


def _coerce_choice(value: Any) -> Any:
    # Web payloads send "draft1" / "draft2".
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("draft1", "draft_1", "1"):
            return 1
        if lowered in ("draft2", "draft_2", "2"):
            return 2
    return value


class FeedbackRequest(BaseModel):
    """Caller's preferred draft for a saved run."""

    model_config = ConfigDict(populate_by_name=True)

    run_id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("runId", "speechId", "run_id"),
        serialization_alias="runId",
    )
    judge_winner: Literal[1, 2] = Field(alias="judgeWinner")
    user_choice: Literal[1, 2] = Field(alias="userChoice")
    user_id: str | None = Field(default=None, alias="userId")
    anon_id: str | None = Field(default=None, alias="anonId")

    @field_validator("judge_winner", "user_choice", mode="before")
    @classmethod
    def _choice(cls, v: Any) -> Any:
        return _coerce_choice(v)

    @property
    def identity(self) -> Identity:
        return Identity(user_id=self.user_id or None, anon_id=self.anon_id or None)


class FeedbackResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    feedback_id: str = Field(alias="feedbackId")
    agreement: bool
