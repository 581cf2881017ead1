# src/pipeline/agents/guardrail.py
"""Guardrail: enforce plan constraints on the winning candidate.

must_avoid is strict: a literal that survives the model pass flags the
run. must_include is soft: the model may weave in a generic mention but
never new facts. Never fatal: an unavailable guardrail applies the
configured fail-open / fail-closed policy.
"""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING, Any

from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator

from speechwright.core.models import GuardrailOutcome, Plan, PlanConstraints
from speechwright.core.text import normalize_ws, strip_code_fence
from speechwright.pipeline.plugin_kit.base_agent import BaseAgent

if TYPE_CHECKING:
    from speechwright.llm.base_client import BaseLLMClient
    from speechwright.pipeline.state import RunContext

logger = logging.getLogger(__name__)

UNAVAILABLE_ISSUE = "guardrail unavailable"
GENERIC_EDIT_ISSUE = "minor edits applied to meet constraints"
GENERIC_FLAG_ISSUE = "unresolved concern flagged for review"

_NO_ISSUE_MARKERS = frozenset({"ok", "none", "no issues", "no issues found", "n/a"})


class GuardrailPayload(BaseModel):
    adjusted_draft: str = Field(
        default="", validation_alias=AliasChoices("adjusted_draft", "adjustedDraft", "text")
    )
    issues: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("issues", "issues_summary")
    )
    flagged: bool = False

    @field_validator("adjusted_draft", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("issues", mode="before")
    @classmethod
    def _coerce_issues(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        return [
            str(item).strip()
            for item in v
            if str(item).strip()
            and str(item).strip().lower().rstrip(".") not in _NO_ISSUE_MARKERS
        ]


def _contains_phrase(text: str, phrase: str) -> bool:
    # Whole words only: "AI" must not hit "said".
    pattern = rf"(?<!\w){re.escape(phrase.strip())}(?!\w)"
    return re.search(pattern, text, re.IGNORECASE) is not None


def find_violations(text: str, must_avoid: list[str]) -> list[str]:
    """Must-avoid items that appear as whole words (case-insensitive) in ``text``."""
    return [item for item in must_avoid if item and item.strip() and _contains_phrase(text, item)]


def _violation_issues(violations: list[str]) -> list[str]:
    return [f"must-avoid still present: {item}" for item in violations]


class GuardrailAgent(BaseAgent):
    """Apply minimal edits so the text respects the plan constraints."""

    def __init__(self, temperature: float = 0.2, max_tokens: int = 4096) -> None:
        super().__init__(temperature=temperature, max_tokens=max_tokens)

    @property
    def name(self) -> str:
        return "guardrail"

    @property
    def description(self) -> str:
        return "Enforce must-avoid strictly and must-include softly with minimal edits"

    def _unavailable(
        self, constraints: PlanConstraints, text: str, ctx: RunContext, fail_open: bool
    ) -> GuardrailOutcome:
        violations = find_violations(text, constraints.must_avoid)
        if violations:
            outcome = GuardrailOutcome(
                status="flagged", text=text, issues=_violation_issues(violations), skipped=True
            )
        elif fail_open:
            outcome = GuardrailOutcome(status="ok", text=text, skipped=True)
        else:
            outcome = GuardrailOutcome(
                status="flagged", text=text, issues=[UNAVAILABLE_ISSUE], skipped=True
            )
        policy = "fail-open" if fail_open else "fail-closed"
        ctx.trace.record(self.name, f"skipped ({policy}): status {outcome.status}")
        return outcome

    async def enforce(
        self,
        constraints: PlanConstraints,
        text: str,
        llm: BaseLLMClient,
        ctx: RunContext,
        plan: Plan | None = None,
        fail_open: bool = True,
    ) -> GuardrailOutcome:
        payload: dict[str, Any] = {
            "constraints": constraints.model_dump(),
            "draft": text,
        }
        if plan is not None:
            payload["plan"] = plan.model_dump(include={"audience", "event_context", "tone"})

        try:
            response = await self._call(llm, payload, ctx, response_format=GuardrailPayload)
        except Exception as exc:
            logger.warning("Guardrail call failed: %s", exc)
            return self._unavailable(constraints, text, ctx, fail_open)

        try:
            parsed = GuardrailPayload.model_validate(self._parse_json(response.content))
        except (json.JSONDecodeError, ValidationError, ValueError) as exc:
            logger.warning("Guardrail output invalid: %s", exc)
            return self._unavailable(constraints, text, ctx, fail_open)

        adjusted = strip_code_fence(parsed.adjusted_draft)
        changed = bool(adjusted) and normalize_ws(adjusted) != normalize_ws(text)
        result_text = adjusted if changed else text

        violations = find_violations(result_text, constraints.must_avoid)
        if parsed.flagged or violations:
            issues = [*parsed.issues, *_violation_issues(violations)] or [GENERIC_FLAG_ISSUE]
            outcome = GuardrailOutcome(status="flagged", text=result_text, issues=issues)
        elif changed:
            outcome = GuardrailOutcome(
                status="edited", text=result_text, issues=parsed.issues or [GENERIC_EDIT_ISSUE]
            )
        else:
            if parsed.issues:
                logger.debug("Guardrail reported issues without edits: %s", parsed.issues)
            outcome = GuardrailOutcome(status="ok", text=result_text)

        message = f"status {outcome.status}"
        if outcome.issues:
            message += f": {'; '.join(outcome.issues)}"
        ctx.trace.record(self.name, message)
        return outcome
