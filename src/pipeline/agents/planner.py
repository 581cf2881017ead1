# src/pipeline/agents/planner.py
"""Planner: NormalizedIntent + presets + memory -> Plan.

The reply must parse into the exact plan shape. Anything else raises
``PlannerError``; the orchestrator decides between ``fallback_plan`` and
terminating the run.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from pydantic import AliasChoices, BaseModel, Field, ValidationError

from speechwright.core.errors import PlannerError
from speechwright.core.models import NormalizedIntent, Pillar, Plan, PlanConstraints
from speechwright.core.text import truncate
from speechwright.pipeline.plugin_kit.base_agent import BaseAgent
from speechwright.pipeline.presets import describe_preset

if TYPE_CHECKING:
    from speechwright.llm.base_client import BaseLLMClient
    from speechwright.memory.models import MemoryProfile
    from speechwright.pipeline.state import RunContext

logger = logging.getLogger(__name__)


class ConstraintsPayload(BaseModel):
    must_include: list[str] = Field(validation_alias=AliasChoices("must_include", "mustInclude"))
    must_avoid: list[str] = Field(validation_alias=AliasChoices("must_avoid", "mustAvoid"))


class PillarPayload(BaseModel):
    title: str
    summary: str = ""


class PlanPayload(BaseModel):
    """Exact plan shape requested from the model (camelCase keys accepted)."""

    core_message: str = Field(validation_alias=AliasChoices("core_message", "coreMessage"))
    audience: str
    event_context: str = Field(validation_alias=AliasChoices("event_context", "eventContext"))
    tone: str
    duration: str
    pillars: list[PillarPayload]
    constraints: ConstraintsPayload

    def to_plan(self) -> Plan:
        return Plan(
            core_message=self.core_message.strip(),
            audience=self.audience.strip(),
            event_context=self.event_context.strip(),
            tone=self.tone.strip(),
            duration=self.duration.strip(),
            pillars=[
                Pillar(title=p.title.strip(), summary=p.summary.strip())
                for p in self.pillars
                if p.title.strip()
            ],
            constraints=PlanConstraints(
                must_include=self.constraints.must_include,
                must_avoid=self.constraints.must_avoid,
            ),
        )


def fallback_plan(raw_brief: str, intent: NormalizedIntent, max_chars: int = 280) -> Plan:
    """Minimal plan used when the planner reply is unusable."""
    return Plan(
        core_message=truncate(raw_brief.strip(), max_chars),
        audience=intent.audience or "",
        event_context=intent.event_context or "",
        tone=intent.tone or "",
        duration=intent.duration or "",
        pillars=[],
        constraints=PlanConstraints(
            must_include=intent.must_include,
            must_avoid=intent.must_avoid,
        ),
        is_fallback=True,
    )


def build_planner_payload(
    raw_brief: str,
    intent: NormalizedIntent,
    presets: list[str],
    memory: MemoryProfile | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "brief": raw_brief,
        "intent": intent.model_dump(
            exclude={"must_include", "must_avoid", "source"}, exclude_none=True
        ),
        "constraints": {
            "must_include": intent.must_include,
            "must_avoid": intent.must_avoid,
        },
        "presets": [{"id": p, "label": describe_preset(p)} for p in presets],
    }
    if memory is not None:
        payload["memory_hints"] = memory.as_hints()
    return payload


class PlannerAgent(BaseAgent):
    """Produce the structured plan every later stage follows."""

    @property
    def name(self) -> str:
        return "planner"

    @property
    def description(self) -> str:
        return "Plan core message, pillars and constraints for one speech"

    async def plan(
        self,
        intent: NormalizedIntent,
        presets: list[str],
        raw_brief: str,
        llm: BaseLLMClient,
        ctx: RunContext,
        memory: MemoryProfile | None = None,
    ) -> Plan:
        """Request a plan.

        Raises:
            PlannerError: If the call fails or the reply does not match the plan shape.
        """
        payload = build_planner_payload(raw_brief, intent, presets, memory)
        try:
            response = await self._call(llm, payload, ctx, response_format=PlanPayload)
        except Exception as exc:
            raise PlannerError(f"planner call failed: {exc}", cause=exc) from exc

        try:
            plan = PlanPayload.model_validate(self._parse_json(response.content)).to_plan()
        except (json.JSONDecodeError, ValidationError, ValueError) as exc:
            logger.warning("Planner output did not match plan shape: %s", exc)
            raise PlannerError(f"planner output invalid: {exc}", cause=exc) from exc

        if not plan.core_message:
            raise PlannerError("planner output has an empty core message")

        ctx.trace.record(
            self.name,
            f"plan ready: {len(plan.pillars)} pillars, "
            f"{len(plan.constraints.must_include)} must-include, "
            f"{len(plan.constraints.must_avoid)} must-avoid",
        )
        return plan
