# tests/unit/pipeline/agents/test_planner.py
"""Tests for PlannerAgent, the plan payload and the fallback plan."""

from __future__ import annotations

import pytest

from speechwright.core.errors import PlannerError
from speechwright.memory.models import MemoryProfile
from speechwright.pipeline.agents.planner import (
    PlannerAgent,
    build_planner_payload,
    fallback_plan,
)
from llm_stubs import PLAN_JSON, mock_client

BRIEF = "Write a warm thank-you speech to my engineers."


class TestFallbackPlan:
    def test_shape(self, sample_intent):
        plan = fallback_plan(BRIEF, sample_intent)
        assert plan.is_fallback
        assert plan.core_message == BRIEF
        assert plan.pillars == []
        assert plan.constraints.must_avoid == ["layoffs"]
        assert plan.audience == "engineers"

    def test_truncates(self, sample_intent):
        plan = fallback_plan("x" * 500, sample_intent, max_chars=50)
        assert len(plan.core_message) <= 51


class TestBuildPlannerPayload:
    def test_includes_presets_and_constraints(self, sample_intent):
        payload = build_planner_payload(BRIEF, sample_intent, ["team_appreciation"])
        assert payload["presets"] == [
            {"id": "team_appreciation", "label": "Team appreciation / end-of-year"}
        ]
        assert payload["constraints"]["must_avoid"] == ["layoffs"]
        assert "source" not in payload["intent"]
        assert "memory_hints" not in payload

    def test_memory_hints(self, sample_intent):
        memory = MemoryProfile(identity="user:1", tone_preferences=["warm"], runs_count=3)
        payload = build_planner_payload(BRIEF, sample_intent, [], memory)
        assert payload["memory_hints"] == {"tone_preferences": ["warm"]}


class TestPlannerAgent:
    @pytest.mark.asyncio
    async def test_valid_plan(self, sample_intent, ctx):
        plan = await PlannerAgent().plan(sample_intent, [], BRIEF, mock_client(PLAN_JSON), ctx)
        assert plan.core_message == PLAN_JSON["core_message"]
        assert [p.title for p in plan.pillars] == ["The launch", "The people"]
        assert not plan.is_fallback
        assert ctx.trace.last.message.startswith("plan ready: 2 pillars")

    @pytest.mark.asyncio
    async def test_camel_case_keys(self, sample_intent, ctx):
        data = dict(PLAN_JSON)
        data["coreMessage"] = data.pop("core_message")
        data["eventContext"] = data.pop("event_context")
        data["constraints"] = {"mustInclude": [], "mustAvoid": ["jargon"]}
        plan = await PlannerAgent().plan(sample_intent, [], BRIEF, mock_client(data), ctx)
        assert plan.constraints.must_avoid == ["jargon"]

    @pytest.mark.asyncio
    async def test_missing_field_raises(self, sample_intent, ctx):
        data = {k: v for k, v in PLAN_JSON.items() if k != "pillars"}
        with pytest.raises(PlannerError, match="planner output invalid"):
            await PlannerAgent().plan(sample_intent, [], BRIEF, mock_client(data), ctx)

    @pytest.mark.asyncio
    async def test_non_json_raises(self, sample_intent, ctx):
        with pytest.raises(PlannerError):
            await PlannerAgent().plan(sample_intent, [], BRIEF, mock_client("A great plan!"), ctx)

    @pytest.mark.asyncio
    async def test_empty_core_message_raises(self, sample_intent, ctx):
        data = dict(PLAN_JSON, core_message="   ")
        with pytest.raises(PlannerError, match="empty core message"):
            await PlannerAgent().plan(sample_intent, [], BRIEF, mock_client(data), ctx)

    @pytest.mark.asyncio
    async def test_call_failure_raises(self, sample_intent, ctx):
        with pytest.raises(PlannerError, match="planner call failed") as info:
            await PlannerAgent().plan(
                sample_intent, [], BRIEF, mock_client(TimeoutError("slow")), ctx
            )
        assert isinstance(info.value.cause, TimeoutError)
        assert info.value.stage == "planner"
