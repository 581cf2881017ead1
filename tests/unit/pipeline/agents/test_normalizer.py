# tests/unit/pipeline/agents/test_normalizer.py
"""Tests for BriefNormalizer and the keyword heuristic."""

from __future__ import annotations

import pytest

from speechwright.core.models import RunHints
from speechwright.pipeline.agents.normalizer import (
    BriefNormalizer,
    IntentPayload,
    heuristic_intent,
    merge_intent,
)
from llm_stubs import mock_client

BRIEF = "I'm the CEO. Write a warm thank-you speech to my engineers for our startup's year."


class TestHeuristicIntent:
    def test_keywords(self):
        intent = heuristic_intent(BRIEF)
        assert intent.role == "ceo"
        assert intent.audience == "engineers"
        assert intent.intent == "thank"
        assert intent.format == "speech"
        assert "startup" in intent.domains
        assert intent.source == "heuristic"

    def test_goal_is_first_sentence(self):
        assert heuristic_intent(BRIEF).goal == "I'm the CEO."

    def test_goal_truncated(self):
        intent = heuristic_intent("word " * 100)
        assert len(intent.goal) <= 201

    def test_word_boundary(self):
        # "board" must not match inside "keyboard"
        assert heuristic_intent("A talk about keyboard shortcuts").audience is None

    def test_hints_win(self):
        hints = RunHints(audience="the board", tone="sober", must_avoid=["layoffs"])
        intent = heuristic_intent(BRIEF, hints)
        assert intent.audience == "the board"
        assert intent.tone == "sober"
        assert intent.must_avoid == ["layoffs"]

    def test_no_signals(self):
        intent = heuristic_intent("Hello there")
        assert intent.role is None
        assert intent.domains == []


class TestIntentPayload:
    def test_string_lists_coerced(self):
        payload = IntentPayload.model_validate({"must_include": "a; b", "domains": None})
        assert payload.must_include == ["a", "b"]
        assert payload.domains == []

    def test_blank_to_none(self):
        assert IntentPayload.model_validate({"role": "  "}).role is None


class TestMergeIntent:
    def test_hints_override_model(self):
        hints = RunHints(audience="investors", must_include=["the Q3 numbers"])
        fallback = heuristic_intent(BRIEF, hints)
        payload = IntentPayload(audience="engineers", role="CEO", must_include=["thanks"])
        merged = merge_intent(payload, fallback, hints)
        assert merged.audience == "investors"
        assert merged.role == "ceo"
        assert merged.must_include == ["the Q3 numbers", "thanks"]
        assert merged.source == "model"

    def test_fallback_fills_gaps(self):
        fallback = heuristic_intent(BRIEF)
        merged = merge_intent(IntentPayload(), fallback, RunHints())
        assert merged.format == "speech"
        assert merged.goal == fallback.goal


class TestBriefNormalizer:
    @pytest.mark.asyncio
    async def test_model_output(self, ctx):
        llm = mock_client({"role": "founder", "audience": "team", "intent": "motivate"})
        intent = await BriefNormalizer().normalize(BRIEF, None, llm, ctx)
        assert intent.role == "founder"
        assert intent.source == "model"
        assert ctx.trace.last.stage == "normalizer"
        assert ctx.trace.last.message.startswith("parsed brief: role=founder")
        assert ctx.call_logger.total_calls == 1

    @pytest.mark.asyncio
    async def test_fenced_output(self, ctx):
        llm = mock_client('```json\n{"role": "student"}\n```')
        intent = await BriefNormalizer().normalize(BRIEF, None, llm, ctx)
        assert intent.role == "student"

    @pytest.mark.asyncio
    async def test_call_failure_uses_heuristic(self, ctx):
        llm = mock_client(RuntimeError("boom"))
        intent = await BriefNormalizer().normalize(BRIEF, None, llm, ctx)
        assert intent.source == "heuristic"
        assert intent.role == "ceo"
        assert "model unavailable" in ctx.trace.last.message
        assert ctx.call_logger.usage().failed_calls == 1

    @pytest.mark.asyncio
    async def test_junk_output_uses_heuristic(self, ctx):
        llm = mock_client("Sure! Here is the intent you asked for.")
        intent = await BriefNormalizer().normalize(BRIEF, None, llm, ctx)
        assert intent.source == "heuristic"
        assert "unparseable output" in ctx.trace.last.message

    @pytest.mark.asyncio
    async def test_hints_sent_to_model(self, ctx):
        llm = mock_client({})
        hints = RunHints(tone="playful")
        await BriefNormalizer().normalize(BRIEF, hints, llm, ctx)
        user_message = llm.complete.call_args.kwargs["messages"][0].content
        assert '"tone": "playful"' in user_message
