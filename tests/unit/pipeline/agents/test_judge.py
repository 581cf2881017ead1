# tests/unit/pipeline/agents/test_judge.py
"""Tests for JudgeAgent: order permutation, identity mapping and defaults."""

from __future__ import annotations

import pytest

from speechwright.pipeline.agents.judge import (
    DEFAULT_REASON,
    JudgeAgent,
    present_candidates,
    resolve_winner,
)
from llm_stubs import DRAFT_ONE, DRAFT_TWO, mock_client


class FixedRng:
    def __init__(self, value: float) -> None:
        self.value = value

    def random(self) -> float:
        return self.value


KEEP = FixedRng(0.9)
SWAP = FixedRng(0.1)


class TestMapping:
    def test_present_unswapped(self, sample_pair):
        assert present_candidates(sample_pair, False) == (DRAFT_ONE, DRAFT_TWO)

    def test_present_swapped(self, sample_pair):
        assert present_candidates(sample_pair, True) == (DRAFT_TWO, DRAFT_ONE)

    @pytest.mark.parametrize(
        "presented,swapped,expected", [(1, False, 1), (2, False, 2), (1, True, 2), (2, True, 1)]
    )
    def test_resolve(self, presented, swapped, expected):
        assert resolve_winner(presented, swapped) == expected


class TestJudgeAgent:
    @pytest.mark.asyncio
    async def test_unswapped(self, sample_plan, sample_pair, ctx):
        llm = mock_client({"winner": 2, "reason": "Tighter."})
        verdict = await JudgeAgent().judge(sample_plan, sample_pair, llm, ctx, rng=KEEP)

        assert verdict.winner == 2
        assert verdict.presented_winner == 2
        assert not verdict.swapped
        payload = llm.complete.call_args.kwargs["messages"][0].content
        assert payload.index(DRAFT_ONE) < payload.index(DRAFT_TWO)
        assert ctx.trace.last.message == "winner: candidate 2 - Tighter."

    @pytest.mark.asyncio
    async def test_swapped_maps_back(self, sample_plan, sample_pair, ctx):
        llm = mock_client({"winner": 1, "reason": "Better story."})
        verdict = await JudgeAgent().judge(sample_plan, sample_pair, llm, ctx, rng=SWAP)

        # Option 1 shown to the judge was candidate 2.
        assert verdict.winner == 2
        assert verdict.presented_winner == 1
        assert verdict.swapped
        payload = llm.complete.call_args.kwargs["messages"][0].content
        assert payload.index(DRAFT_TWO) < payload.index(DRAFT_ONE)
        assert "(order swapped)" in ctx.trace.last.message

    @pytest.mark.asyncio
    async def test_string_winner(self, sample_plan, sample_pair, ctx):
        llm = mock_client({"winner": "option 2"})
        verdict = await JudgeAgent().judge(sample_plan, sample_pair, llm, ctx, rng=KEEP)
        assert verdict.winner == 2
        assert ctx.trace.last.message == "winner: candidate 2"

    @pytest.mark.asyncio
    async def test_string_winner_takes_first_choice(self, sample_plan, sample_pair, ctx):
        llm = mock_client({"winner": "option 2 of 2"})
        verdict = await JudgeAgent().judge(sample_plan, sample_pair, llm, ctx, rng=KEEP)
        assert verdict.winner == 2
        assert not verdict.defaulted

    @pytest.mark.asyncio
    async def test_call_failure_defaults(self, sample_plan, sample_pair, ctx):
        llm = mock_client(RuntimeError("down"))
        verdict = await JudgeAgent().judge(sample_plan, sample_pair, llm, ctx, rng=SWAP)

        assert verdict.winner == 1
        assert verdict.defaulted
        assert verdict.reason == DEFAULT_REASON
        assert verdict.presented_winner == 2
        assert "call failed" in ctx.trace.last.message

    @pytest.mark.asyncio
    async def test_invalid_winner_defaults(self, sample_plan, sample_pair, ctx):
        llm = mock_client({"winner": 3, "reason": "Neither."})
        verdict = await JudgeAgent().judge(sample_plan, sample_pair, llm, ctx, rng=KEEP)
        assert verdict.winner == 1
        assert verdict.defaulted
        assert "invalid output" in ctx.trace.last.message

    @pytest.mark.asyncio
    async def test_reason_truncated_in_trace(self, sample_plan, sample_pair, ctx):
        llm = mock_client({"winner": 1, "reason": "x" * 400})
        verdict = await JudgeAgent(trace_reason_chars=20).judge(
            sample_plan, sample_pair, llm, ctx, rng=KEEP
        )
        assert len(verdict.reason) == 400
        assert len(ctx.trace.last.message) < 60

    @pytest.mark.asyncio
    async def test_uses_context_rng(self, sample_plan, sample_pair):
        from speechwright.pipeline.state import RunContext

        a, b = RunContext.create(seed=3), RunContext.create(seed=3)
        va = await JudgeAgent().judge(sample_plan, sample_pair, mock_client({"winner": 1}), a)
        vb = await JudgeAgent().judge(sample_plan, sample_pair, mock_client({"winner": 1}), b)
        assert va.swapped == vb.swapped
        assert va.winner == vb.winner
