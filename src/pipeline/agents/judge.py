# src/pipeline/agents/judge.py
"""Judge: pick the stronger of two candidates.

Presentation order is randomised per run to cancel positional bias; the
verdict is mapped back to original candidate identity before anyone else
sees it. Never fatal: any failure defaults to the first candidate.
"""

from __future__ import annotations

import json
import logging
import random
import re
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, ValidationError

from speechwright.core.models import CandidatePair, JudgeVerdict, Plan
from speechwright.core.text import truncate
from speechwright.pipeline.agents.drafter import plan_payload
from speechwright.pipeline.plugin_kit.base_agent import BaseAgent

if TYPE_CHECKING:
    from speechwright.llm.base_client import BaseLLMClient
    from speechwright.pipeline.state import RunContext

logger = logging.getLogger(__name__)

DEFAULT_REASON = "defaulted - judge unavailable"

_WINNER_RE = re.compile(r"(?<!\d)[12](?!\d)")


class VerdictPayload(BaseModel):
    winner: Literal[1, 2]
    reason: str = ""


def present_candidates(pair: CandidatePair, swapped: bool) -> tuple[str, str]:
    """Return (option 1, option 2) in presentation order."""
    if swapped:
        return pair.second, pair.first
    return pair.first, pair.second


def resolve_winner(presented: Literal[1, 2], swapped: bool) -> Literal[1, 2]:
    """Map a presented option index back to the original candidate index."""
    if not swapped:
        return presented
    return 2 if presented == 1 else 1


def _coerce_winner(value: object) -> object:
    # Models sometimes answer "2" or "option 2".
    if isinstance(value, str):
        match = _WINNER_RE.search(value)
        return int(match.group()) if match else value
    return value


class JudgeAgent(BaseAgent):
    """Select a winning candidate with a short justification."""

    def __init__(
        self,
        temperature: float = 0.2,
        max_tokens: int = 1024,
        trace_reason_chars: int = 260,
    ) -> None:
        super().__init__(temperature=temperature, max_tokens=max_tokens)
        self._trace_reason_chars = trace_reason_chars

    @property
    def name(self) -> str:
        return "judge"

    @property
    def description(self) -> str:
        return "Choose the stronger candidate for the plan"

    def _default(self, swapped: bool, ctx: RunContext, why: str) -> JudgeVerdict:
        ctx.trace.record(self.name, f"{DEFAULT_REASON} ({why}); using candidate 1")
        return JudgeVerdict(
            winner=1,
            presented_winner=2 if swapped else 1,
            swapped=swapped,
            reason=DEFAULT_REASON,
            defaulted=True,
        )

    async def judge(
        self,
        plan: Plan,
        pair: CandidatePair,
        llm: BaseLLMClient,
        ctx: RunContext,
        rng: random.Random | None = None,
    ) -> JudgeVerdict:
        rng = rng or ctx.rng
        swapped = rng.random() < 0.5
        option_1, option_2 = present_candidates(pair, swapped)
        payload = {"plan": plan_payload(plan), "option_1": option_1, "option_2": option_2}

        try:
            response = await self._call(llm, payload, ctx, response_format=VerdictPayload)
        except Exception as exc:
            logger.warning("Judge call failed: %s", exc)
            return self._default(swapped, ctx, "call failed")

        try:
            data = self._parse_json(response.content)
            data["winner"] = _coerce_winner(data.get("winner"))
            parsed = VerdictPayload.model_validate(data)
        except (json.JSONDecodeError, ValidationError, ValueError) as exc:
            logger.warning("Judge output invalid: %s", exc)
            return self._default(swapped, ctx, "invalid output")

        winner = resolve_winner(parsed.winner, swapped)
        reason = parsed.reason.strip()
        ctx.trace.record(
            self.name,
            f"winner: candidate {winner}"
            + (" (order swapped)" if swapped else "")
            + (f" - {truncate(reason, self._trace_reason_chars)}" if reason else ""),
        )
        return JudgeVerdict(
            winner=winner,
            presented_winner=parsed.winner,
            swapped=swapped,
            reason=reason,
        )
