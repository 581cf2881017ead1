# src/pipeline/agents/drafter.py
"""Drafter: Plan -> two independent candidate texts.

Split mode issues two concurrent calls with different style directives.
Combined mode asks for both drafts in one reply, delimited by markers
(or a JSON object with ``draft_1`` / ``draft_2``).
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from speechwright.core.errors import DrafterError
from speechwright.core.models import CandidatePair, Plan
from speechwright.core.text import strip_code_fence, word_count
from speechwright.pipeline.plugin_kit.base_agent import PROMPTS_DIR, BaseAgent

if TYPE_CHECKING:
    from speechwright.llm.base_client import BaseLLMClient
    from speechwright.pipeline.state import RunContext

logger = logging.getLogger(__name__)

_COMBINED_PROMPT_PATH = PROMPTS_DIR / "drafter_combined.txt"

DRAFT_STYLES: tuple[str, str] = (
    "Warm and story-led: open with a human moment, build emotion, close with a personal call to action.",
    "Crisp and structured: state the core message up front, walk through each pillar clearly, close with a concrete takeaway.",
)

_MARKER_RE = re.compile(r"^\s*===\s*(END_)?DRAFT_[12]\s*===\s*$", re.MULTILINE)
_DRAFT_RE = {
    1: re.compile(r"===\s*DRAFT_1\s*===(.*?)(?:===\s*END_DRAFT_1\s*===|===\s*DRAFT_2\s*===|$)", re.DOTALL),
    2: re.compile(r"===\s*DRAFT_2\s*===(.*?)(?:===\s*END_DRAFT_2\s*===|$)", re.DOTALL),
}


def strip_wrapping(text: str) -> str:
    """Remove code fences and stray draft markers around a candidate."""
    return _MARKER_RE.sub("", strip_code_fence(text)).strip()


def split_combined(content: str) -> tuple[str, str]:
    """Extract both drafts from a combined reply.

    Raises:
        DrafterError: If neither the markers nor the JSON form are present.
    """
    found = {i: rx.search(content) for i, rx in _DRAFT_RE.items()}
    if found[1] and found[2]:
        return strip_wrapping(found[1].group(1)), strip_wrapping(found[2].group(1))

    try:
        data = json.loads(strip_code_fence(content))
    except json.JSONDecodeError as exc:
        raise DrafterError("combined reply has no draft markers", cause=exc) from exc
    if not isinstance(data, dict) or "draft_1" not in data or "draft_2" not in data:
        raise DrafterError("combined reply has no draft markers")
    return strip_wrapping(str(data["draft_1"])), strip_wrapping(str(data["draft_2"]))


def plan_payload(plan: Plan) -> dict[str, Any]:
    return plan.model_dump(exclude={"is_fallback"})


class DrafterAgent(BaseAgent):
    """Write two alternative candidates for the same plan."""

    def __init__(
        self, mode: str = "split", temperature: float = 0.7, max_tokens: int = 4096
    ) -> None:
        super().__init__(temperature=temperature, max_tokens=max_tokens)
        if mode not in ("split", "combined"):
            raise ValueError(f"Unknown drafter mode: {mode!r}")
        self._mode = mode
        self._combined_prompt: str | None = None

    @property
    def name(self) -> str:
        return "drafter"

    @property
    def description(self) -> str:
        return "Write two stylistically distinct candidate speeches"

    @property
    def mode(self) -> str:
        return self._mode

    @property
    def combined_prompt(self) -> str:
        if self._combined_prompt is None:
            self._combined_prompt = Path(_COMBINED_PROMPT_PATH).read_text(encoding="utf-8").strip()
        return self._combined_prompt

    async def draft(self, plan: Plan, llm: BaseLLMClient, ctx: RunContext) -> CandidatePair:
        """Produce two non-empty candidates.

        Raises:
            DrafterError: If a call fails or either candidate is empty.
        """
        if self._mode == "combined":
            first, second = await self._draft_combined(plan, llm, ctx)
        else:
            first, second = await self._draft_split(plan, llm, ctx)

        empty = [str(i) for i, text in ((1, first), (2, second)) if not text]
        if empty:
            raise DrafterError(f"empty candidate(s): {', '.join(empty)}")

        try:
            pair = CandidatePair(first=first, second=second)
        except ValidationError as exc:
            raise DrafterError(f"invalid candidates: {exc}", cause=exc) from exc

        ctx.trace.record(
            self.name,
            f"{self._mode} drafting produced 2 candidates "
            f"({word_count(pair.first)} and {word_count(pair.second)} words)",
        )
        return pair

    async def _draft_split(
        self, plan: Plan, llm: BaseLLMClient, ctx: RunContext
    ) -> tuple[str, str]:
        base = plan_payload(plan)
        results = await asyncio.gather(
            *(
                self._call(llm, {"plan": base, "style": style}, ctx, step=f"draft_{i}")
                for i, style in enumerate(DRAFT_STYLES, start=1)
            ),
            return_exceptions=True,
        )

        texts: list[str] = []
        for i, result in enumerate(results, start=1):
            if isinstance(result, BaseException):
                raise DrafterError(f"draft {i} call failed: {result}", cause=result) from result
            texts.append(strip_wrapping(result.content))
        return texts[0], texts[1]

    async def _draft_combined(
        self, plan: Plan, llm: BaseLLMClient, ctx: RunContext
    ) -> tuple[str, str]:
        try:
            response = await self._call(
                llm, {"plan": plan_payload(plan)}, ctx, system=self.combined_prompt
            )
        except Exception as exc:
            raise DrafterError(f"drafter call failed: {exc}", cause=exc) from exc
        return split_combined(response.content)
