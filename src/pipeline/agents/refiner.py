# src/pipeline/agents/refiner.py
"""Refiner: apply one user instruction to a prior final text.

Bypasses planning, drafting and judging. On failure the prior text comes
back byte-for-byte so the caller always has a usable version.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from speechwright.core.text import truncate
from speechwright.pipeline.agents.drafter import strip_wrapping
from speechwright.pipeline.plugin_kit.base_agent import BaseAgent

if TYPE_CHECKING:
    from speechwright.llm.base_client import BaseLLMClient
    from speechwright.pipeline.state import RunContext

logger = logging.getLogger(__name__)

_INSTRUCTION_TRACE_CHARS = 120


class RefinerAgent(BaseAgent):
    """Apply only the requested change to an existing speech."""

    @property
    def name(self) -> str:
        return "refiner"

    @property
    def description(self) -> str:
        return "Revise a prior speech according to a single instruction"

    async def refine(
        self, prior_text: str, instruction: str, llm: BaseLLMClient, ctx: RunContext
    ) -> str:
        try:
            response = await self._call(
                llm, {"speech": prior_text, "instruction": instruction}, ctx
            )
        except Exception as exc:
            logger.warning("Refiner call failed, returning prior text: %s", exc)
            ctx.trace.record(self.name, "refine failed (model unavailable); prior text kept")
            return prior_text

        revised = strip_wrapping(response.content)
        if not revised:
            ctx.trace.record(self.name, "refine failed (empty output); prior text kept")
            return prior_text

        ctx.trace.record(
            self.name,
            f"applied: {truncate(instruction.strip(), _INSTRUCTION_TRACE_CHARS)}",
        )
        return revised
