# src/pipeline/agents/editor.py
"""Editor: final polish of the guarded text. Never fatal."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from speechwright.core.models import Plan
from speechwright.core.text import normalize_ws, word_count
from speechwright.pipeline.agents.drafter import plan_payload, strip_wrapping
from speechwright.pipeline.plugin_kit.base_agent import BaseAgent

if TYPE_CHECKING:
    from speechwright.llm.base_client import BaseLLMClient
    from speechwright.pipeline.state import RunContext

logger = logging.getLogger(__name__)


class EditorAgent(BaseAgent):
    """Polish rhythm and flow without adding information."""

    @property
    def name(self) -> str:
        return "editor"

    @property
    def description(self) -> str:
        return "Polish the final text for spoken delivery"

    async def polish(self, plan: Plan, text: str, llm: BaseLLMClient, ctx: RunContext) -> str:
        """Return the polished text, or ``text`` unchanged if the edit fails."""
        try:
            response = await self._call(llm, {"plan": plan_payload(plan), "speech": text}, ctx)
        except Exception as exc:
            logger.warning("Editor call failed, keeping guarded text: %s", exc)
            ctx.trace.record(self.name, "skipped (model unavailable); keeping guarded text")
            return text

        polished = strip_wrapping(response.content)
        if not polished:
            ctx.trace.record(self.name, "skipped (empty output); keeping guarded text")
            return text

        if normalize_ws(polished) == normalize_ws(text):
            ctx.trace.record(self.name, "no changes")
        else:
            ctx.trace.record(self.name, f"polished ({word_count(polished)} words)")
        return polished
