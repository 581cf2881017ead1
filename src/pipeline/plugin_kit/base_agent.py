# src/pipeline/plugin_kit/base_agent.py
"""Standard interface for LLM-backed pipeline stages.

Each stage owns a fixed system prompt (a ``.txt`` file under
``pipeline/prompts``) and sends one run-specific payload per call. The
generator's reply is untrusted: stages validate it themselves.
"""

from __future__ import annotations

import hashlib
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from speechwright.core.text import strip_code_fence
from speechwright.llm.models import LLMResponse, Message

if TYPE_CHECKING:
    from speechwright.llm.base_client import BaseLLMClient
    from speechwright.pipeline.state import RunContext

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).parent.parent / "prompts"


class BaseAgent(ABC):
    """Common plumbing for every generative stage."""

    def __init__(self, temperature: float = 0.7, max_tokens: int = 4096) -> None:
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._prompt_template: str | None = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Stage identifier, also used as the trace stage name."""

    @property
    def version(self) -> str:
        return "1.0.0"

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description of what this stage does."""

    @property
    def prompt_file(self) -> str:
        return str(PROMPTS_DIR / f"{self.name}.txt")

    @property
    def system_prompt(self) -> str:
        if self._prompt_template is None:
            self._prompt_template = Path(self.prompt_file).read_text(encoding="utf-8").strip()
        return self._prompt_template

    @property
    def prompt_hash(self) -> str:
        return hashlib.sha256(self.system_prompt.encode()).hexdigest()[:16]

    async def _call(
        self,
        llm: BaseLLMClient,
        payload: str | dict[str, Any],
        ctx: RunContext,
        *,
        step: str | None = None,
        system: str | None = None,
        response_format: type[BaseModel] | None = None,
    ) -> LLMResponse:
        """Issue one generative call and record it.

        Exceptions from the client propagate; each stage applies its own
        degrade-or-terminate policy.
        """
        user = payload if isinstance(payload, str) else json.dumps(payload, ensure_ascii=False)
        step = step or self.name
        try:
            response = await llm.complete(
                messages=[Message(role="user", content=user)],
                system=system or self.system_prompt,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
                response_format=response_format,
            )
        except Exception as exc:
            ctx.call_logger.record_failure(self.name, step, exc)
            raise
        ctx.call_logger.record(self.name, step, response)
        logger.debug(
            "%s call done: %d tokens in %dms",
            step, response.input_tokens + response.output_tokens, response.latency_ms,
        )
        return response

    @staticmethod
    def _parse_json(content: str) -> dict[str, Any]:
        """Parse a JSON object, tolerating a surrounding code fence.

        Raises:
            ValueError: If the content is not a JSON object.
        """
        data = json.loads(strip_code_fence(content))
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        return data
