# src/llm/base_client.py
"""Abstract LLM client interface.

The pipeline treats the generator as opaque: it sends a system instruction
plus one user payload and validates whatever text comes back.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel

from speechwright.llm.models import LLMResponse, Message


class BaseLLMClient(ABC):
    """Unified interface for all LLM providers."""

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
        response_format: type[BaseModel] | None = None,
    ) -> LLMResponse:
        """Text completion.

        When ``response_format`` is given the provider is asked for JSON
        matching that model; callers still validate the result.
        """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (openai, anthropic)."""
