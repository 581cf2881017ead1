# src/pipeline/llm_factory.py
"""LLM factory: per-stage clients using config routing.

Resolves provider:model for each stage via the cascade
(per-stage -> per-phase -> default -> fallback) and instantiates the
adapter through the provider registry.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from speechwright.llm.client_factory import create_llm_client
from speechwright.llm.config import resolve_llm
from speechwright.llm.retry import RetryingLLMClient, build_retry_configs

if TYPE_CHECKING:
    from speechwright.config.settings import Settings
    from speechwright.llm.base_client import BaseLLMClient

logger = logging.getLogger(__name__)


class LLMFactory:
    """Create and cache LLM clients per stage.

    Clients are cached by provider:model so stages sharing the same
    assignment reuse a single client instance. With ``llm_max_retries > 0``
    each stage gets a retrying wrapper around the shared client.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._clients: dict[str, BaseLLMClient] = {}
        self._wrapped: dict[str, BaseLLMClient] = {}

    def get_client(self, stage: str) -> BaseLLMClient:
        """Get or create the LLM client for a stage."""
        if stage in self._wrapped:
            return self._wrapped[stage]

        assignment = resolve_llm(stage, self._settings)
        cache_key = assignment.key

        if cache_key not in self._clients:
            self._clients[cache_key] = create_llm_client(
                assignment.provider, assignment.model, self._settings
            )
            logger.info(
                "Created LLM client for '%s': %s (source: %s)",
                stage,
                cache_key,
                assignment.source,
            )
        else:
            logger.debug("Reusing cached LLM client for '%s': %s", stage, cache_key)

        client = self._clients[cache_key]
        if self._settings.llm_max_retries > 0:
            client = RetryingLLMClient(
                client, stage, build_retry_configs(self._settings.llm_max_retries)
            )
        self._wrapped[stage] = client
        return client

    def __call__(self, stage: str) -> BaseLLMClient:
        """Callable interface used by SpeechPipeline."""
        return self.get_client(stage)
