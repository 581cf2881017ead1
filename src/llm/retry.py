# src/llm/retry.py
"""Transport-level retry with exponential backoff.

Stages never retry. When LLM_MAX_RETRIES > 0 the factory wraps each client
in ``RetryingLLMClient`` so retries stay beneath the stage contracts.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from pydantic import BaseModel

from speechwright.llm.base_client import BaseLLMClient
from speechwright.llm.models import LLMResponse, Message

logger = logging.getLogger(__name__)


class LLMRetryExhausted(Exception):
    """All retries exhausted for an LLM call."""

    def __init__(self, stage: str, error_type: str, attempts: int, last_error: Exception):
        self.stage = stage
        self.error_type = error_type
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Stage '{stage}' failed after {attempts} attempts ({error_type}): {last_error}"
        )


@dataclass(frozen=True)
class RetryConfig:
    """Retry configuration for a specific error type."""

    max_retries: int
    base_delay_s: float
    backoff_factor: float = 2.0
    jitter: bool = True


DEFAULT_RETRY_CONFIGS: dict[str, RetryConfig] = {
    "rate_limit": RetryConfig(max_retries=3, base_delay_s=2.0),
    "timeout": RetryConfig(max_retries=2, base_delay_s=1.0, backoff_factor=1.0),
    "server_error": RetryConfig(max_retries=3, base_delay_s=5.0),
}


def classify_error(error: Exception) -> str:
    """Classify an exception into a retry error type."""
    msg = str(error).lower()
    name = type(error).__name__.lower()

    if "429" in msg or "rate" in msg:
        return "rate_limit"
    if "timeout" in name or "timeout" in msg:
        return "timeout"
    if any(c in msg for c in ("500", "502", "503", "504", "server")):
        return "server_error"
    return "unknown"


def build_retry_configs(max_retries: int) -> dict[str, RetryConfig]:
    """Cap every default policy at ``max_retries`` attempts."""
    return {
        kind: RetryConfig(
            max_retries=min(cfg.max_retries, max_retries),
            base_delay_s=cfg.base_delay_s,
            backoff_factor=cfg.backoff_factor,
            jitter=cfg.jitter,
        )
        for kind, cfg in DEFAULT_RETRY_CONFIGS.items()
    }


def _compute_delay(config: RetryConfig, attempt: int) -> float:
    """Compute delay for a given attempt (0-based)."""
    delay = config.base_delay_s * (config.backoff_factor ** attempt)
    if config.jitter:
        delay *= 0.5 + random.random()  # noqa: S311
    return delay


async def with_retry(
    fn: Callable[..., Awaitable[Any]],
    *args: Any,
    stage: str = "unknown",
    retry_configs: dict[str, RetryConfig] | None = None,
    **kwargs: Any,
) -> Any:
    """Execute an async function with retry logic.

    Raises:
        LLMRetryExhausted: If all retries are exhausted.
    """
    configs = retry_configs or DEFAULT_RETRY_CONFIGS
    attempts = 0

    while True:
        try:
            return await fn(*args, **kwargs)
        except Exception as e:
            error_type = classify_error(e)
            attempts += 1
            config = configs.get(error_type)

            if config is None or attempts > config.max_retries:
                raise LLMRetryExhausted(stage, error_type, attempts, e) from e

            delay = _compute_delay(config, attempts - 1)
            logger.warning(
                "Stage '%s': %s (attempt %d/%d), retrying in %.1fs",
                stage, error_type, attempts, config.max_retries, delay,
            )
            await asyncio.sleep(delay)


class RetryingLLMClient(BaseLLMClient):
    """Wrap a client so that transient provider errors are retried."""

    def __init__(
        self,
        inner: BaseLLMClient,
        stage: str,
        retry_configs: dict[str, RetryConfig] | None = None,
    ) -> None:
        self._inner = inner
        self._stage = stage
        self._retry_configs = retry_configs

    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
        response_format: type[BaseModel] | None = None,
    ) -> LLMResponse:
        return await with_retry(
            self._inner.complete,
            messages,
            system=system,
            max_tokens=max_tokens,
            temperature=temperature,
            response_format=response_format,
            stage=self._stage,
            retry_configs=self._retry_configs,
        )

    @property
    def provider_name(self) -> str:
        return self._inner.provider_name
