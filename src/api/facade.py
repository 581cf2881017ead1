# src/api/facade.py
"""Public API facade: single entry point for speech generation.

Usage:
    from speechwright.api.facade import generate
    response = await generate(GenerateRequest(brief="..."))

Stores passed in by the caller are left open; stores built from settings
for a single call are closed before it returns.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from speechwright.api.models import (
    ConfigOverrides,
    FeedbackRequest,
    FeedbackResponse,
    GenerateRequest,
    GenerateResponse,
)
from speechwright.config.runner_config import RunnerConfig
from speechwright.config.settings import Settings
from speechwright.core.errors import StoreError
from speechwright.memory.memory_factory import create_memory_store
from speechwright.pipeline.llm_factory import LLMFactory
from speechwright.pipeline.orchestrator import LLMProvider, SpeechPipeline
from speechwright.storage.store_factory import create_run_store

if TYPE_CHECKING:
    from speechwright.memory.base_memory_store import BaseMemoryStore
    from speechwright.storage.base_run_store import BaseRunStore

logger = logging.getLogger(__name__)


def build_pipeline(
    settings: Settings,
    llm_factory: LLMProvider | None = None,
    run_store: BaseRunStore | None = None,
    memory_store: BaseMemoryStore | None = None,
) -> SpeechPipeline:
    """Wire a SpeechPipeline from settings; explicit collaborators win."""
    return SpeechPipeline(
        config=RunnerConfig.from_settings(settings),
        llm_factory=llm_factory or LLMFactory(settings),
        run_store=run_store if run_store is not None else create_run_store(settings),
        memory_store=memory_store if memory_store is not None else create_memory_store(settings),
    )


async def generate(
    request: GenerateRequest,
    settings: Settings | None = None,
    llm_factory: LLMProvider | None = None,
    run_store: BaseRunStore | None = None,
    memory_store: BaseMemoryStore | None = None,
) -> GenerateResponse:
    """Run the pipeline for one web-layer request.

    Args:
        request: Request body (brief, hints, identity, prior version).
        settings: Global settings. Loaded from .env if None.
        llm_factory: Stage -> client callable. Built from settings if None.
        run_store: History backend. Built from settings (and closed) if None.
        memory_store: Trait profile backend. Built from settings (and closed) if None.

    Returns:
        GenerateResponse; check ``status`` rather than catching exceptions.
    """
    settings = settings or Settings()
    settings = _apply_overrides(settings, request.config_overrides)

    owned: list[BaseRunStore | BaseMemoryStore] = []
    try:
        if run_store is None:
            run_store = create_run_store(settings)
            if run_store is not None:
                owned.append(run_store)
        if memory_store is None:
            memory_store = create_memory_store(settings)
            if memory_store is not None:
                owned.append(memory_store)

        pipeline = build_pipeline(settings, llm_factory, run_store, memory_store)
        result = await pipeline.run(request.to_run_request())
    finally:
        _close_stores(owned)

    logger.info(
        "Generate finished: run_id=%s, status=%s, mode=%s",
        result.run_id, result.status, result.mode,
    )
    return GenerateResponse.from_result(result)


def generate_sync(
    request: GenerateRequest,
    settings: Settings | None = None,
    **kwargs,
) -> GenerateResponse:
    """Blocking wrapper around ``generate`` for scripts and notebooks."""
    return asyncio.run(generate(request, settings=settings, **kwargs))


async def record_feedback(
    request: FeedbackRequest,
    settings: Settings | None = None,
    run_store: BaseRunStore | None = None,
) -> FeedbackResponse:
    """Record which draft the caller preferred against the judge's pick.

    Raises:
        StoreError: If no run store is configured.
        ValueError: If the identity is unset or ambiguous.
    """
    owned = run_store is None
    if run_store is None:
        run_store = create_run_store(settings or Settings())
    if run_store is None:
        raise StoreError("Run store disabled (set RUN_STORE_BACKEND=json or sqlite)")

    try:
        feedback = await run_store.record_feedback(
            run_id=request.run_id,
            identity=request.identity,
            judge_winner=request.judge_winner,
            user_choice=request.user_choice,
        )
    finally:
        if owned:
            run_store.close()

    logger.info(
        "Feedback recorded: run_id=%s, judge=%d, user=%d, agreement=%s",
        feedback.run_id, feedback.judge_winner, feedback.user_choice, feedback.agreement,
    )
    return FeedbackResponse(feedback_id=feedback.id, agreement=feedback.agreement)


def _close_stores(stores: list[BaseRunStore | BaseMemoryStore]) -> None:
    for store in stores:
        try:
            store.close()
        except Exception as exc:
            logger.warning("Failed to close %s: %s", type(store).__name__, exc)


def _apply_overrides(settings: Settings, overrides: ConfigOverrides | None) -> Settings:
    """Apply per-request config overrides if provided."""
    if overrides is None:
        return settings
    values = overrides.model_dump(exclude_none=True)
    if not values:
        return settings
    current = settings.model_dump()
    current.update(values)
    return Settings(_env_file=None, **current)
