# src/pipeline/side_effects.py
"""Post-run side effects: run persistence and memory merge.

Runs once, after a successful run and before the result is frozen.
Every error is logged and recorded in the trace; none reaches the caller.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from speechwright.memory.traits import infer_traits

if TYPE_CHECKING:
    from speechwright.memory.base_memory_store import BaseMemoryStore
    from speechwright.pipeline.state import RunState
    from speechwright.storage.base_run_store import BaseRunStore

logger = logging.getLogger(__name__)


async def persist_run(state: RunState, run_store: BaseRunStore) -> None:
    request = state.request
    try:
        saved = await run_store.save(
            identity=request.identity,
            brief=request.brief,
            final_text=state.final_text,
            candidates=state.candidates,
            verdict=state.verdict,
            trace=state.trace.snapshot(),
            run_id=state.run_id,
        )
    except Exception as exc:
        logger.warning("Run persistence failed: %s", exc)
        state.trace.record("persistence", f"save failed: {exc}")
        return
    state.trace.record("persistence", f"saved run {saved.id}")


async def update_memory(state: RunState, memory_store: BaseMemoryStore) -> None:
    delta = infer_traits(state.plan, state.final_text, state.presets, intent=state.intent)
    try:
        profile = await memory_store.merge_traits(state.request.identity, delta)
    except Exception as exc:
        logger.warning("Memory update failed: %s", exc)
        state.trace.record("memory", f"update failed: {exc}")
        return
    if profile is None:
        state.trace.record("memory", "no new traits")
    else:
        state.trace.record("memory", f"profile updated ({profile.runs_count} runs)")


async def dispatch_side_effects(
    state: RunState,
    run_store: BaseRunStore | None = None,
    memory_store: BaseMemoryStore | None = None,
) -> None:
    """Persist the run and merge inferred traits, for identified callers only."""
    if not state.request.identity.is_set or state.final_text is None:
        return
    if run_store is not None:
        await persist_run(state, run_store)
    if memory_store is not None:
        await update_memory(state, memory_store)
