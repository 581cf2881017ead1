# src/pipeline/orchestrator.py
"""Pipeline orchestrator: one brief in, one PipelineResult out.

Generate mode:
  normalizer -> presets -> planner -> drafter (x2) -> judge -> guardrail -> editor
Refine mode:
  refiner (single constrained edit of a prior final text)

Only drafter failure (and planner failure in strict mode) terminates a run.
Every other stage degrades to a documented fallback. ``run()`` never raises.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Callable

from speechwright.config.runner_config import RunnerConfig
from speechwright.core.errors import PlannerError, StageError
from speechwright.core.models import NormalizedIntent, PipelineResult, Plan, RunRequest
from speechwright.core.text import truncate
from speechwright.logging.context import clear_context, set_mode_context, set_run_context
from speechwright.pipeline.agents.drafter import DrafterAgent
from speechwright.pipeline.agents.editor import EditorAgent
from speechwright.pipeline.agents.guardrail import GuardrailAgent, find_violations
from speechwright.pipeline.agents.judge import JudgeAgent
from speechwright.pipeline.agents.normalizer import BriefNormalizer
from speechwright.pipeline.agents.planner import PlannerAgent, fallback_plan
from speechwright.pipeline.agents.refiner import RefinerAgent
from speechwright.pipeline.modes import DEFAULT_TRIGGERS, choose_mode
from speechwright.pipeline.presets import match_presets
from speechwright.pipeline.side_effects import dispatch_side_effects
from speechwright.pipeline.state import RunContext, RunState

if TYPE_CHECKING:
    from speechwright.llm.base_client import BaseLLMClient
    from speechwright.memory.base_memory_store import BaseMemoryStore
    from speechwright.storage.base_run_store import BaseRunStore

logger = logging.getLogger(__name__)

LLMProvider = Callable[[str], "BaseLLMClient"]


def validate_request(request: RunRequest, max_chars: int) -> str | None:
    """Return a rejection message, or None if the request is acceptable."""
    if not request.brief or not request.brief.strip():
        return "rejected: brief is empty"
    if len(request.brief) > max_chars:
        return f"rejected: brief exceeds {max_chars} characters ({len(request.brief)})"
    if request.refinement is not None and request.refinement.is_partial:
        return "rejected: refinement needs both the prior text and the prior instruction"
    if request.identity.is_ambiguous:
        return "rejected: provide either user_id or anon_id, not both"
    return None


class SpeechPipeline:
    """Run the speechwriting pipeline for one request at a time.

    Instances hold no per-run state and may serve concurrent runs.

    Args:
        config: Pipeline behaviour switches.
        llm_factory: Callable returning the LLM client for a stage name.
        run_store: Optional run history backend.
        memory_store: Optional trait profile backend.
    """

    def __init__(
        self,
        config: RunnerConfig,
        llm_factory: LLMProvider,
        run_store: BaseRunStore | None = None,
        memory_store: BaseMemoryStore | None = None,
    ) -> None:
        self._config = config
        self._llm = llm_factory
        self._run_store = run_store
        self._memory_store = memory_store

        temperature, max_tokens = config.temperature, config.max_tokens
        self.normalizer = BriefNormalizer(temperature=0.2, max_tokens=1024)
        self.planner = PlannerAgent(temperature=0.4, max_tokens=2048)
        self.drafter = DrafterAgent(
            mode=config.drafter_mode, temperature=temperature, max_tokens=max_tokens
        )
        self.judge = JudgeAgent(trace_reason_chars=config.trace_reason_chars)
        self.guardrail = GuardrailAgent(max_tokens=max_tokens)
        self.editor = EditorAgent(temperature=0.3, max_tokens=max_tokens)
        self.refiner = RefinerAgent(temperature=0.4, max_tokens=max_tokens)

    @property
    def config(self) -> RunnerConfig:
        return self._config

    async def run(self, request: RunRequest) -> PipelineResult:
        """Execute one run. Failures are reported in the result, never raised."""
        start_time = time.monotonic()
        ctx = RunContext.create(seed=self._config.judge_seed)
        state = RunState(request=request, context=ctx)
        set_run_context(ctx.run_id, request.identity.key)

        try:
            rejection = validate_request(request, self._config.brief_max_chars)
            if rejection is not None:
                ctx.trace.record("input", rejection)
                state.fail("rejected")
                return state.to_result()

            ctx.trace.record("input", f"accepted brief ({len(request.brief)} chars)")
            await self._load_memory(state)

            triggers = self._config.refine_triggers or DEFAULT_TRIGGERS
            state.mode = choose_mode(request, triggers)
            set_mode_context(state.mode)
            ctx.trace.record("mode", state.mode)

            try:
                if state.mode == "refine":
                    await self._run_refine(state)
                else:
                    await self._run_generate(state)
            except StageError as exc:
                logger.error("Run %s failed at %s: %s", ctx.run_id, exc.stage, exc)
                ctx.trace.record(
                    exc.stage, f"failed: {truncate(str(exc), self._config.trace_reason_chars)}"
                )
                state.fail()
                return state.to_result()
            except Exception as exc:
                stage = ctx.trace.last.stage if ctx.trace.last else "pipeline"
                logger.exception("Unexpected error in run %s", ctx.run_id)
                ctx.trace.record(stage, f"failed: unexpected {type(exc).__name__}: {exc}")
                state.fail()
                return state.to_result()

            await dispatch_side_effects(state, self._run_store, self._memory_store)
            return state.to_result()
        finally:
            usage = ctx.call_logger.usage()
            logger.info(
                "Run %s %s in %.1fs: %d calls (%d failed), %d tokens",
                ctx.run_id,
                state.status,
                time.monotonic() - start_time,
                usage.total_calls,
                usage.failed_calls,
                usage.total_tokens,
            )
            clear_context()

    async def _load_memory(self, state: RunState) -> None:
        identity = state.request.identity
        if self._memory_store is None or not identity.is_set:
            state.trace.record("memory", "no profile loaded (memory disabled or anonymous run)")
            return
        try:
            state.memory = await self._memory_store.load_traits(identity)
        except Exception as exc:
            logger.warning("Memory load failed: %s", exc)
            state.trace.record("memory", f"load failed, continuing without profile: {exc}")
            return
        if state.memory is None:
            state.trace.record("memory", "no stored profile")
        else:
            state.trace.record("memory", f"loaded profile ({state.memory.runs_count} runs)")

    async def _run_generate(self, state: RunState) -> None:
        request, ctx, cfg = state.request, state.context, self._config

        intent = await self.normalizer.normalize(
            request.brief, request.hints, self._llm("normalizer"), ctx
        )
        state.intent = intent

        state.presets = match_presets(intent)
        ctx.trace.record(
            "presets",
            f"matched: {', '.join(state.presets)}" if state.presets else "no preset matched",
        )

        state.plan = await self._plan(state, intent)

        state.candidates = await self.drafter.draft(state.plan, self._llm("drafter"), ctx)

        state.verdict = await self.judge.judge(
            state.plan, state.candidates, self._llm("judge"), ctx, rng=ctx.rng
        )
        chosen = state.candidates.get(state.verdict.winner)

        state.guardrail = await self.guardrail.enforce(
            state.plan.constraints,
            chosen,
            self._llm("guardrail"),
            ctx,
            plan=state.plan,
            fail_open=cfg.guardrail_fail_open,
        )

        polished = await self.editor.polish(
            state.plan, state.guardrail.text, self._llm("editor"), ctx
        )
        introduced = set(find_violations(polished, state.plan.constraints.must_avoid)) - set(
            find_violations(state.guardrail.text, state.plan.constraints.must_avoid)
        )
        if introduced:
            ctx.trace.record(
                "editor",
                f"edit reverted: reintroduced must-avoid {', '.join(sorted(introduced))}",
            )
            polished = state.guardrail.text
        state.final_text = polished

    async def _plan(self, state: RunState, intent: NormalizedIntent) -> Plan:
        request, ctx, cfg = state.request, state.context, self._config

        try:
            plan = await self.planner.plan(
                intent,
                state.presets,
                request.brief,
                self._llm("planner"),
                ctx,
                memory=state.memory,
            )
        except PlannerError as exc:
            if cfg.planner_strict:
                raise
            logger.warning("Planner degraded to fallback plan: %s", exc)
            ctx.trace.record(
                "planner",
                f"degraded: using fallback plan ({truncate(str(exc), cfg.trace_reason_chars)})",
            )
            plan = fallback_plan(request.brief, intent, cfg.planner_fallback_chars)

        constraints = plan.constraints.merged_with(
            [*intent.must_include, *cfg.global_must_include],
            [*intent.must_avoid, *cfg.global_must_avoid],
        )
        return plan.model_copy(update={"constraints": constraints})

    async def _run_refine(self, state: RunState) -> None:
        request, ctx = state.request, state.context
        prior_text = request.prior_text or ""
        state.final_text = await self.refiner.refine(
            prior_text, request.brief, self._llm("refiner"), ctx
        )
