# src/config/runner_config.py
"""Immutable per-process pipeline configuration.

Built once from ``Settings`` at startup and handed to the orchestrator
constructor. Stages never read the environment.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from speechwright.config.settings import Settings


@dataclass(frozen=True)
class RunnerConfig:
    """Pipeline behaviour switches resolved from settings."""

    brief_max_chars: int = 4000
    planner_strict: bool = False
    planner_fallback_chars: int = 280
    drafter_mode: str = "split"
    guardrail_fail_open: bool = True
    judge_seed: int | None = None
    trace_reason_chars: int = 260
    temperature: float = 0.7
    max_tokens: int = 4096
    refine_triggers: tuple[str, ...] = field(default_factory=tuple)
    global_must_include: tuple[str, ...] = field(default_factory=tuple)
    global_must_avoid: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_settings(cls, settings: Settings) -> RunnerConfig:
        return cls(
            brief_max_chars=settings.brief_max_chars,
            planner_strict=settings.planner_strict,
            planner_fallback_chars=settings.planner_fallback_chars,
            drafter_mode=settings.drafter_mode,
            guardrail_fail_open=settings.guardrail_fail_open,
            judge_seed=settings.judge_seed,
            trace_reason_chars=settings.trace_reason_chars,
            temperature=settings.llm_default_temperature,
            max_tokens=settings.llm_max_tokens,
            refine_triggers=tuple(settings.refine_triggers_list),
            global_must_include=tuple(settings.global_must_include_list),
            global_must_avoid=tuple(settings.global_must_avoid_list),
        )

    @classmethod
    def default(cls) -> RunnerConfig:
        """Configuration with built-in defaults, ignoring any .env file."""
        return cls.from_settings(Settings(_env_file=None))
