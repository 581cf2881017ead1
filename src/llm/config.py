# src/llm/config.py
"""Per-stage LLM routing with cascade resolution.

Resolution order:
  1. Per-stage env var (LLM_JUDGE=anthropic:claude-sonnet-4-20250514)
  2. Per-phase env var (LLM_PHASE_WRITING=openai:gpt-4.1)
  3. Default provider + model (LLM_DEFAULT_PROVIDER + LLM_DEFAULT_MODEL)
  4. Hardcoded fallback (openai:gpt-4.1-mini)
"""

from __future__ import annotations

from dataclasses import dataclass

from speechwright.config.settings import Settings
from speechwright.config.stages import PHASE_STAGE_MAP

_FALLBACK_PROVIDER = "openai"
_FALLBACK_MODEL = "gpt-4.1-mini"


@dataclass(frozen=True)
class LLMAssignment:
    """Resolved LLM provider:model for a stage."""

    provider: str
    model: str
    source: str  # "stage", "phase", "default", or "fallback"

    @property
    def key(self) -> str:
        """Return 'provider:model' string."""
        return f"{self.provider}:{self.model}"


def _find_phase(stage: str) -> str | None:
    for phase, stages in PHASE_STAGE_MAP.items():
        if stage in stages:
            return phase
    return None


def _parse_assignment(value: str) -> tuple[str, str] | None:
    """Parse 'provider:model' string. Returns None if empty."""
    if not value or ":" not in value:
        return None
    provider, model = value.split(":", 1)
    return (provider.strip(), model.strip())


def resolve_llm(stage: str, settings: Settings) -> LLMAssignment:
    """Resolve LLM assignment for a stage using the cascade.

    Args:
        stage: Stage name (e.g. "planner", "judge").
        settings: Application settings.

    Returns:
        Resolved LLMAssignment with provider, model, and resolution source.
    """
    # Level 1: Per-stage override
    parsed = _parse_assignment(getattr(settings, f"llm_{stage}", ""))
    if parsed:
        return LLMAssignment(provider=parsed[0], model=parsed[1], source="stage")

    # Level 2: Per-phase override
    phase = _find_phase(stage)
    if phase:
        parsed = _parse_assignment(getattr(settings, f"llm_phase_{phase}", ""))
        if parsed:
            return LLMAssignment(provider=parsed[0], model=parsed[1], source="phase")

    # Level 3: Default
    if settings.llm_default_provider and settings.llm_default_model:
        return LLMAssignment(
            provider=settings.llm_default_provider,
            model=settings.llm_default_model,
            source="default",
        )

    # Level 4: Hardcoded fallback
    return LLMAssignment(
        provider=_FALLBACK_PROVIDER,
        model=_FALLBACK_MODEL,
        source="fallback",
    )


def resolve_all(settings: Settings) -> dict[str, LLMAssignment]:
    """Resolve LLM assignments for every LLM-backed stage."""
    all_stages: set[str] = set()
    for stages in PHASE_STAGE_MAP.values():
        all_stages.update(stages)
    return {stage: resolve_llm(stage, settings) for stage in sorted(all_stages)}
