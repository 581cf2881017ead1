# src/config/settings.py
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for all deployment-specific settings. Read once at
process start; the orchestrator only sees the derived ``RunnerConfig``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_REFINE_TRIGGERS = (
    "new speech,start again,start over,fresh speech,fresh talk,"
    "ignore the previous,ignore the last,different topic,different subject"
)


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === LLM PROVIDERS ===
    llm_default_provider: str = "openai"
    llm_default_model: str = "gpt-4.1-mini"
    llm_default_temperature: float = 0.7
    llm_max_tokens: int = 4096
    llm_max_retries: int = 0

    # Provider API keys
    openai_api_key: str = ""
    anthropic_api_key: str = ""

    # Per-phase LLM assignment
    llm_phase_analysis: str = ""
    llm_phase_writing: str = ""
    llm_phase_review: str = ""

    # Per-stage LLM assignment (highest priority)
    llm_normalizer: str = ""
    llm_planner: str = ""
    llm_drafter: str = ""
    llm_judge: str = ""
    llm_guardrail: str = ""
    llm_editor: str = ""
    llm_refiner: str = ""

    # === Pipeline ===
    brief_max_chars: int = 4000
    planner_strict: bool = False
    planner_fallback_chars: int = 280
    drafter_mode: Literal["split", "combined"] = "split"
    guardrail_fail_open: bool = True
    judge_seed: int | None = None
    trace_reason_chars: int = 260
    refine_triggers: str = DEFAULT_REFINE_TRIGGERS

    # Global guardrails applied to every plan (comma-separated)
    global_must_include: str = ""
    global_must_avoid: str = ""

    # === Storage ===
    run_store_backend: Literal["none", "json", "sqlite"] = "none"
    memory_backend: Literal["none", "json", "sqlite"] = "none"
    data_root: Path = Path("~/.speechwright")

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("brief_max_chars", "planner_fallback_chars", "trace_reason_chars")
    @classmethod
    def validate_positive(cls, v: int, info) -> int:  # noqa: N805
        if v < 1:
            raise ValueError(f"{info.field_name} must be >= 1")
        return v

    @field_validator("llm_max_retries")
    @classmethod
    def validate_retries(cls, v: int) -> int:  # noqa: N805
        if v < 0:
            raise ValueError("llm_max_retries must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        for stage in STAGE_FIELDS:
            value = getattr(self, f"llm_{stage}")
            if value and ":" not in value:
                errors.append(
                    f"LLM_{stage.upper()} must be 'provider:model', got {value!r}"
                )

        for phase in ("analysis", "writing", "review"):
            value = getattr(self, f"llm_phase_{phase}")
            if value and ":" not in value:
                errors.append(
                    f"LLM_PHASE_{phase.upper()} must be 'provider:model', got {value!r}"
                )

        if self.planner_fallback_chars > self.brief_max_chars:
            errors.append("PLANNER_FALLBACK_CHARS must be <= BRIEF_MAX_CHARS")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def refine_triggers_list(self) -> list[str]:
        """Parse comma-separated start-over trigger phrases."""
        return [t.strip().lower() for t in self.refine_triggers.split(",") if t.strip()]

    @property
    def global_must_include_list(self) -> list[str]:
        return [t.strip() for t in self.global_must_include.split(",") if t.strip()]

    @property
    def global_must_avoid_list(self) -> list[str]:
        return [t.strip() for t in self.global_must_avoid.split(",") if t.strip()]


STAGE_FIELDS: tuple[str, ...] = (
    "normalizer",
    "planner",
    "drafter",
    "judge",
    "guardrail",
    "editor",
    "refiner",
)


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
