# src/memory/models.py
"""Per-identity trait profile used to personalise planning."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

LengthPreference = Literal["short", "medium", "long"]


class TraitDelta(BaseModel):
    """Traits inferred from a single completed run."""

    roles: list[str] = Field(default_factory=list)
    tone_preferences: list[str] = Field(default_factory=list)
    length_preference: LengthPreference | None = None
    domains: list[str] = Field(default_factory=list)
    presets_used: list[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (
            self.roles
            or self.tone_preferences
            or self.length_preference
            or self.domains
            or self.presets_used
        )


class MemoryProfile(BaseModel):
    """Accumulated traits for one identity."""

    identity: str
    roles: list[str] = Field(default_factory=list)
    tone_preferences: list[str] = Field(default_factory=list)
    length_preference: LengthPreference | None = None
    domains: list[str] = Field(default_factory=list)
    presets_used: list[str] = Field(default_factory=list)
    runs_count: int = 0
    updated_at: datetime | None = None

    def as_hints(self) -> dict[str, object]:
        """Advisory planner payload: only the traits that are set."""
        hints: dict[str, object] = {
            "roles": self.roles,
            "tone_preferences": self.tone_preferences,
            "length_preference": self.length_preference,
            "domains": self.domains,
            "presets_used": self.presets_used,
        }
        return {k: v for k, v in hints.items() if v}
