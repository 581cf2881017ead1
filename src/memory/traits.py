# src/memory/traits.py
"""Deterministic trait inference and profile merging.

Light-touch keyword rules over the plan and final text. Pure functions: no
I/O, same input gives the same traits.
"""

from __future__ import annotations

from datetime import datetime, timezone

from speechwright.core.models import NormalizedIntent, Plan
from speechwright.core.text import word_count
from speechwright.memory.models import LengthPreference, MemoryProfile, TraitDelta

_ROLE_RULES: list[tuple[tuple[str, ...], str]] = [
    (("ceo", "chief executive"), "executive"),
    (("founder",), "founder"),
    (("student",), "student"),
    (("manager",), "manager"),
]

_TONE_RULES: list[tuple[tuple[str, ...], str]] = [
    (("warm",), "warm"),
    (("formal", "serious"), "formal"),
    (("clear", "direct"), "clear"),
    (("inspiring", "motivational"), "inspiring"),
    (("playful", "fun"), "playful"),
]

_DOMAIN_RULES: list[tuple[tuple[str, ...], str]] = [
    (("fintech", "financial services"), "fintech"),
    (("climate", "sustainability"), "sustainability"),
    (("university", "ucas"), "education"),
    (("startup", "scale-up"), "startup"),
]


def _length_preference(text: str) -> LengthPreference:
    words = word_count(text)
    if words < 200:
        return "short"
    if words < 700:
        return "medium"
    return "long"


def _infer_roles(role: str | None) -> list[str]:
    if not role or not role.strip():
        return []
    lowered = role.lower()
    for needles, label in _ROLE_RULES:
        if any(n in lowered for n in needles):
            return [label]
    return [lowered.strip()]


def infer_traits(
    plan: Plan | None,
    final_text: str | None,
    presets: list[str] | None = None,
    intent: NormalizedIntent | None = None,
) -> TraitDelta:
    """Map a completed run to a small set of trait tags."""
    plan_text = plan.model_dump_json() if plan is not None else ""
    haystack = f"{plan_text} {final_text or ''}".lower()

    roles = _infer_roles(intent.role if intent else None)

    tone_source = (plan.tone if plan else "") or (intent.tone if intent else "") or ""
    tone_lower = tone_source.lower()
    tones = [label for needles, label in _TONE_RULES if any(n in tone_lower for n in needles)]

    domains = [label for needles, label in _DOMAIN_RULES if any(n in haystack for n in needles)]

    return TraitDelta(
        roles=roles,
        tone_preferences=tones,
        length_preference=_length_preference(final_text) if final_text else None,
        domains=domains,
        presets_used=list(presets or []),
    )


def _union(existing: list[str], new: list[str]) -> list[str]:
    out: list[str] = []
    for value in [*existing, *new]:
        norm = value.lower().strip()
        if norm and norm not in out:
            out.append(norm)
    return out


def merge_profile(
    existing: MemoryProfile | None, identity: str, delta: TraitDelta
) -> MemoryProfile:
    """Merge a run's traits into the stored profile and bump the run count."""
    base = existing or MemoryProfile(identity=identity)
    return MemoryProfile(
        identity=identity,
        roles=_union(base.roles, delta.roles),
        tone_preferences=_union(base.tone_preferences, delta.tone_preferences),
        length_preference=delta.length_preference or base.length_preference,
        domains=_union(base.domains, delta.domains),
        presets_used=_union(base.presets_used, delta.presets_used),
        runs_count=base.runs_count + 1,
        updated_at=datetime.now(timezone.utc),
    )
