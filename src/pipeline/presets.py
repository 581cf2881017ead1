# src/pipeline/presets.py
"""Soft preset matching against a fixed rule table.

Pure and deterministic: no I/O, no randomness. The result is advisory
context for the planner and an empty list is a normal outcome.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from speechwright.core.models import NormalizedIntent

MIN_SCORE = 2
MAX_PRESETS = 3


@dataclass(frozen=True)
class PresetRule:
    """Attributes that make a preset relevant. Empty tuples never match."""

    id: str
    label: str
    roles: tuple[str, ...] = field(default_factory=tuple)
    audiences: tuple[str, ...] = field(default_factory=tuple)
    intents: tuple[str, ...] = field(default_factory=tuple)
    formats: tuple[str, ...] = field(default_factory=tuple)
    domains: tuple[str, ...] = field(default_factory=tuple)


# Order matters: earlier rules win ties.
PRESET_RULES: tuple[PresetRule, ...] = (
    PresetRule(
        id="corporate_leadership_talk",
        label="Corporate leadership talk",
        roles=("ceo", "founder", "chief executive"),
        audiences=("all-staff", "employees", "team"),
        intents=("motivate", "thank", "reassure", "announce_change"),
        formats=("speech", "talk", "remarks"),
        domains=("corporate", "startup"),
    ),
    PresetRule(
        id="all_hands_update",
        label="All-hands update",
        audiences=("all-staff", "employees", "team"),
        intents=("update", "motivate", "reassure"),
        formats=("speech", "talk", "remarks"),
    ),
    PresetRule(
        id="team_appreciation",
        label="Team appreciation / end-of-year",
        audiences=("team", "engineers", "staff", "colleagues"),
        intents=("thank", "celebrate"),
        formats=("speech", "remarks", "toast"),
    ),
    PresetRule(
        id="board_briefing",
        label="Board briefing",
        audiences=("board",),
        intents=("explain", "defend", "report"),
        formats=("speech", "talk", "memo", "briefing"),
    ),
    PresetRule(
        id="investor_update",
        label="Investor update",
        audiences=("investors", "shareholders"),
        intents=("update", "pitch", "reassure"),
        formats=("speech", "email", "deck"),
    ),
    PresetRule(
        id="student_personal_statement",
        label="Student personal statement",
        roles=("student",),
        intents=("apply",),
        formats=("personal_statement",),
        domains=("education",),
    ),
    PresetRule(
        id="wedding_speech",
        label="Wedding speech",
        roles=("best man", "maid of honor", "father of the bride"),
        formats=("speech", "toast"),
        domains=("wedding",),
    ),
    PresetRule(
        id="press_announcement",
        label="Press announcement",
        intents=("announce_change", "announce"),
        formats=("press_release", "statement"),
    ),
    PresetRule(
        id="fundraising_pitch",
        label="Fundraising pitch",
        intents=("pitch", "fundraise"),
        formats=("speech", "talk", "deck"),
    ),
    PresetRule(
        id="policy_explainer",
        label="Policy explainer",
        intents=("explain", "inform"),
        formats=("speech", "memo"),
        domains=("public_sector", "politics"),
    ),
)

_RULES_BY_ID = {rule.id: rule for rule in PRESET_RULES}


def _hit(value: str | None, needles: tuple[str, ...]) -> bool:
    if not value or not needles:
        return False
    # Whole words, optional plural: "team" hits "teams" but not "steam".
    return any(
        re.search(rf"(?<!\w){re.escape(n)}s?(?!\w)", value, re.IGNORECASE) is not None
        for n in needles
    )


def score_preset(rule: PresetRule, intent: NormalizedIntent) -> int:
    """Count weighted attribute matches of ``intent`` against ``rule``."""
    score = 0
    if _hit(intent.role, rule.roles):
        score += 2
    if _hit(intent.audience, rule.audiences):
        score += 2
    if _hit(intent.intent, rule.intents):
        score += 1
    if _hit(intent.format, rule.formats):
        score += 1
    if any(_hit(domain, rule.domains) for domain in intent.domains):
        score += 1
    return score


def match_presets(intent: NormalizedIntent) -> list[str]:
    """Return up to three preset ids scoring >= 2, best first."""
    scored = [
        (score_preset(rule, intent), position, rule.id)
        for position, rule in enumerate(PRESET_RULES)
    ]
    strong = [s for s in scored if s[0] >= MIN_SCORE]
    # Score descending, then table order.
    strong.sort(key=lambda s: (-s[0], s[1]))

    ids: list[str] = []
    for _, _, preset_id in strong:
        if preset_id not in ids:
            ids.append(preset_id)
    return ids[:MAX_PRESETS]


def describe_preset(preset_id: str) -> str:
    """Human label for a preset id (the id itself if unknown)."""
    rule = _RULES_BY_ID.get(preset_id)
    return rule.label if rule else preset_id
