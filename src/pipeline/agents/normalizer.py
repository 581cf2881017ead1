# src/pipeline/agents/normalizer.py
"""Brief normalizer: free-text brief + optional hints -> NormalizedIntent.

Never fatal. When the model call fails or returns junk, a keyword
heuristic over the brief produces the intent instead. Explicit hints
always win, over both the model and the heuristic.
"""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from speechwright.core.models import NormalizedIntent, RunHints
from speechwright.core.text import dedupe, split_list, truncate
from speechwright.pipeline.plugin_kit.base_agent import BaseAgent

if TYPE_CHECKING:
    from speechwright.llm.base_client import BaseLLMClient
    from speechwright.pipeline.state import RunContext

logger = logging.getLogger(__name__)

# (keyword prefix, label). First match wins for single-valued fields.
ROLE_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("chief executive", "ceo"),
    ("ceo", "ceo"),
    ("co-founder", "founder"),
    ("founder", "founder"),
    ("best man", "best man"),
    ("maid of honor", "maid of honor"),
    ("maid of honour", "maid of honor"),
    ("father of the bride", "father of the bride"),
    ("student", "student"),
    ("manager", "manager"),
    ("head of", "manager"),
    ("director", "director"),
    ("mayor", "mayor"),
    ("minister", "minister"),
)

AUDIENCE_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("all-hands", "all-staff"),
    ("all hands", "all-staff"),
    ("all staff", "all-staff"),
    ("employees", "employees"),
    ("engineers", "engineers"),
    ("board", "board"),
    ("investors", "investors"),
    ("shareholders", "shareholders"),
    ("admissions", "admissions"),
    ("guests", "guests"),
    ("colleagues", "colleagues"),
    ("staff", "staff"),
    ("team", "team"),
    ("students", "students"),
)

INTENT_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("personal statement", "apply"),
    ("ucas", "apply"),
    ("restructur", "announce_change"),
    ("reorg", "announce_change"),
    ("layoff", "announce_change"),
    ("thank", "thank"),
    ("gratitude", "thank"),
    ("appreciat", "thank"),
    ("announc", "announce"),
    ("launch", "announce"),
    ("fundrais", "fundraise"),
    ("pitch", "pitch"),
    ("update", "update"),
    ("motivat", "motivate"),
    ("inspir", "motivate"),
    ("rally", "motivate"),
    ("reassur", "reassure"),
    ("explain", "explain"),
    ("defend", "defend"),
    ("report", "report"),
    ("inform", "inform"),
    ("celebrat", "celebrate"),
    ("toast", "celebrate"),
    ("apply", "apply"),
)

FORMAT_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("personal statement", "personal_statement"),
    ("ucas", "personal_statement"),
    ("press release", "press_release"),
    ("statement", "statement"),
    ("toast", "toast"),
    ("memo", "memo"),
    ("email", "email"),
    ("deck", "deck"),
    ("briefing", "briefing"),
    ("remarks", "remarks"),
    ("keynote", "talk"),
    ("talk", "talk"),
    ("speech", "speech"),
)

DOMAIN_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("wedding", "wedding"),
    ("best man", "wedding"),
    ("bride", "wedding"),
    ("groom", "wedding"),
    ("university", "education"),
    ("ucas", "education"),
    ("school", "education"),
    ("college", "education"),
    ("startup", "startup"),
    ("start-up", "startup"),
    ("founder", "startup"),
    ("company", "corporate"),
    ("corporate", "corporate"),
    ("all-hands", "corporate"),
    ("fintech", "fintech"),
    ("payments", "fintech"),
    ("banking", "fintech"),
    ("sustainab", "sustainability"),
    ("climate", "sustainability"),
    ("net zero", "sustainability"),
    ("government", "public_sector"),
    ("council", "public_sector"),
    ("public sector", "public_sector"),
    ("policy", "politics"),
    ("election", "politics"),
    ("campaign", "politics"),
)

_SENTENCE_END_RE = re.compile(r"(?<=[.!?])\s")
_GOAL_CHARS = 200


def _matches(text: str, keyword: str) -> bool:
    return re.search(rf"\b{re.escape(keyword)}", text) is not None


def _first_label(text: str, table: tuple[tuple[str, str], ...]) -> str | None:
    for keyword, label in table:
        if _matches(text, keyword):
            return label
    return None


def _all_labels(text: str, table: tuple[tuple[str, str], ...]) -> list[str]:
    return dedupe(label for keyword, label in table if _matches(text, keyword))


def heuristic_intent(raw_brief: str, hints: RunHints | None = None) -> NormalizedIntent:
    """Deterministic keyword reading of the brief, merged with explicit hints."""
    hints = hints or RunHints()
    lowered = raw_brief.lower()
    first_sentence = _SENTENCE_END_RE.split(raw_brief.strip(), maxsplit=1)[0]

    return NormalizedIntent(
        goal=truncate(first_sentence, _GOAL_CHARS) or None,
        role=_first_label(lowered, ROLE_KEYWORDS),
        audience=hints.audience or _first_label(lowered, AUDIENCE_KEYWORDS),
        intent=_first_label(lowered, INTENT_KEYWORDS),
        format=_first_label(lowered, FORMAT_KEYWORDS),
        tone=hints.tone,
        duration=hints.duration,
        event_context=hints.event_context,
        domains=_all_labels(lowered, DOMAIN_KEYWORDS),
        must_include=list(hints.must_include),
        must_avoid=list(hints.must_avoid),
        source="heuristic",
    )


class IntentPayload(BaseModel):
    """Shape requested from the model. Every field is optional."""

    goal: str | None = None
    role: str | None = None
    audience: str | None = None
    intent: str | None = None
    format: str | None = None
    tone: str | None = None
    duration: str | None = None
    event_context: str | None = None
    domains: list[str] = Field(default_factory=list)
    must_include: list[str] = Field(default_factory=list)
    must_avoid: list[str] = Field(default_factory=list)

    @field_validator("domains", "must_include", "must_avoid", mode="before")
    @classmethod
    def _coerce_list(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return split_list(v)
        return v

    @field_validator(
        "goal", "role", "audience", "intent", "format", "tone", "duration",
        "event_context", mode="before",
    )
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


def _lower(value: str | None) -> str | None:
    return value.strip().lower() if value else None


def merge_intent(
    payload: IntentPayload, fallback: NormalizedIntent, hints: RunHints
) -> NormalizedIntent:
    """Combine model output with the heuristic reading; hints override both."""
    return NormalizedIntent(
        goal=payload.goal or fallback.goal,
        role=_lower(payload.role) or fallback.role,
        audience=hints.audience or payload.audience or fallback.audience,
        intent=_lower(payload.intent) or fallback.intent,
        format=_lower(payload.format) or fallback.format,
        tone=hints.tone or payload.tone or fallback.tone,
        duration=hints.duration or payload.duration or fallback.duration,
        event_context=hints.event_context or payload.event_context or fallback.event_context,
        domains=[*fallback.domains, *(d.lower() for d in payload.domains)],
        must_include=[*hints.must_include, *payload.must_include],
        must_avoid=[*hints.must_avoid, *payload.must_avoid],
        source="model",
    )


def _describe(intent: NormalizedIntent) -> str:
    parts = [
        f"{key}={value}"
        for key, value in (
            ("role", intent.role),
            ("audience", intent.audience),
            ("intent", intent.intent),
            ("format", intent.format),
        )
        if value
    ]
    if intent.domains:
        parts.append(f"domains={','.join(intent.domains)}")
    return ", ".join(parts) or "no structured signals"


class BriefNormalizer(BaseAgent):
    """Turn the raw brief into a structured intent."""

    @property
    def name(self) -> str:
        return "normalizer"

    @property
    def description(self) -> str:
        return "Extract role, audience, intent, format and constraints from the brief"

    async def normalize(
        self,
        raw_brief: str,
        hints: RunHints | None,
        llm: BaseLLMClient,
        ctx: RunContext,
    ) -> NormalizedIntent:
        hints = hints or RunHints()
        fallback = heuristic_intent(raw_brief, hints)
        payload = {
            "brief": raw_brief,
            "hints": hints.model_dump(exclude_none=True),
        }

        try:
            response = await self._call(llm, payload, ctx, response_format=IntentPayload)
        except Exception as exc:
            logger.warning("Normalizer call failed, using heuristics: %s", exc)
            ctx.trace.record(self.name, f"heuristic parse (model unavailable): {_describe(fallback)}")
            return fallback

        try:
            parsed = IntentPayload.model_validate(self._parse_json(response.content))
        except (json.JSONDecodeError, ValueError, ValidationError) as exc:
            logger.warning("Normalizer output unusable, using heuristics: %s", exc)
            ctx.trace.record(self.name, f"heuristic parse (unparseable output): {_describe(fallback)}")
            return fallback

        intent = merge_intent(parsed, fallback, hints)
        ctx.trace.record(self.name, f"parsed brief: {_describe(intent)}")
        return intent
