# src/core/text.py
"""Small text helpers shared by models and pipeline stages."""

from __future__ import annotations

import re
from typing import Iterable

_FENCE_RE = re.compile(r"^```[a-zA-Z0-9_-]*\s*\n?|\n?```\s*$")
_WS_RE = re.compile(r"\s+")
_LIST_SPLIT_RE = re.compile(r"[\n;]+")


def dedupe(items: Iterable[str]) -> list[str]:
    """Strip, drop empties and remove case-insensitive duplicates, keeping order."""
    seen: set[str] = set()
    out: list[str] = []
    for item in items:
        value = str(item).strip()
        key = value.lower()
        if not value or key in seen:
            continue
        seen.add(key)
        out.append(value)
    return out


def strip_code_fence(text: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    stripped = text.strip()
    if stripped.startswith("```"):
        stripped = _FENCE_RE.sub("", stripped).strip()
    return stripped


def normalize_ws(text: str) -> str:
    """Collapse runs of whitespace for change detection."""
    return _WS_RE.sub(" ", text).strip()


def truncate(text: str, limit: int, ellipsis: str = "…") -> str:
    """Cut ``text`` to ``limit`` characters, marking the cut."""
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + ellipsis


def split_list(value: str | list[str] | None) -> list[str]:
    """Split a free-text list (newline or semicolon separated) into items."""
    if value is None:
        return []
    if isinstance(value, list):
        return dedupe(value)
    return dedupe(_LIST_SPLIT_RE.split(value))


def word_count(text: str) -> int:
    return len(text.split())
