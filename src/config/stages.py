# src/config/stages.py
"""Phase each LLM-backed stage belongs to, for LLM routing."""

from __future__ import annotations

# Phase-to-stage mapping. Refine mode uses only "refiner".
PHASE_STAGE_MAP: dict[str, list[str]] = {
    "analysis": ["normalizer", "planner"],
    "writing": ["drafter", "editor", "refiner"],
    "review": ["judge", "guardrail"],
}
