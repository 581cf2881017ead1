# src/tracking/models.py
"""Tracking models: one record per generative call, one summary per run."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class LLMCallRecord(BaseModel):
    """Individual LLM API call log entry."""

    call_id: str
    timestamp: datetime
    stage: str
    step: str
    provider: str
    model: str
    input_tokens: int
    output_tokens: int
    total_tokens: int
    latency_ms: int
    status: Literal["success", "failed"]
    error: str | None = None


class RunUsage(BaseModel):
    """Aggregated call statistics for a single run."""

    total_calls: int = 0
    failed_calls: int = 0
    total_tokens: int = 0
    total_latency_ms: int = 0
    calls_by_stage: dict[str, int] = Field(default_factory=dict)
