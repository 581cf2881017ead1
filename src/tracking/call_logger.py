# src/tracking/call_logger.py
"""LLM call logging: records every generative call of a run."""

from __future__ import annotations

import json
import logging
import uuid
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path

from speechwright.llm.models import LLMResponse
from speechwright.tracking.models import LLMCallRecord, RunUsage

logger = logging.getLogger(__name__)


class CallLogger:
    """Accumulates LLM call records during a pipeline run."""

    def __init__(self) -> None:
        self._records: list[LLMCallRecord] = []

    def record(
        self,
        stage: str,
        step: str,
        response: LLMResponse,
    ) -> LLMCallRecord:
        """Record a successful LLM call.

        Args:
            stage: Stage name (e.g. "planner").
            step: Step identifier within the stage (e.g. "draft_2").
            response: LLM response with token usage.
        """
        record = LLMCallRecord(
            call_id=str(uuid.uuid4()),
            timestamp=datetime.now(timezone.utc),
            stage=stage,
            step=step,
            provider=response.provider,
            model=response.model,
            input_tokens=response.input_tokens,
            output_tokens=response.output_tokens,
            total_tokens=response.input_tokens + response.output_tokens,
            latency_ms=response.latency_ms,
            status="success",
        )
        self._records.append(record)
        return record

    def record_failure(self, stage: str, step: str, error: Exception) -> LLMCallRecord:
        """Record a call that raised before returning a response."""
        record = LLMCallRecord(
            call_id=str(uuid.uuid4()),
            timestamp=datetime.now(timezone.utc),
            stage=stage,
            step=step,
            provider="unknown",
            model="unknown",
            input_tokens=0,
            output_tokens=0,
            total_tokens=0,
            latency_ms=0,
            status="failed",
            error=f"{type(error).__name__}: {error}",
        )
        self._records.append(record)
        return record

    @property
    def records(self) -> list[LLMCallRecord]:
        """All recorded calls."""
        return list(self._records)

    @property
    def total_tokens(self) -> int:
        return sum(r.total_tokens for r in self._records)

    @property
    def total_calls(self) -> int:
        return len(self._records)

    def usage(self) -> RunUsage:
        """Summarize the recorded calls."""
        return RunUsage(
            total_calls=len(self._records),
            failed_calls=sum(1 for r in self._records if r.status == "failed"),
            total_tokens=self.total_tokens,
            total_latency_ms=sum(r.latency_ms for r in self._records),
            calls_by_stage=dict(Counter(r.stage for r in self._records)),
        )

    def save(self, path: Path) -> None:
        """Save all records to a JSON Lines file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            for record in self._records:
                f.write(json.dumps(record.model_dump(), default=str) + "\n")
