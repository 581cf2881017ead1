# src/storage/base_run_store.py
"""Abstract run store interface.

Saving is best-effort: the pipeline catches every error raised here.
Feedback is recorded on explicit caller request and errors propagate.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from speechwright.core.models import CandidatePair, Identity, JudgeVerdict, TraceEntry
from speechwright.storage.models import SavedRun, SpeechFeedback


def _require_single_identity(identity: Identity) -> str:
    if not identity.is_set or identity.is_ambiguous or identity.key is None:
        raise ValueError("run store requires exactly one of user_id / anon_id")
    return identity.key


class BaseRunStore(ABC):
    """Unified interface for run history backends."""

    async def save(
        self,
        identity: Identity,
        brief: str,
        final_text: str | None,
        candidates: CandidatePair | None,
        verdict: JudgeVerdict | None,
        trace: list[TraceEntry],
        run_id: str | None = None,
    ) -> SavedRun:
        """Persist one run for ``identity``.

        Args:
            run_id: Pipeline run id to save under. A fresh id if None.

        Raises:
            ValueError: If the identity is unset or ambiguous.
        """
        key = _require_single_identity(identity)
        run = SavedRun.from_run(
            identity=key,
            brief=brief,
            final_text=final_text,
            candidates=candidates,
            verdict=verdict,
            trace=trace,
            run_id=run_id,
        )
        await self._insert(run)
        return run

    async def record_feedback(
        self,
        run_id: str,
        identity: Identity,
        judge_winner: int,
        user_choice: int,
    ) -> SpeechFeedback:
        """Record which draft the caller preferred against the judge's pick.

        Raises:
            ValueError: If the identity is unset or ambiguous, the run id is
                empty, or either choice is not 1 or 2.
        """
        key = _require_single_identity(identity)
        feedback = SpeechFeedback(
            run_id=run_id,
            identity=key,
            judge_winner=judge_winner,
            user_choice=user_choice,
            agreement=judge_winner == user_choice,
        )
        await self._insert_feedback(feedback)
        return feedback

    @abstractmethod
    async def _insert(self, run: SavedRun) -> None:
        """Write a single run record."""

    @abstractmethod
    async def _insert_feedback(self, feedback: SpeechFeedback) -> None:
        """Write a single feedback record."""

    @abstractmethod
    async def list_runs(self, identity: Identity, limit: int = 20) -> list[SavedRun]:
        """Most recent runs first."""

    @abstractmethod
    async def list_feedback(self, identity: Identity) -> list[SpeechFeedback]:
        """All feedback recorded by ``identity``, oldest first."""

    def close(self) -> None:
        """Release backend resources. No-op for file backends."""
