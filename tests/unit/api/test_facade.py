# tests/unit/api/test_facade.py
"""Tests for api/facade.py: wiring, overrides and the sync wrapper."""

from __future__ import annotations

import sqlite3
from unittest.mock import MagicMock, patch

import pytest

from speechwright.api.facade import (
    _apply_overrides,
    build_pipeline,
    generate,
    generate_sync,
    record_feedback,
)
from speechwright.api.models import ConfigOverrides, FeedbackRequest, GenerateRequest
from speechwright.config.settings import Settings
from speechwright.core.errors import StoreError
from speechwright.core.models import Identity
from speechwright.memory.memory_factory import create_memory_store
from speechwright.pipeline.llm_factory import LLMFactory
from speechwright.storage.json_store import JsonRunStore
from speechwright.storage.store_factory import create_run_store
from llm_stubs import happy_llms, mock_client


def _settings(**kwargs) -> Settings:
    return Settings(_env_file=None, **kwargs)


class TestApplyOverrides:
    def test_none(self):
        settings = _settings()
        assert _apply_overrides(settings, None) is settings

    def test_empty(self):
        settings = _settings()
        assert _apply_overrides(settings, ConfigOverrides()) is settings

    def test_applied(self):
        settings = _settings(drafter_mode="split")
        updated = _apply_overrides(
            settings, ConfigOverrides(drafter_mode="combined", judge_seed=3)
        )
        assert updated.drafter_mode == "combined"
        assert updated.judge_seed == 3
        assert settings.drafter_mode == "split"


class TestBuildPipeline:
    def test_defaults_from_settings(self):
        pipeline = build_pipeline(_settings(planner_strict=True))
        assert pipeline.config.planner_strict is True
        assert isinstance(pipeline._llm, LLMFactory)
        assert pipeline._run_store is None
        assert pipeline._memory_store is None

    def test_store_backend(self, tmp_data_root):
        pipeline = build_pipeline(_settings(run_store_backend="json", data_root=tmp_data_root))
        assert isinstance(pipeline._run_store, JsonRunStore)


class TestGenerate:
    @pytest.mark.asyncio
    async def test_success(self):
        response = await generate(
            GenerateRequest(brief="Thank my engineers for the year", userId="u-1"),
            settings=_settings(judge_seed=0),
            llm_factory=happy_llms(final_text="Thank you all."),
        )
        assert response.status == "succeeded"
        assert response.final_speech == "Thank you all."
        assert response.drafts is not None
        assert response.trace[0].stage == "input"

    @pytest.mark.asyncio
    async def test_override_changes_drafter_mode(self):
        llms = happy_llms()
        llms.clients["drafter"] = mock_client("===DRAFT_1===\nOne.\n===DRAFT_2===\nTwo.")
        request = GenerateRequest.model_validate({
            "brief": "Thank my engineers",
            "configOverrides": {"drafter_mode": "combined", "judge_seed": 0},
        })
        response = await generate(request, settings=_settings(), llm_factory=llms)
        assert response.drafts.draft_1 == "One."
        assert llms.calls("drafter") == 1

    @pytest.mark.asyncio
    async def test_rejected(self):
        llms = happy_llms()
        response = await generate(GenerateRequest(brief=""), settings=_settings(), llm_factory=llms)
        assert response.status == "rejected"
        assert response.error == "rejected: brief is empty"
        assert llms.total_calls == 0


class TestGenerateStoreLifecycle:
    @pytest.mark.asyncio
    async def test_closes_stores_it_opens(self, tmp_data_root):
        opened = []

        def _track(factory):
            def _create(settings):
                store = factory(settings)
                opened.append(store)
                return store
            return _create

        settings = _settings(
            run_store_backend="sqlite", memory_backend="sqlite",
            data_root=tmp_data_root, judge_seed=0,
        )
        with patch("speechwright.api.facade.create_run_store", _track(create_run_store)), \
                patch("speechwright.api.facade.create_memory_store", _track(create_memory_store)):
            for _ in range(2):
                response = await generate(
                    GenerateRequest(brief="Thank my engineers", userId="u-1"),
                    settings=settings,
                    llm_factory=happy_llms(),
                )
                assert response.status == "succeeded"

        assert len(opened) == 4
        for store in opened:
            with pytest.raises(sqlite3.ProgrammingError):
                store._conn.execute("SELECT 1")

    @pytest.mark.asyncio
    async def test_caller_stores_left_open(self, tmp_data_root):
        run_store = JsonRunStore(tmp_data_root)
        run_store.close = MagicMock()
        response = await generate(
            GenerateRequest(brief="Thank my engineers", userId="u-1"),
            settings=_settings(judge_seed=0),
            llm_factory=happy_llms(),
            run_store=run_store,
        )
        assert response.status == "succeeded"
        run_store.close.assert_not_called()
        saved = await run_store.list_runs(Identity(user_id="u-1"))
        assert [r.id for r in saved] == [response.run_id]


class TestRecordFeedback:
    @pytest.mark.asyncio
    async def test_recorded_in_configured_store(self, tmp_data_root):
        settings = _settings(run_store_backend="json", data_root=tmp_data_root)
        response = await record_feedback(
            FeedbackRequest(run_id="r-1", judge_winner=1, user_choice=2, user_id="u-1"),
            settings=settings,
        )
        assert response.ok
        assert response.agreement is False
        entries = await JsonRunStore(tmp_data_root / "runs").list_feedback(Identity(user_id="u-1"))
        assert [(e.id, e.run_id) for e in entries] == [(response.feedback_id, "r-1")]

    @pytest.mark.asyncio
    async def test_store_disabled(self):
        with pytest.raises(StoreError):
            await record_feedback(
                FeedbackRequest(run_id="r-1", judge_winner=1, user_choice=1, user_id="u-1"),
                settings=_settings(),
            )

    @pytest.mark.asyncio
    async def test_missing_identity(self, tmp_data_root):
        run_store = JsonRunStore(tmp_data_root)
        with pytest.raises(ValueError):
            await record_feedback(
                FeedbackRequest(run_id="r-1", judge_winner=1, user_choice=1),
                run_store=run_store,
            )

    @pytest.mark.asyncio
    async def test_caller_store_left_open(self, tmp_data_root):
        run_store = JsonRunStore(tmp_data_root)
        run_store.close = MagicMock()
        response = await record_feedback(
            FeedbackRequest(run_id="r-1", judge_winner=2, user_choice=2, anon_id="a"),
            run_store=run_store,
        )
        assert response.agreement is True
        run_store.close.assert_not_called()


class TestGenerateSync:
    def test_blocking_wrapper(self):
        response = generate_sync(
            GenerateRequest(brief="Thank my engineers"),
            settings=_settings(judge_seed=0),
            llm_factory=happy_llms(),
        )
        assert response.status == "succeeded"
