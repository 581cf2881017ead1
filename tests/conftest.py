# tests/conftest.py
"""Shared test fixtures for all unit tests.

Provides mock LLM clients (one AsyncMock per stage), sample plans and
requests, and temp directories. No network: all LLM I/O is mocked.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from speechwright.config.runner_config import RunnerConfig
from speechwright.core.models import (
    CandidatePair,
    NormalizedIntent,
    Pillar,
    Plan,
    PlanConstraints,
    RunRequest,
)
from speechwright.llm.models import LLMResponse
from speechwright.pipeline.state import RunContext
from llm_stubs import DRAFT_ONE, DRAFT_TWO, make_response


# === FIXTURES: Sample data ===


@pytest.fixture
def sample_intent() -> NormalizedIntent:
    return NormalizedIntent(
        goal="Thank the engineering team",
        role="ceo",
        audience="engineers",
        intent="thank",
        format="speech",
        tone="warm",
        domains=["startup"],
        must_include=["thank the on-call rota"],
        must_avoid=["layoffs"],
        source="heuristic",
    )


@pytest.fixture
def sample_plan() -> Plan:
    return Plan(
        core_message="This team turned a hard year into its best one.",
        audience="The engineering team.",
        event_context="End-of-year all-hands.",
        tone="warm, grateful",
        duration="3 minutes",
        pillars=[Pillar(title="The launch", summary="What shipping together meant.")],
        constraints=PlanConstraints(
            must_include=["thank the on-call rota"], must_avoid=["layoffs"]
        ),
    )


@pytest.fixture
def sample_pair() -> CandidatePair:
    return CandidatePair(first=DRAFT_ONE, second=DRAFT_TWO)


@pytest.fixture
def sample_request() -> RunRequest:
    return RunRequest.build(
        "I'm the CEO. Write a warm thank-you speech to my engineers for the year.",
        must_include=["thank the on-call rota"],
        must_avoid=["layoffs"],
        user_id="u-1",
    )


@pytest.fixture
def ctx() -> RunContext:
    return RunContext.create(seed=7)


@pytest.fixture
def runner_config() -> RunnerConfig:
    return RunnerConfig(judge_seed=1)


# === FIXTURES: Mock LLM ===


@pytest.fixture
def mock_llm_response() -> LLMResponse:
    """Standard mock LLM response."""
    return make_response('{"summary": "Test summary"}')


@pytest.fixture
def mock_llm_client(mock_llm_response: LLMResponse) -> AsyncMock:
    """Mock BaseLLMClient with default response."""
    client = AsyncMock()
    client.complete = AsyncMock(return_value=mock_llm_response)
    client.provider_name = "mock"
    return client


# === FIXTURES: Temp dirs ===


@pytest.fixture
def tmp_data_root(tmp_path: Path) -> Path:
    """Temporary data root for store backends."""
    root = tmp_path / "data"
    root.mkdir()
    return root
