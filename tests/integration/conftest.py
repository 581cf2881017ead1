# tests/integration/conftest.py
"""Shared fixtures for integration tests.

Real stores (JSON, SQLite) under tmp_path and real stage agents; only the
provider is replaced by ``MockLLMClient``, a full ``BaseLLMClient``
implementation with a response queue per instance.
"""

from __future__ import annotations

import json
from typing import Any

import pytest
from pydantic import BaseModel

from speechwright.config.settings import Settings
from speechwright.llm.base_client import BaseLLMClient
from speechwright.llm.models import LLMResponse, Message


class MockLLMClient(BaseLLMClient):
    """Mock LLM client for integration testing without real LLM services."""

    def __init__(self, default_response: str = "{}"):
        self._default_response = default_response
        self._response_queue: list[str | Exception] = []
        self.calls: list[dict[str, Any]] = []

    def set_responses(self, *responses: str | dict | Exception) -> None:
        self._response_queue = [
            json.dumps(r) if isinstance(r, dict) else r for r in responses
        ]

    def set_default(self, response: str) -> None:
        self._default_response = response

    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
        response_format: type[BaseModel] | None = None,
    ) -> LLMResponse:
        self.calls.append({
            "messages": messages, "system": system,
            "max_tokens": max_tokens, "temperature": temperature,
            "response_format": response_format,
        })
        content = self._response_queue.pop(0) if self._response_queue else self._default_response
        if isinstance(content, Exception):
            raise content
        return LLMResponse(
            content=content, input_tokens=50, output_tokens=len(content) // 4,
            model="mock-model", provider="mock", latency_ms=10,
            raw_response={"mock": True},
        )

    @property
    def provider_name(self) -> str:
        return "mock"


STAGES = ("normalizer", "planner", "drafter", "judge", "guardrail", "editor", "refiner")


class MockStageRouter:
    """One MockLLMClient per stage, callable like LLMFactory."""

    def __init__(self) -> None:
        self.clients = {stage: MockLLMClient() for stage in STAGES}

    def __call__(self, stage: str) -> MockLLMClient:
        return self.clients[stage]

    def __getitem__(self, stage: str) -> MockLLMClient:
        return self.clients[stage]


@pytest.fixture
def router() -> MockStageRouter:
    return MockStageRouter()


@pytest.fixture
def sqlite_settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        run_store_backend="sqlite",
        memory_backend="sqlite",
        data_root=tmp_path,
        judge_seed=0,
    )


@pytest.fixture
def json_settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        run_store_backend="json",
        memory_backend="json",
        data_root=tmp_path,
        judge_seed=0,
    )
