# tests/unit/llm/test_models.py
"""Tests for llm/models.py: LLM interface types."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from speechwright.llm.models import LLMResponse, Message


class TestMessage:
    def test_all_roles(self):
        for role in ["user", "assistant", "system"]:
            assert Message(role=role, content="test").role == role

    def test_unknown_role_rejected(self):
        with pytest.raises(ValidationError):
            Message(role="tool", content="x")


class TestLLMResponse:
    def test_defaults(self):
        r = LLMResponse(content="out", model="m", provider="p")
        assert r.input_tokens == 0
        assert r.latency_ms == 0
        assert r.raw_response is None

    def test_fixture(self, mock_llm_response):
        assert mock_llm_response.provider == "mock"
        assert mock_llm_response.input_tokens + mock_llm_response.output_tokens == 150
