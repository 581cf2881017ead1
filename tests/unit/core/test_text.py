# tests/unit/core/test_text.py
"""Tests for core/text.py: shared text helpers."""

from __future__ import annotations

from speechwright.core.text import (
    dedupe,
    normalize_ws,
    split_list,
    strip_code_fence,
    truncate,
    word_count,
)


class TestDedupe:
    def test_case_insensitive_order_preserving(self):
        assert dedupe(["B", "a", "b", " A ", ""]) == ["B", "a"]


class TestStripCodeFence:
    def test_json_fence(self):
        assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_no_fence(self):
        assert strip_code_fence("  plain  ") == "plain"


class TestTruncate:
    def test_short_untouched(self):
        assert truncate("abc", 5) == "abc"

    def test_cut(self):
        assert truncate("abcdefgh", 4) == "abcd…"


class TestSplitList:
    def test_newlines_and_semicolons(self):
        assert split_list("hiring\nQ3 results; thanks ;") == ["hiring", "Q3 results", "thanks"]

    def test_list_passthrough(self):
        assert split_list(["a", "A", "b"]) == ["a", "b"]

    def test_none(self):
        assert split_list(None) == []


class TestMisc:
    def test_normalize_ws(self):
        assert normalize_ws(" a \n\n b\tc ") == "a b c"

    def test_word_count(self):
        assert word_count("one two  three") == 3
