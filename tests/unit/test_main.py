# tests/unit/test_main.py
"""Tests for main.py: CLI entry point."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from speechwright.api.models import FeedbackResponse, GenerateResponse
from speechwright.core.errors import StoreError
from speechwright.core.models import TraceEntry
from speechwright.main import _build_parser, main

_GENERATE = "speechwright.api.facade.generate"
_FEEDBACK = "speechwright.api.facade.record_feedback"


def _response(status: str = "succeeded", **kwargs) -> GenerateResponse:
    defaults = {
        "run_id": "r-1",
        "mode": "generate",
        "status": status,
        "final_speech": "Thank you all." if status == "succeeded" else None,
    }
    defaults.update(kwargs)
    return GenerateResponse(**defaults)


@pytest.fixture(autouse=True)
def _no_logging_setup():
    with patch("speechwright.main._setup_logging"):
        yield


# ---------------------------------------------------------------------------
# Parser tests
# ---------------------------------------------------------------------------

class TestBuildParser:
    def test_version_flag(self):
        with pytest.raises(SystemExit) as exc_info:
            _build_parser().parse_args(["--version"])
        assert exc_info.value.code == 0

    def test_generate_subcommand(self):
        args = _build_parser().parse_args([
            "generate", "A toast", "--must-include", "the dog",
            "--must-include", "the boat", "--anon-id", "a1", "-o", "out.txt",
        ])
        assert args.command == "generate"
        assert args.must_include == ["the dog", "the boat"]
        assert args.anon_id == "a1"
        assert args.output == Path("out.txt")

    def test_identity_exclusive(self):
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["generate", "x", "--user-id", "u", "--anon-id", "a"])

    def test_refine_requires_source(self):
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["refine", "shorter"])

    def test_feedback_choices(self):
        with pytest.raises(SystemExit):
            _build_parser().parse_args(
                ["feedback", "r-1", "--judge-winner", "1", "--choice", "3", "--user-id", "u"]
            )

    def test_log_format(self):
        args = _build_parser().parse_args(["--log-format", "text", "presets", "x"])
        assert args.log_format == "text"


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

class TestMain:
    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out.lower()

    def test_presets(self, capsys):
        code = main(["presets", "I'm the CEO. A thank-you speech for my engineers."])
        out = capsys.readouterr().out
        assert code == 0
        assert "role:     ceo" in out
        assert "corporate_leadership_talk" in out

    def test_presets_none(self, capsys):
        assert main(["presets", "hello"]) == 0
        assert "(none)" in capsys.readouterr().out

    def test_generate_success(self, capsys, tmp_path):
        out_file = tmp_path / "speech.txt"
        mock_generate = AsyncMock(return_value=_response())
        with patch(_GENERATE, mock_generate):
            code = main([
                "generate", "Thank my team", "--must-avoid", "layoffs",
                "--user-id", "u-1", "-o", str(out_file),
            ])
        assert code == 0
        request = mock_generate.call_args.args[0]
        assert request.red_lines == ["layoffs"]
        assert request.user_id == "u-1"
        assert out_file.read_text(encoding="utf-8") == "Thank you all."
        assert "Thank you all." in capsys.readouterr().out

    def test_generate_json(self, capsys):
        with patch(_GENERATE, AsyncMock(return_value=_response())):
            assert main(["generate", "Thank my team", "--json"]) == 0
        assert '"finalSpeech": "Thank you all."' in capsys.readouterr().out

    def test_generate_rejected_exit_code(self, capsys):
        response = _response(
            "rejected",
            error="rejected: brief is empty",
            trace=[TraceEntry(stage="input", message="rejected: brief is empty")],
        )
        with patch(_GENERATE, AsyncMock(return_value=response)):
            assert main(["generate", " "]) == 2
        assert "[input] rejected: brief is empty" in capsys.readouterr().out

    def test_generate_failed_exit_code(self):
        with patch(_GENERATE, AsyncMock(return_value=_response("failed"))):
            assert main(["generate", "x"]) == 1

    def test_refine_reads_file(self, tmp_path):
        source = tmp_path / "speech.txt"
        source.write_text("Old speech.", encoding="utf-8")
        mock_generate = AsyncMock(return_value=_response(mode="refine"))
        with patch(_GENERATE, mock_generate):
            assert main(["refine", "shorter", "--from", str(source)]) == 0
        request = mock_generate.call_args.args[0]
        assert request.previous_version_text == "Old speech."
        assert request.previous_request_text == "speech loaded from speech.txt"

    def test_refine_missing_file(self, tmp_path):
        assert main(["refine", "shorter", "--from", str(tmp_path / "nope.txt")]) == 1

    def test_history_needs_identity(self):
        assert main(["history"]) == 1

    def test_history_store_disabled(self):
        with patch("speechwright.storage.store_factory.create_run_store", return_value=None):
            assert main(["history", "--user-id", "u-1"]) == 1

    def test_unexpected_error(self):
        with patch(_GENERATE, AsyncMock(side_effect=RuntimeError("boom"))):
            assert main(["generate", "x"]) == 1

    def test_feedback_recorded(self, capsys):
        mock_feedback = AsyncMock(
            return_value=FeedbackResponse(feedback_id="f-1", agreement=False)
        )
        with patch(_FEEDBACK, mock_feedback):
            code = main([
                "feedback", "r-1", "--judge-winner", "1", "--choice", "2", "--user-id", "u-1",
            ])
        assert code == 0
        request = mock_feedback.call_args.args[0]
        assert (request.run_id, request.judge_winner, request.user_choice) == ("r-1", 1, 2)
        assert request.identity.key == "user:u-1"
        assert "differs from the judge" in capsys.readouterr().out

    def test_feedback_needs_identity(self):
        assert main(["feedback", "r-1", "--judge-winner", "1", "--choice", "1"]) == 1

    def test_feedback_store_disabled(self):
        with patch(_FEEDBACK, AsyncMock(side_effect=StoreError("Run store disabled"))):
            assert main([
                "feedback", "r-1", "--judge-winner", "1", "--choice", "1", "--anon-id", "a",
            ]) == 1
