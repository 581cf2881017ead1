# src/main.py
"""CLI entry point: generate, refine, history, feedback, presets commands.

Usage:
    speechwright generate "<brief>" [options]
    speechwright refine "<instruction>" --from speech.txt [options]
    speechwright history --user-id <id> [--limit N]
    speechwright feedback <run_id> --judge-winner 1 --choice 2 --user-id <id>
    speechwright presets "<brief>"
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from speechwright.version import __version__

logger = logging.getLogger(__name__)

_EXIT_CODES = {"succeeded": 0, "failed": 1, "rejected": 2}


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        _setup_logging(args.verbose, args.log_format)
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _add_identity_args(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--user-id", default=None, help="Authenticated user id")
    group.add_argument("--anon-id", default=None, help="Anonymous session id")


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="speechwright",
        description=f"speechwright v{__version__}: multi-stage speechwriting pipeline",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--log-format", choices=("text", "json"), default=None,
        help="Log output format (default: LOG_FORMAT setting)",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- generate ---
    p_generate = subparsers.add_parser("generate", help="Write a new speech from a brief")
    p_generate.add_argument("brief", help="Free-text brief")
    p_generate.add_argument("--audience", default=None, help="Who is listening")
    p_generate.add_argument("--event-context", default=None, help="Where/when/why")
    p_generate.add_argument("--tone", default=None, help="Desired tone")
    p_generate.add_argument("--duration", default=None, help="Target length or time")
    p_generate.add_argument(
        "--must-include", action="append", default=[],
        help="Item the speech must include (repeatable)",
    )
    p_generate.add_argument(
        "--must-avoid", action="append", default=[],
        help="Item the speech must avoid (repeatable)",
    )
    _add_identity_args(p_generate)
    p_generate.add_argument("--json", action="store_true", help="Print the full JSON response")
    p_generate.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Also write the final speech to this file",
    )
    p_generate.set_defaults(func=_cmd_generate)

    # --- refine ---
    p_refine = subparsers.add_parser("refine", help="Revise an existing speech")
    p_refine.add_argument("instruction", help="Requested change")
    p_refine.add_argument(
        "--from", dest="source", type=Path, required=True,
        help="File holding the current speech",
    )
    p_refine.add_argument(
        "--previous-request", default=None,
        help="Instruction that produced the current speech",
    )
    _add_identity_args(p_refine)
    p_refine.add_argument("--json", action="store_true", help="Print the full JSON response")
    p_refine.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Also write the revised speech to this file",
    )
    p_refine.set_defaults(func=_cmd_refine)

    # --- history ---
    p_history = subparsers.add_parser("history", help="List saved runs")
    _add_identity_args(p_history)
    p_history.add_argument("--limit", type=int, default=20, help="Max runs (default: 20)")
    p_history.set_defaults(func=_cmd_history)

    # --- feedback ---
    p_feedback = subparsers.add_parser(
        "feedback", help="Record which draft you preferred for a saved run",
    )
    p_feedback.add_argument("run_id", help="Run id printed after generation")
    p_feedback.add_argument(
        "--judge-winner", type=int, choices=(1, 2), required=True,
        help="Candidate the judge picked",
    )
    p_feedback.add_argument(
        "--choice", type=int, choices=(1, 2), required=True,
        help="Candidate you prefer",
    )
    _add_identity_args(p_feedback)
    p_feedback.set_defaults(func=_cmd_feedback)

    # --- presets ---
    p_presets = subparsers.add_parser(
        "presets", help="Show the heuristic reading and matched presets (no LLM call)",
    )
    p_presets.add_argument("brief", help="Free-text brief")
    p_presets.set_defaults(func=_cmd_presets)

    return parser


async def _cmd_generate(args: argparse.Namespace) -> int:
    """Run the full generate pipeline."""
    from speechwright.api.facade import generate
    from speechwright.api.models import GenerateRequest

    request = GenerateRequest(
        brief=args.brief,
        audience=args.audience,
        event_context=args.event_context,
        tone=args.tone,
        duration=args.duration,
        key_points=args.must_include,
        red_lines=args.must_avoid,
        user_id=args.user_id,
        anon_id=args.anon_id,
    )
    response = await generate(request)
    return _emit(response, args)


async def _cmd_refine(args: argparse.Namespace) -> int:
    """Apply one instruction to a speech stored in a file."""
    from speechwright.api.facade import generate
    from speechwright.api.models import GenerateRequest

    source: Path = args.source
    if not source.is_file():
        logger.error("File not found: %s", source)
        return 1

    request = GenerateRequest(
        brief=args.instruction,
        user_id=args.user_id,
        anon_id=args.anon_id,
        previous_version_text=source.read_text(encoding="utf-8"),
        previous_request_text=args.previous_request or f"speech loaded from {source.name}",
    )
    response = await generate(request)
    return _emit(response, args)


async def _cmd_history(args: argparse.Namespace) -> int:
    """Print saved runs for one identity."""
    from speechwright.config.settings import Settings
    from speechwright.core.models import Identity
    from speechwright.storage.store_factory import create_run_store

    if not (args.user_id or args.anon_id):
        logger.error("history needs --user-id or --anon-id")
        return 1

    store = create_run_store(Settings())
    if store is None:
        logger.error("Run store disabled (set RUN_STORE_BACKEND=json or sqlite)")
        return 1

    try:
        runs = await store.list_runs(Identity(user_id=args.user_id, anon_id=args.anon_id), args.limit)
    finally:
        store.close()
    if not runs:
        print("No saved runs.")
        return 0
    for run in runs:
        preview = " ".join(run.brief.split())[:70]
        print(f"{run.created_at:%Y-%m-%d %H:%M}  {run.id}  winner={run.winner or '-'}  {preview}")
    return 0


async def _cmd_feedback(args: argparse.Namespace) -> int:
    """Record the preferred draft against the judge's pick."""
    from speechwright.api.facade import record_feedback
    from speechwright.api.models import FeedbackRequest
    from speechwright.core.errors import StoreError

    if not (args.user_id or args.anon_id):
        logger.error("feedback needs --user-id or --anon-id")
        return 1

    request = FeedbackRequest(
        run_id=args.run_id,
        judge_winner=args.judge_winner,
        user_choice=args.choice,
        user_id=args.user_id,
        anon_id=args.anon_id,
    )
    try:
        response = await record_feedback(request)
    except StoreError as exc:
        logger.error("%s", exc)
        return 1

    verdict = "agrees with" if response.agreement else "differs from"
    print(f"Feedback {response.feedback_id} recorded: your choice {verdict} the judge.")
    return 0


async def _cmd_presets(args: argparse.Namespace) -> int:
    """Show the deterministic reading of a brief and its preset matches."""
    from speechwright.pipeline.agents.normalizer import heuristic_intent
    from speechwright.pipeline.presets import describe_preset, match_presets

    intent = heuristic_intent(args.brief)
    print("\nHeuristic reading:")
    for field in ("role", "audience", "intent", "format"):
        print(f"  {field + ':':<10}{getattr(intent, field) or '-'}")
    print(f"  {'domains:':<10}{', '.join(intent.domains) or '-'}")

    presets = match_presets(intent)
    print("\nMatched presets:")
    if not presets:
        print("  (none)")
    for preset_id in presets:
        print(f"  {preset_id}  ({describe_preset(preset_id)})")
    return 0


def _emit(response, args: argparse.Namespace) -> int:
    """Print a GenerateResponse and map its status to an exit code."""
    if args.json:
        print(json.dumps(response.model_dump(mode="json", by_alias=True), indent=2))
    else:
        _print_response_summary(response)

    if args.output and response.final_speech is not None:
        args.output.write_text(response.final_speech, encoding="utf-8")
        logger.info("Wrote speech to %s", args.output)
    return _EXIT_CODES.get(response.status, 1)


def _print_response_summary(response) -> None:
    """Print a human-readable summary of a GenerateResponse."""
    if response.final_speech is None:
        print(f"\nRun {response.run_id} {response.status}: {response.error}")
        for entry in response.trace:
            print(f"  [{entry.stage}] {entry.message}")
        return

    print(response.final_speech)
    print(f"\n--- run {response.run_id} ({response.mode}) ---")
    if response.judge is not None:
        print(f"  Winner:     candidate {response.judge.winner}")
    if response.guardrail_status is not None:
        print(f"  Guardrail:  {response.guardrail_status}")
    if response.needs_review:
        print("  NEEDS REVIEW:")
        for issue in response.issues:
            print(f"    - {issue}")
    if response.presets:
        print(f"  Presets:    {', '.join(response.presets)}")


def _setup_logging(verbose: bool, log_format: str | None) -> None:
    """Configure logging for CLI usage from settings plus flags."""
    from speechwright.config.settings import Settings
    from speechwright.logging.logger import setup_logging_from_settings

    overrides: dict[str, str] = {}
    if verbose:
        overrides["log_level"] = "DEBUG"
    if log_format:
        overrides["log_format"] = log_format
    setup_logging_from_settings(Settings().model_copy(update=overrides))
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
