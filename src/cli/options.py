"""CLI option models and parser helpers."""

from __future__ import annotations

import argparse
from enum import StrEnum

from src.models.state import Mode


class LogFormat(StrEnum):
    """CLI log formatter mode."""

    READABLE = "readable"
    JSON = "json"


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from e
    if parsed < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {parsed}")
    return parsed


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", type=str, default=None, help="YAML config file")
    parser.add_argument("--state", type=str, default=None, help="State file override")
    parser.add_argument(
        "--log-format",
        type=str,
        default=None,
        choices=[fmt.value for fmt in LogFormat],
        help="Terminal log format",
    )


def build_arg_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="encounter-tracker",
        description="Count creature encounters by reading the game screen",
    )
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Run the encounter detection loop")
    _add_common_arguments(run_parser)
    run_parser.add_argument(
        "--start",
        action="store_true",
        help="Switch an Init/Pause state to Walk before the first cycle",
    )
    run_parser.add_argument(
        "--max-cycles",
        type=int,
        default=None,
        help="Stop after N polling cycles (default: run until killed)",
    )

    init_parser = subparsers.add_parser("init", help="Write a fresh state file")
    _add_common_arguments(init_parser)
    init_parser.add_argument("--force", action="store_true", help="Overwrite an existing state file")

    stats_parser = subparsers.add_parser("stats", help="Show encounter statistics")
    _add_common_arguments(stats_parser)
    stats_parser.add_argument("--top", type=_positive_int, default=None, help="Only show the N most seen")

    mode_parser = subparsers.add_parser("mode", help="Set the mode stored in the state file")
    _add_common_arguments(mode_parser)
    mode_parser.add_argument("mode", type=str, choices=[mode.value for mode in Mode])

    return parser
