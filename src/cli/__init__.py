"""CLI entrypoint for the encounter tracker."""

from __future__ import annotations

import argparse
import logging
import sys

from src.cli.helpers import (
    _build_engine,
    _build_normalizer,
    _configure_logging,
    _load_command_config,
    _resolve_persistence,
)
from src.cli.options import LogFormat, build_arg_parser
from src.core.loop import EncounterLoop
from src.models.state import EngineState, Mode

logger = logging.getLogger(__name__)


def run_command(args: argparse.Namespace) -> int:
    """Execute the `run` command."""
    if args.command != "run":
        raise ValueError(f"Unsupported command: {args.command}")

    config = _load_command_config(args)
    persistence = _resolve_persistence(args, config)
    state = persistence.load_state()
    logger.info(
        "[BOOT] Loaded %s: %d encounters, mode %s",
        persistence.state_path,
        state.encounters,
        state.mode.label,
    )

    normalizer = _build_normalizer(config)
    engine = _build_engine(config, normalizer, persistence)
    loop = EncounterLoop(engine, state)
    if bool(args.start):
        loop.resume()

    with normalizer:
        try:
            loop.run(max_cycles=args.max_cycles)
        except KeyboardInterrupt:
            logger.info("[BOOT] Interrupted after %d cycles", loop.cycles)
    return 0


def init_command(args: argparse.Namespace) -> int:
    """Execute the `init` command."""
    config = _load_command_config(args)
    persistence = _resolve_persistence(args, config)
    persistence.init_state(force=bool(args.force))
    return 0


def _format_stats(state: EngineState, top: int | None = None) -> str:
    lines = [
        f"Mode:           {state.mode.label}",
        f"Encounters:     {state.encounters}",
        f"Last encounter: {', '.join(state.last_encounter) or '-'}",
    ]
    species = state.top_species(top)
    if species:
        lines.append("Species:")
        width = max(len(name) for name, _ in species)
        lines.extend(f"  {name.ljust(width)}  {count}" for name, count in species)
    return "\n".join(lines)


def stats_command(args: argparse.Namespace) -> int:
    """Execute the `stats` command."""
    config = _load_command_config(args)
    state = _resolve_persistence(args, config).load_state()
    print(_format_stats(state, args.top))
    return 0


def mode_command(args: argparse.Namespace) -> int:
    """Execute the `mode` command. Only meaningful while the loop is stopped."""
    config = _load_command_config(args)
    persistence = _resolve_persistence(args, config)
    state = persistence.load_state()
    new_mode = Mode(args.mode)
    logger.info("Mode %s -> %s", state.mode.value, new_mode.value)
    state.mode = new_mode
    persistence.save_state(state)
    return 0


_COMMANDS = {
    "run": run_command,
    "init": init_command,
    "stats": stats_command,
    "mode": mode_command,
}


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint function."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    # Configure a sane bootstrap logger before config loading.
    _configure_logging(
        level="INFO",
        log_format=str(args.log_format or LogFormat.READABLE.value),
    )

    try:
        command = _COMMANDS.get(args.command)
        if command is None:
            raise ValueError(f"Unsupported command: {args.command}")
        return command(args)
    except Exception as exc:
        logger.error("[BOOT] %s failed: %s", args.command, exc)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
