"""Command line tools for generating, checking and simulating pipe levels."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Optional, Sequence

from .codec import Level, LevelFormatError, LevelLoader, decode_level
from .config import resolve_level_root
from .flow import run_flow
from .generator import Difficulty, generate_batch
from .solver import find_route


def _read_level(source: str, loader: LevelLoader) -> Level:
    """Treat ``source`` as a level name when one exists, else as a level string."""

    if source in loader.available():
        return loader.load(source)
    level = decode_level(source)
    level.name = "<string>"
    return level


def _cmd_generate(args: argparse.Namespace, loader: LevelLoader) -> int:
    for text in generate_batch(args.count, Difficulty.parse(args.difficulty), args.seed, args.no_spill):
        print(text)
    return 0


def _cmd_verify(args: argparse.Namespace, loader: LevelLoader) -> int:
    status = 0
    for source in args.levels:
        try:
            level = _read_level(source, loader)
        except LevelFormatError as exc:
            print(f"{source}: invalid ({exc.reason}) {exc}")
            status = 1
            continue
        board = level.board
        route = find_route(board.width, board.height, board.cell_connections(), level.faucet, level.goal)
        label = level.name or source
        if route is None:
            print(f"{label}: unsolvable")
            status = 1
            continue
        print(f"{label}: solvable")
        if args.route:
            print("  route: " + " -> ".join(f"({x},{y})" for x, y in route))
    return status


def _cmd_simulate(args: argparse.Namespace, loader: LevelLoader) -> int:
    try:
        level = _read_level(args.level, loader)
    except LevelFormatError as exc:
        print(f"{args.level}: invalid ({exc.reason}) {exc}")
        return 1

    result = run_flow(level.board, level.faucet, level.goal, no_spill=args.no_spill)
    final_spills = result.final.spills if result.final else ()
    if args.json:
        payload = {
            "level": level.name,
            "blocked": result.blocked,
            "outcome": result.outcome.value,
            "ticks": result.ticks,
            "flowing": [sorted(state.flowing) for state in result.states],
            "spills": [[spill.x, spill.y, spill.incoming.value] for spill in final_spills],
        }
        print(json.dumps(payload, indent=2))
        return 0

    print(f"=== Simulating {level.name} ({level.width}x{level.height}) ===")
    if result.blocked:
        print("Faucet is blocked: the first pipe does not face it")
        return 0
    for state in result.states:
        print(f"tick {state.tick_count:>3}: {len(state.flowing)} pipes flowing")
    final = result.final
    if final is not None and final.spills:
        print("Spills at: " + ", ".join(f"({spill.x},{spill.y})" for spill in final.spills))
    print(f"Outcome: {result.outcome.value}")
    return 0


def _cmd_levels(args: argparse.Namespace, loader: LevelLoader) -> int:
    names = loader.available()
    if not names:
        print(f"No levels found in {loader.root}")
        return 0
    for name in names:
        print(name)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Pipe puzzle level tools")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--level-root", type=Path, help="Directory holding *.level files")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Print a seeded batch of level strings")
    generate.add_argument("--difficulty", choices=[d.value for d in Difficulty], default="normal")
    generate.add_argument("--count", type=int, default=5)
    generate.add_argument("--seed", type=int, default=12345)
    generate.add_argument("--no-spill", action="store_true")
    generate.set_defaults(handler=_cmd_generate)

    verify = subparsers.add_parser("verify", help="Check levels for a faucet-to-goal route")
    verify.add_argument("levels", nargs="+", help="Level names or level strings")
    verify.add_argument("--route", action="store_true", help="Print the route found")
    verify.set_defaults(handler=_cmd_verify)

    simulate = subparsers.add_parser("simulate", help="Run the flow on a level as laid out")
    simulate.add_argument("level", help="Level name or level string")
    simulate.add_argument("--no-spill", action="store_true")
    simulate.add_argument("--json", action="store_true", help="Emit the trace as JSON")
    simulate.set_defaults(handler=_cmd_simulate)

    levels = subparsers.add_parser("levels", help="List the available level files")
    levels.set_defaults(handler=_cmd_levels)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    root = args.level_root if args.level_root is not None else resolve_level_root(check_exists=False)
    return args.handler(args, LevelLoader(root))


if __name__ == "__main__":
    raise SystemExit(main())
