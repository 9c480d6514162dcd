"""Interactive pygame window for playing pipe puzzle levels."""

from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from typing import Optional, Sequence

import pygame

from ..config import GameConfig, resolve_level_root
from ..game import PipeGame
from .toolkit import PipeGameUI

logger = logging.getLogger(__name__)

FRAME_RATE = 60


class PipeGameApp:
    """Owns the window and the frame loop; the session owns the rules."""

    def __init__(self, game: PipeGame, *, tile_size: int = 72) -> None:
        pygame.init()
        pygame.display.set_caption("Pipe Puzzle")
        self.game = game
        self.ui = PipeGameUI(game, tile_size=tile_size, use_display=True)
        self.clock = pygame.time.Clock()
        self.running = False

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.running = False
        elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
            self.running = False
        else:
            self.ui.process_events([event])

    def run(self) -> None:
        self.running = True
        while self.running:
            for event in pygame.event.get():
                self.handle_event(event)
            self.game.advance(self.clock.tick(FRAME_RATE))
            self.ui.render()
        pygame.quit()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Pipe Puzzle viewer")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--level", help="Name of a level file in the level directory")
    source.add_argument("--level-string", help="Level string to play")
    parser.add_argument("--difficulty", choices=["easy", "normal", "hard"])
    parser.add_argument("--no-spill", action="store_true", help="Any leak loses the round")
    parser.add_argument("--seed", type=int, help="Seed for new boards")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--info",
        action="store_true",
        help="Print the resolved level directory and exit without opening a window.",
    )
    return parser


def create_game(args: argparse.Namespace, config: Optional[GameConfig] = None) -> PipeGame:
    """Session configured from the environment with command line overrides."""

    config = config or GameConfig.from_env()
    overrides = {}
    if args.difficulty:
        overrides["difficulty"] = args.difficulty
    if args.no_spill:
        overrides["no_spill"] = True
    if args.seed is not None:
        overrides["seed"] = args.seed
    config = replace(config, **overrides)

    game = PipeGame(config=config)
    if args.level and not game.load_named(args.level):
        logger.warning("Level %s is invalid, keeping a generated board", args.level)
    if args.level_string and not game.load_level(args.level_string):
        logger.warning("Level string is invalid, keeping a generated board")
    return game


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.info:
        print(f"Pipe Puzzle levels: {resolve_level_root()}")
        return 0
    game = create_game(args)
    PipeGameApp(game).run()
    return 0


if __name__ == "__main__":  # pragma: no cover - manual invocation entry point
    raise SystemExit(main())
