"""Puzzle session: board, faucet, movement lock and tick scheduling."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple

from .board import Board, EdgePoint
from .codec import Level, LevelFormatError, LevelLoader, decode_level, encode_level
from .config import GameConfig
from .flow import (
    FaucetStatus,
    FlowOutcome,
    FlowState,
    Spill,
    faucet_status,
    outcome,
    start_flow,
    tick,
)
from .generator import Difficulty, SeededRandom, fallback_level, pick_solvable_level
from .geometry import Direction
from .scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GameSnapshot:
    """Read-only view of the session handed to renderers after each change."""

    width: int
    height: int
    cells: Tuple[Tuple[int, ...], ...]
    connections: Mapping[int, FrozenSet[Direction]]
    flowing: FrozenSet[int]
    incoming: Mapping[int, Direction]
    faucet: EdgePoint
    goal: EdgePoint
    faucet_status: FaucetStatus
    goal_reached: bool
    lost: bool
    outcome: FlowOutcome
    spills: Tuple[Spill, ...]
    movement_locked: bool
    no_spill: bool
    difficulty: Difficulty
    tick_count: int = 0

    def is_flowing(self, tile: int) -> bool:
        return tile in self.flowing

    def as_dict(self) -> Dict[str, object]:
        return {
            "size": [self.width, self.height],
            "cells": [list(row) for row in self.cells],
            "connections": {
                str(tile): sorted(direction.value for direction in arms)
                for tile, arms in sorted(self.connections.items())
            },
            "flowing": sorted(self.flowing),
            "incoming": {str(tile): direction.value for tile, direction in sorted(self.incoming.items())},
            "faucet": [self.faucet.x, self.faucet.y, self.faucet.side.value],
            "goal": [self.goal.x, self.goal.y, self.goal.side.value],
            "faucet_status": self.faucet_status.value,
            "goal_reached": self.goal_reached,
            "lost": self.lost,
            "outcome": self.outcome.value,
            "spills": [[spill.x, spill.y, spill.incoming.value] for spill in self.spills],
            "movement_locked": self.movement_locked,
            "no_spill": self.no_spill,
            "difficulty": self.difficulty.value,
            "ticks": self.tick_count,
        }


def _time_seed() -> int:
    return int(time.time() * 1000) & 0xFFFFFFFF


class PipeGame:
    """High level session handling slides, the faucet and flow ticking.

    Ticks are scheduled on :attr:`scheduler`; the owner drives time forward
    with :meth:`advance`.  Resets and level changes cancel pending timers
    before touching any state.
    """

    def __init__(
        self,
        level: Optional[Level] = None,
        *,
        config: Optional[GameConfig] = None,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        self.config = config or GameConfig()
        self.scheduler = scheduler or Scheduler()
        seed = self.config.seed if self.config.seed is not None else _time_seed()
        self.rng = SeededRandom(seed)
        self.difficulty = Difficulty.parse(self.config.difficulty)
        self.no_spill = self.config.no_spill
        self._flow_timer: Optional[TimerHandle] = None
        self._settle_timer: Optional[TimerHandle] = None
        self.history: List[FlowState] = []
        if level is None:
            self.new_board()
        else:
            self._install(level)

    # ------------------------------------------------------------------
    # Level management
    def _install(self, level: Level) -> None:
        self.level = level
        self.board: Board = level.restore()
        self.reset_run()

    def reset_run(self) -> None:
        """Drop every trace of a previous run without touching the board."""

        self._cancel_timers()
        self.flow: Optional[FlowState] = None
        self.history = []
        self.goal_reached = False
        self.lost = False
        self.outcome = FlowOutcome.RUNNING
        self._settling = False
        self._flow_running = False
        self.faucet_status = faucet_status(self.board, self.level.faucet)

    def _cancel_timers(self) -> None:
        for handle in (self._flow_timer, self._settle_timer):
            if handle is not None:
                handle.cancel()
        self._flow_timer = None
        self._settle_timer = None

    def load_level(self, text: str) -> bool:
        """Decode and install ``text``; a malformed string keeps the current level."""

        try:
            level = decode_level(text)
        except LevelFormatError as exc:
            logger.warning("Rejected level string (%s): %s", exc.reason, exc)
            return False
        self._install(level)
        logger.info("Loaded %dx%d level", level.width, level.height)
        return True

    def load_named(self, name: str, loader: Optional[LevelLoader] = None) -> bool:
        loader = loader or LevelLoader(self.config.level_root)
        try:
            level = loader.load(name)
        except FileNotFoundError as exc:
            logger.warning("Level %s not found: %s", name, exc)
            return False
        except LevelFormatError as exc:
            logger.warning("Rejected level file %s (%s): %s", name, exc.reason, exc)
            return False
        self._install(level)
        return True

    def reset_board(self) -> None:
        """Put every piece back where the level started."""

        self.board = self.level.restore()
        self.reset_run()

    def new_board(self) -> None:
        candidate = pick_solvable_level(self.difficulty, self.rng, no_spill=self.no_spill)
        if candidate is not None and self.load_level(candidate):
            return
        logger.info("Falling back to a random %s board", self.difficulty.value)
        self._install(fallback_level(self.difficulty, self.rng))

    def set_difficulty(self, difficulty: "str | Difficulty") -> None:
        self.difficulty = Difficulty.parse(difficulty)
        self.new_board()

    def toggle_no_spill(self) -> bool:
        self.no_spill = not self.no_spill
        self.new_board()
        return self.no_spill

    def level_string(self) -> str:
        return encode_level(self.board, self.level.faucet, self.level.goal)

    # ------------------------------------------------------------------
    # Moves
    @property
    def movement_locked(self) -> bool:
        return self._settling or self._flow_running

    def slide(self, x: int, y: int) -> bool:
        if self.movement_locked:
            logger.debug("Movement locked, ignoring slide at (%d, %d)", x, y)
            return False
        if not self.board.slide(x, y):
            logger.debug("No empty neighbour for (%d, %d)", x, y)
            return False
        if self.flow is not None:
            # Moving a piece invalidates the finished run.
            self.reset_run()
        else:
            self.faucet_status = faucet_status(self.board, self.level.faucet)
        if self.config.slide_settle_ms > 0:
            self._settling = True
            self._settle_timer = self.scheduler.call_later(
                self.config.slide_settle_ms, self._settle_done
            )
        return True

    def _settle_done(self) -> None:
        self._settle_timer = None
        self._settling = False

    # ------------------------------------------------------------------
    # Flow
    def open_faucet(self) -> bool:
        if self.faucet_status is not FaucetStatus.CLOSED:
            return False
        state = start_flow(self.board, self.level.faucet)
        if state is None:
            self.faucet_status = FaucetStatus.BLOCKED
            return False
        self.faucet_status = FaucetStatus.OPEN
        self._flow_running = True
        self.flow = state
        self.history = [state]
        logger.info("Faucet opened at (%d, %d)", self.level.faucet.x, self.level.faucet.y)
        self._flow_timer = self.scheduler.call_later(self.config.tick_ms, self._on_tick)
        return True

    def _on_tick(self) -> None:
        self._flow_timer = None
        if self.flow is None:
            return
        state, advanced = tick(
            self.board, self.flow, self.level.faucet, self.level.goal, no_spill=self.no_spill
        )
        self.flow = state
        self.history.append(state)
        if self.no_spill and state.spilled:
            self.lost = True
        if state.goal_reached and not (self.no_spill and state.spilled):
            self.goal_reached = True
        if advanced:
            self._flow_timer = self.scheduler.call_later(self.config.tick_ms, self._on_tick)
            return
        self._finish(state)

    def _finish(self, state: FlowState) -> None:
        self._flow_running = False
        self.outcome = outcome(self.board, state, self.level.goal, no_spill=self.no_spill)
        if self.outcome is FlowOutcome.WON:
            self.goal_reached = True
            self.lost = False
        else:
            self.goal_reached = False
            self.lost = True
        logger.info("Flow finished after %d ticks: %s", state.tick_count, self.outcome.value)

    def advance(self, elapsed_ms: int) -> int:
        return self.scheduler.advance(elapsed_ms)

    def run_until_settled(self, max_steps: int = 10_000) -> FlowOutcome:
        """Advance time tick by tick until no flow timer remains pending."""

        steps = 0
        while self._flow_timer is not None and steps < max_steps:
            self.advance(self.config.tick_ms)
            steps += 1
        return self.outcome

    # ------------------------------------------------------------------
    # Snapshot
    def snapshot(self) -> GameSnapshot:
        flow = self.flow or FlowState()
        return GameSnapshot(
            width=self.board.width,
            height=self.board.height,
            cells=self.board.arrangement(),
            connections=dict(self.board.connections),
            flowing=flow.flowing,
            incoming=dict(flow.incoming),
            faucet=self.level.faucet,
            goal=self.level.goal,
            faucet_status=self.faucet_status,
            goal_reached=self.goal_reached,
            lost=self.lost,
            outcome=self.outcome,
            spills=flow.spills,
            movement_locked=self.movement_locked,
            no_spill=self.no_spill,
            difficulty=self.difficulty,
            tick_count=flow.tick_count,
        )


__all__ = ["GameSnapshot", "PipeGame"]
