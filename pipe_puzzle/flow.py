"""Tick driven water propagation over a board.

Every function here is pure: a :class:`FlowState` snapshot goes in, a new
snapshot comes out.  Scheduling ticks against a clock is the session's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Mapping, Optional, Set, Tuple

from .board import EMPTY, Board, EdgePoint, Position
from .geometry import Direction


class FaucetStatus(Enum):
    CLOSED = "closed"
    BLOCKED = "blocked"
    OPEN = "open"


class FlowOutcome(Enum):
    RUNNING = "running"
    WON = "won"
    LOST = "lost"


@dataclass(frozen=True)
class Spill:
    """Water leaving the network at ``(x, y)``, entering from ``incoming``."""

    x: int
    y: int
    incoming: Direction

    @property
    def position(self) -> Position:
        return self.x, self.y


@dataclass(frozen=True)
class FlowState:
    """Immutable snapshot of one simulation run after a given tick."""

    flowing: FrozenSet[int] = frozenset()
    incoming: Mapping[int, Direction] = field(default_factory=dict)
    spills: Tuple[Spill, ...] = ()
    goal_reached: bool = False
    tick_count: int = 0

    @property
    def spilled(self) -> bool:
        return bool(self.spills)

    def is_flowing(self, tile: int) -> bool:
        return tile in self.flowing

    def incoming_for(self, tile: int) -> Direction:
        return self.incoming.get(tile, Direction.NONE)


def faucet_status(board: Board, faucet: EdgePoint) -> FaucetStatus:
    """``CLOSED`` when the faucet cell's piece accepts water, else ``BLOCKED``."""

    if faucet.side in board.connections_at(faucet.x, faucet.y):
        return FaucetStatus.CLOSED
    return FaucetStatus.BLOCKED


def start_flow(board: Board, faucet: EdgePoint) -> Optional[FlowState]:
    if faucet_status(board, faucet) is FaucetStatus.BLOCKED:
        return None
    tile = board.tile_at(faucet.x, faucet.y)
    return FlowState(flowing=frozenset({tile}), incoming={tile: faucet.side})


def _returns_to_faucet(
    direction: Direction, position: Position, faucet: EdgePoint
) -> bool:
    return direction is faucet.side and position == faucet.external_point


def tick(
    board: Board,
    state: FlowState,
    faucet: EdgePoint,
    goal: EdgePoint,
    *,
    no_spill: bool = False,
) -> Tuple[FlowState, bool]:
    """Advance the whole wavefront by one step.

    Returns the new snapshot and whether any piece started flowing.  All
    additions are computed against ``state`` and committed together, so the
    scan order of pieces within a tick does not change the flowing set.
    """

    added: Dict[int, Direction] = {}
    spills: List[Spill] = list(state.spills)
    spilled_at: Set[Position] = {spill.position for spill in spills}
    goal_reached = state.goal_reached

    def record_spill(position: Position, incoming: Direction) -> None:
        if position in spilled_at:
            return
        spilled_at.add(position)
        spills.append(Spill(position[0], position[1], incoming))

    for y in range(board.height):
        for x in range(board.width):
            tile = board.cells[y][x]
            if tile == EMPTY or tile not in state.flowing:
                continue
            for direction in sorted(board.connections.get(tile, ()), key=lambda d: d.bit, reverse=True):
                neighbour_pos = direction.step((x, y))
                entry = direction.opposite()
                if board.inside(neighbour_pos):
                    neighbour = board.tile_at(*neighbour_pos)
                    neighbour_arms = board.connections.get(neighbour, frozenset())
                    if neighbour != EMPTY and entry in neighbour_arms:
                        if neighbour not in state.flowing and neighbour not in added:
                            added[neighbour] = entry
                        continue
                    if no_spill:
                        record_spill(neighbour_pos, entry)
                    continue

                if neighbour_pos == goal.external_point:
                    goal_reached = True
                    continue
                if no_spill and not _returns_to_faucet(direction, neighbour_pos, faucet):
                    record_spill(neighbour_pos, entry)

    incoming = dict(state.incoming)
    incoming.update(added)
    new_state = FlowState(
        flowing=state.flowing | frozenset(added),
        incoming=incoming,
        spills=tuple(spills),
        goal_reached=goal_reached,
        tick_count=state.tick_count + 1,
    )
    return new_state, bool(added)


def is_goal_reached(board: Board, state: FlowState, goal: EdgePoint) -> bool:
    tile = board.tile_at(goal.x, goal.y)
    if tile == EMPTY:
        return False
    return goal.side in board.connections_at(goal.x, goal.y) and tile in state.flowing


def outcome(
    board: Board, state: FlowState, goal: EdgePoint, *, no_spill: bool = False
) -> FlowOutcome:
    """Verdict once ticking has stopped advancing."""

    if no_spill and state.spilled:
        return FlowOutcome.LOST
    if state.goal_reached or is_goal_reached(board, state, goal):
        return FlowOutcome.WON
    return FlowOutcome.LOST


@dataclass
class FlowResult:
    """Full trace of a run from faucet opening to termination."""

    states: List[FlowState] = field(default_factory=list)
    outcome: FlowOutcome = FlowOutcome.LOST
    blocked: bool = False

    @property
    def final(self) -> Optional[FlowState]:
        return self.states[-1] if self.states else None

    @property
    def ticks(self) -> int:
        final = self.final
        return final.tick_count if final else 0


def run_flow(
    board: Board,
    faucet: EdgePoint,
    goal: EdgePoint,
    *,
    no_spill: bool = False,
    max_ticks: Optional[int] = None,
) -> FlowResult:
    """Open the faucet and tick until the wavefront stops advancing."""

    state = start_flow(board, faucet)
    if state is None:
        return FlowResult(blocked=True)
    # Each advancing tick adds at least one piece.
    max_ticks = max_ticks or board.width * board.height + 1
    result = FlowResult(states=[state])
    while state.tick_count < max_ticks:
        state, advanced = tick(board, state, faucet, goal, no_spill=no_spill)
        result.states.append(state)
        if not advanced:
            break
    result.outcome = outcome(board, state, goal, no_spill=no_spill)
    return result


__all__ = [
    "FaucetStatus",
    "FlowOutcome",
    "FlowResult",
    "FlowState",
    "Spill",
    "faucet_status",
    "is_goal_reached",
    "outcome",
    "run_flow",
    "start_flow",
    "tick",
]
