"""Static reachability check from faucet to goal over pipe connections.

The check ignores the sliding layer entirely: it answers whether the pieces,
in their current cells, already form a connected route.
"""

from __future__ import annotations

from collections import deque
from typing import Deque, Dict, FrozenSet, Iterable, List, Mapping, Optional

from .board import EdgePoint, Position
from .codec import Level, LevelFormatError, decode_level
from .geometry import Direction


def _inside(position: Position, width: int, height: int) -> bool:
    x, y = position
    return 0 <= x < width and 0 <= y < height


def find_route(
    width: int,
    height: int,
    connections: Mapping[Position, Iterable[Direction]],
    faucet: EdgePoint,
    goal: EdgePoint,
) -> Optional[List[Position]]:
    """Breadth-first search for a chain of reciprocal exits.

    Returns the cells from the faucet cell to the goal cell, or ``None`` when
    no such chain exists.
    """

    if not _inside(faucet.position, width, height) or not _inside(goal.position, width, height):
        return None

    def arms(position: Position) -> FrozenSet[Direction]:
        return frozenset(connections.get(position, ()))

    start = faucet.position
    if faucet.side not in arms(start):
        return None

    previous: Dict[Position, Optional[Position]] = {start: None}
    queue: Deque[Position] = deque([start])
    while queue:
        current = queue.popleft()
        if current == goal.position and goal.side in arms(current):
            route = [current]
            while previous[route[-1]] is not None:
                route.append(previous[route[-1]])
            route.reverse()
            return route
        for direction in sorted(arms(current), key=lambda d: d.bit, reverse=True):
            neighbour = direction.step(current)
            if not _inside(neighbour, width, height) or neighbour in previous:
                continue
            if direction.opposite() not in arms(neighbour):
                continue
            previous[neighbour] = current
            queue.append(neighbour)
    return None


def is_topology_solvable(
    width: int,
    height: int,
    connections: Mapping[Position, Iterable[Direction]],
    faucet: EdgePoint,
    goal: EdgePoint,
) -> bool:
    return find_route(width, height, connections, faucet, goal) is not None


def is_level_solvable(level: Level) -> bool:
    board = level.board
    return is_topology_solvable(
        board.width, board.height, board.cell_connections(), level.faucet, level.goal
    )


def is_level_string_solvable(text: str) -> bool:
    try:
        level = decode_level(text)
    except LevelFormatError:
        return False
    return is_level_solvable(level)


__all__ = [
    "find_route",
    "is_level_solvable",
    "is_level_string_solvable",
    "is_topology_solvable",
]
