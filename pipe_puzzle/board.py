"""Grid and tile model for the sliding pipe puzzle."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Protocol, Tuple

from .geometry import CARDINALS, Direction

Position = Tuple[int, int]
ConnectionMap = Dict[int, FrozenSet[Direction]]

EMPTY = 0

# Neighbours checked for the empty slot, in order: down, right, up, left.
_SLIDE_SCAN: Tuple[Tuple[int, int], ...] = ((0, 1), (1, 0), (0, -1), (-1, 0))


class RandomSource(Protocol):
    def random(self) -> float:
        ...


def derive_side(x: int, y: int, width: int, height: int) -> Direction:
    """Edge a boundary coordinate sits on; falls back to ``LEFT``."""

    if x == 0:
        return Direction.LEFT
    if x == width - 1:
        return Direction.RIGHT
    if y == 0:
        return Direction.UP
    if y == height - 1:
        return Direction.DOWN
    return Direction.LEFT


@dataclass(frozen=True)
class EdgePoint:
    """Faucet or goal: a boundary cell plus the edge it is attached to."""

    x: int
    y: int
    side: Direction

    @classmethod
    def on_board(cls, x: int, y: int, width: int, height: int) -> "EdgePoint":
        return cls(x, y, derive_side(x, y, width, height))

    @property
    def position(self) -> Position:
        return self.x, self.y

    @property
    def external_point(self) -> Position:
        return self.side.step(self.position)


def default_grid(width: int, height: int) -> List[List[int]]:
    """Solved ordered arrangement: ``row * width + col + 1`` with 0 last."""

    if width <= 0 or height <= 0:
        raise ValueError(f"Grid dimensions must be positive, got {width}x{height}")
    cells = [[row * width + col + 1 for col in range(width)] for row in range(height)]
    cells[height - 1][width - 1] = EMPTY
    return cells


def _pick_direction(rng: RandomSource, exclude: Tuple[Direction, ...] = ()) -> Direction:
    choices = [direction for direction in CARDINALS if direction not in exclude]
    if not choices:
        return Direction.NONE
    return choices[int(rng.random() * len(choices))]


def random_connections(rng: RandomSource) -> FrozenSet[Direction]:
    """Random 2-4 armed piece used to populate a default board."""

    picked = [_pick_direction(rng)]
    picked.append(_pick_direction(rng, tuple(picked)))
    if rng.random() < 0.3:
        picked.append(_pick_direction(rng, tuple(picked)))
        if rng.random() < 0.3:
            picked.append(_pick_direction(rng, tuple(picked)))
    return frozenset(picked)


@dataclass
class Board:
    """Row-major arrangement of tile IDs plus the connection set of each tile.

    ``cells[row][col]`` holds a tile ID, ``0`` marks the single empty slot.
    Connection sets are keyed by tile ID so they travel with a piece when it
    slides.
    """

    width: int
    height: int
    cells: List[List[int]]
    connections: ConnectionMap = field(default_factory=dict)

    def __post_init__(self) -> None:
        if len(self.cells) != self.height or any(len(row) != self.width for row in self.cells):
            raise ValueError(f"Cell rows do not match a {self.width}x{self.height} board")
        empties = sum(row.count(EMPTY) for row in self.cells)
        if empties != 1:
            raise ValueError(f"Board must contain exactly one empty cell, found {empties}")

    @classmethod
    def from_default(
        cls, width: int, height: int, rng: Optional[RandomSource] = None
    ) -> "Board":
        rng = rng or random.Random()
        cells = default_grid(width, height)
        connections: ConnectionMap = {}
        for row in cells:
            for tile in row:
                if tile != EMPTY:
                    connections[tile] = random_connections(rng)
        return cls(width=width, height=height, cells=cells, connections=connections)

    def inside(self, position: Position) -> bool:
        x, y = position
        return 0 <= x < self.width and 0 <= y < self.height

    def tile_at(self, x: int, y: int) -> int:
        if not self.inside((x, y)):
            return EMPTY
        return self.cells[y][x]

    def connections_at(self, x: int, y: int) -> FrozenSet[Direction]:
        tile = self.tile_at(x, y)
        if tile == EMPTY:
            return frozenset()
        return self.connections.get(tile, frozenset())

    def position_of(self, tile: int) -> Optional[Position]:
        for y, row in enumerate(self.cells):
            for x, value in enumerate(row):
                if value == tile:
                    return x, y
        return None

    @property
    def empty_position(self) -> Position:
        position = self.position_of(EMPTY)
        assert position is not None
        return position

    def adjacent_empty(self, x: int, y: int) -> Optional[Position]:
        for dx, dy in _SLIDE_SCAN:
            nx, ny = x + dx, y + dy
            if self.inside((nx, ny)) and self.cells[ny][nx] == EMPTY:
                return nx, ny
        return None

    def slide(self, x: int, y: int) -> bool:
        """Move the tile at ``(x, y)`` into a neighbouring empty slot.

        Requests for cells without an empty neighbour are ignored and return
        ``False``.
        """

        if not self.inside((x, y)) or self.cells[y][x] == EMPTY:
            return False
        target = self.adjacent_empty(x, y)
        if target is None:
            return False
        ex, ey = target
        self.cells[ey][ex], self.cells[y][x] = self.cells[y][x], EMPTY
        return True

    def cell_connections(self) -> Dict[Position, FrozenSet[Direction]]:
        """Connection set per cell for the current arrangement."""

        return {
            (x, y): self.connections_at(x, y)
            for y in range(self.height)
            for x in range(self.width)
        }

    def arrangement(self) -> Tuple[Tuple[int, ...], ...]:
        return tuple(tuple(row) for row in self.cells)


__all__ = [
    "Board",
    "ConnectionMap",
    "EMPTY",
    "EdgePoint",
    "Position",
    "default_grid",
    "derive_side",
    "random_connections",
]
