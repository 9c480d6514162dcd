"""Direction and point primitives shared by the board, flow engine and viewer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Tuple


class Direction(Enum):
    """Cardinal directions a pipe arm can point to."""

    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    NONE = "none"

    @property
    def offset(self) -> Tuple[int, int]:
        return _OFFSETS[self]

    @property
    def bit(self) -> int:
        return _BITS[self]

    def opposite(self) -> "Direction":
        mapping = {
            Direction.UP: Direction.DOWN,
            Direction.DOWN: Direction.UP,
            Direction.LEFT: Direction.RIGHT,
            Direction.RIGHT: Direction.LEFT,
            Direction.NONE: Direction.NONE,
        }
        return mapping[self]

    def step(self, position: Tuple[int, int]) -> Tuple[int, int]:
        dx, dy = self.offset
        return position[0] + dx, position[1] + dy


# Order used when decoding nibbles: left, right, up, down.
CARDINALS: Tuple[Direction, ...] = (
    Direction.LEFT,
    Direction.RIGHT,
    Direction.UP,
    Direction.DOWN,
)

_OFFSETS: Dict[Direction, Tuple[int, int]] = {
    Direction.UP: (0, -1),
    Direction.DOWN: (0, 1),
    Direction.LEFT: (-1, 0),
    Direction.RIGHT: (1, 0),
    Direction.NONE: (0, 0),
}

_BITS: Dict[Direction, int] = {
    Direction.LEFT: 8,
    Direction.RIGHT: 4,
    Direction.UP: 2,
    Direction.DOWN: 1,
    Direction.NONE: 0,
}


def directions_to_mask(directions: Iterable[Direction]) -> int:
    mask = 0
    for direction in directions:
        mask |= direction.bit
    return mask


def mask_to_directions(mask: int) -> List[Direction]:
    return [direction for direction in CARDINALS if mask & direction.bit]


def popcount(mask: int) -> int:
    return bin(mask).count("1")


@dataclass(frozen=True)
class Point:
    """Point in unit-cell space (0..1 on both axes inside a cell)."""

    x: float
    y: float

    def scaled(self, size: float) -> Tuple[float, float]:
        return self.x * size, self.y * size


DIRECTION_POINTS: Dict[Direction, Point] = {
    Direction.UP: Point(0.5, 0.0),
    Direction.DOWN: Point(0.5, 1.0),
    Direction.LEFT: Point(0.0, 0.5),
    Direction.RIGHT: Point(1.0, 0.5),
    Direction.NONE: Point(0.5, 0.5),
}


def lerp_point(p0: Point, p1: Point, t: float) -> Point:
    return Point(p0.x + (p1.x - p0.x) * t, p0.y + (p1.y - p0.y) * t)


def bezier_point(t: float, p0: Point, p1: Point, p2: Point) -> Point:
    """Quadratic bezier through ``p0`` and ``p2`` with control point ``p1``."""

    inv = 1.0 - t
    x = inv * inv * p0.x + 2 * inv * t * p1.x + t * t * p2.x
    y = inv * inv * p0.y + 2 * inv * t * p1.y + t * t * p2.y
    return Point(x, y)


def arm_curve(entry: Direction, outgoing: Direction, samples: int = 8) -> List[Point]:
    """Sample the curve water follows from ``entry`` to ``outgoing`` inside a cell."""

    centre = DIRECTION_POINTS[Direction.NONE]
    start = DIRECTION_POINTS[entry]
    end = DIRECTION_POINTS[outgoing]
    samples = max(1, samples)
    if entry.opposite() == outgoing or Direction.NONE in (entry, outgoing):
        return [lerp_point(start, end, i / samples) for i in range(samples + 1)]
    return [bezier_point(i / samples, start, centre, end) for i in range(samples + 1)]


__all__ = [
    "CARDINALS",
    "DIRECTION_POINTS",
    "Direction",
    "Point",
    "arm_curve",
    "bezier_point",
    "directions_to_mask",
    "lerp_point",
    "mask_to_directions",
    "popcount",
]
