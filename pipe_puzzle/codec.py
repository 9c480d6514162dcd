"""Text level format: parsing, serialisation and on-disk level packs.

A level string is a run of whitespace/comma separated tokens::

    gx gy faucetX faucetY [goalX goalY] cell_1 .. cell_{gx*gy}

Cells are hex nibbles with bits ``left=8, right=4, up=2, down=1`` and ``0``
marks the single empty slot.  A legacy variant only carries ``faucetY`` (the
faucet then sits on the left edge) and the goal defaults to the top row of the
right edge.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .board import EMPTY, Board, ConnectionMap, EdgePoint
from .geometry import directions_to_mask, mask_to_directions, popcount

logger = logging.getLogger(__name__)

LEVEL_SUFFIX = ".level"

_TOKEN_SPLIT = re.compile(r"[\s,]+")


class LevelFormatError(ValueError):
    """Raised when a level string is structurally invalid."""

    def __init__(self, reason: str, message: str):
        super().__init__(message)
        self.reason = reason


@dataclass
class Level:
    """A decoded puzzle: board, faucet, goal and the arrangement to reset to."""

    board: Board
    faucet: EdgePoint
    goal: EdgePoint
    initial_cells: List[List[int]] = field(default_factory=list)
    name: str = ""

    def __post_init__(self) -> None:
        if not self.initial_cells:
            self.initial_cells = [row[:] for row in self.board.cells]

    @property
    def width(self) -> int:
        return self.board.width

    @property
    def height(self) -> int:
        return self.board.height

    def restore(self) -> Board:
        """Board in the arrangement the level was loaded with."""

        return Board(
            width=self.board.width,
            height=self.board.height,
            cells=[row[:] for row in self.initial_cells],
            connections=dict(self.board.connections),
        )


def tokenize(text: str) -> List[str]:
    return [token for token in _TOKEN_SPLIT.split(text.strip()) if token]


def _is_number(token: str) -> bool:
    try:
        float(token)
    except ValueError:
        return False
    return True


def _as_int(token: str, reason: str, what: str) -> int:
    try:
        return int(token)
    except ValueError:
        raise LevelFormatError(reason, f"{what} must be an integer, got {token!r}") from None


def _parse_nibble(token: str, index: int) -> int:
    try:
        value = int(token, 16)
    except ValueError:
        raise LevelFormatError("bad_token", f"Cell {index}: {token!r} is not a hex nibble") from None
    if not 0 <= value <= 0xF:
        raise LevelFormatError("bad_token", f"Cell {index}: {token!r} is outside 0..F")
    return value


def _split_header(
    tokens: Sequence[str], expected: int
) -> Tuple[int, int, Optional[Tuple[int, int]], int]:
    """Return ``faucetX, faucetY, goal or None, data start index``."""

    remaining = len(tokens) - 2
    if (
        remaining >= 2 + expected
        and _is_number(tokens[2])
        and _is_number(tokens[3])
    ):
        faucet_x = _as_int(tokens[2], "bad_coordinate", "faucetX")
        faucet_y = _as_int(tokens[3], "bad_coordinate", "faucetY")
        if remaining >= 4 + expected and _is_number(tokens[4]) and _is_number(tokens[5]):
            goal = (
                _as_int(tokens[4], "bad_coordinate", "goalX"),
                _as_int(tokens[5], "bad_coordinate", "goalY"),
            )
            return faucet_x, faucet_y, goal, 6
        return faucet_x, faucet_y, None, 4

    faucet_y = _as_int(tokens[2], "bad_coordinate", "faucetY")
    return 0, faucet_y, None, 3


def decode_level(text: str) -> Level:
    """Parse a level string into a :class:`Level`.

    Raises :class:`LevelFormatError` for any structural violation; nothing is
    returned or mutated in that case.
    """

    tokens = tokenize(text)
    if len(tokens) < 3:
        raise LevelFormatError("too_short", f"Level string has {len(tokens)} tokens, need at least 3")

    width = _as_int(tokens[0], "bad_dimensions", "Grid width")
    height = _as_int(tokens[1], "bad_dimensions", "Grid height")
    if width <= 0 or height <= 0:
        raise LevelFormatError("bad_dimensions", f"Grid must be at least 1x1, got {width}x{height}")

    expected = width * height
    faucet_x, faucet_y, goal_xy, data_start = _split_header(tokens, expected)

    data = tokens[data_start:data_start + expected]
    if len(data) < expected:
        raise LevelFormatError(
            "missing_cells", f"Level string has {len(data)} cells, expected {expected}"
        )

    values = [_parse_nibble(token, index) for index, token in enumerate(data)]
    zero_count = values.count(0)
    if zero_count != 1:
        raise LevelFormatError(
            "empty_count", f"Level string must contain exactly one empty cell, found {zero_count}"
        )

    cells: List[List[int]] = []
    connections: ConnectionMap = {}
    for row in range(height):
        cells.append([])
        for col in range(width):
            value = values[row * width + col]
            if value == 0:
                cells[row].append(EMPTY)
                continue
            if popcount(value) == 1:
                raise LevelFormatError(
                    "single_arm",
                    f"Cell ({col}, {row}): single-arm pipe {data[row * width + col]!r} is not allowed",
                )
            tile = row * width + col + 1
            cells[row].append(tile)
            connections[tile] = frozenset(mask_to_directions(value))

    board = Board(width=width, height=height, cells=cells, connections=connections)
    if goal_xy is None:
        goal_xy = (width - 1, 0)
    faucet = EdgePoint.on_board(faucet_x, faucet_y, width, height)
    goal = EdgePoint.on_board(goal_xy[0], goal_xy[1], width, height)
    return Level(board=board, faucet=faucet, goal=goal)


def encode_level(board: Board, faucet: EdgePoint, goal: EdgePoint) -> str:
    """Serialise the current arrangement in the six-number header form."""

    parts = [
        str(board.width),
        str(board.height),
        str(faucet.x),
        str(faucet.y),
        str(goal.x),
        str(goal.y),
    ]
    for y in range(board.height):
        for x in range(board.width):
            tile = board.tile_at(x, y)
            if tile == EMPTY:
                parts.append("0")
                continue
            mask = directions_to_mask(board.connections.get(tile, ()))
            if mask == 0:
                raise ValueError(f"Tile {tile} at ({x}, {y}) has no connections and cannot be encoded")
            parts.append(f"{mask:X}")
    return " ".join(parts)


def encode(level: Level) -> str:
    return encode_level(level.board, level.faucet, level.goal)


class LevelLoader:
    """Load named level strings stored as ``<name>.level`` files."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def available(self) -> List[str]:
        if not self.root.is_dir():
            return []
        return sorted(path.stem for path in self.root.glob(f"*{LEVEL_SUFFIX}"))

    def read(self, name: str) -> str:
        path = self.root / f"{name}{LEVEL_SUFFIX}"
        if not path.exists():
            raise FileNotFoundError(path)
        lines = []
        for line in path.read_text().splitlines():
            line = line.split("#", 1)[0].strip()
            if line:
                lines.append(line)
        return " ".join(lines)

    def load(self, name: str) -> Level:
        level = decode_level(self.read(name))
        level.name = name
        logger.debug("Loaded level %s from %s", name, self.root)
        return level


__all__ = [
    "LEVEL_SUFFIX",
    "Level",
    "LevelFormatError",
    "LevelLoader",
    "decode_level",
    "encode",
    "encode_level",
    "tokenize",
]
