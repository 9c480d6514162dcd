"""Procedural, deterministic level generator.

Levels are built from a seed: a faucet and a goal are placed on two different
edges, a route between them is carved with a breadth-first search and then
lengthened with sideways detours, and every other cell is filled with random
multi-arm pieces.  The output is a level string; callers are expected to run
:func:`pipe_puzzle.solver.is_level_string_solvable` on it before handing it to
a player.
"""

from __future__ import annotations

import logging
from collections import deque
from enum import Enum
from functools import lru_cache
from typing import Callable, Deque, Dict, List, Optional, Sequence, Set, Tuple, TypeVar

from .board import Board, EdgePoint, Position, default_grid, derive_side
from .codec import Level, encode_level
from .geometry import CARDINALS, Direction, mask_to_directions, popcount
from .solver import is_level_string_solvable

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_DETOUR_ATTEMPTS = 200
PICK_ATTEMPTS = 10
NO_SPILL_BATCH_SIZE = 12
BUILTIN_BATCH_SIZE = 16

_MASK32 = 0xFFFFFFFF
_ZERO_SEED_REPLACEMENT = 0x9E3779B9


class SeededRandom:
    """xorshift32 generator; the same seed always yields the same sequence."""

    def __init__(self, seed: int):
        self.seed = seed
        state = seed & _MASK32
        self._state = state or _ZERO_SEED_REPLACEMENT

    def random(self) -> float:
        """Next value in ``[0, 1)``."""
        s = self._state
        s ^= (s << 13) & _MASK32
        s ^= s >> 17
        s ^= (s << 5) & _MASK32
        self._state = s
        return s / 0x100000000

    def randint_below(self, n: int) -> int:
        return int(self.random() * n)

    def next_seed(self) -> int:
        return int(self.random() * 0x100000000)

    def shuffle(self, items: List[T]) -> None:
        """Fisher-Yates shuffle in place."""
        for i in range(len(items) - 1, 0, -1):
            j = self.randint_below(i + 1)
            items[i], items[j] = items[j], items[i]

    def choice(self, items: Sequence[T]) -> T:
        if not items:
            raise IndexError("Cannot choose from an empty sequence")
        return items[self.randint_below(len(items))]


class Difficulty(Enum):
    EASY = "easy"
    NORMAL = "normal"
    HARD = "hard"

    @staticmethod
    def parse(value: "str | Difficulty") -> "Difficulty":
        if isinstance(value, Difficulty):
            return value
        try:
            return Difficulty(str(value).lower())
        except ValueError as exc:
            raise ValueError(f"Unknown difficulty: {value}") from exc

    @property
    def fallback_size(self) -> int:
        return {Difficulty.EASY: 3, Difficulty.NORMAL: 4, Difficulty.HARD: 5}[self]


BUILTIN_SEEDS: Dict[Difficulty, int] = {
    Difficulty.EASY: 12345,
    Difficulty.NORMAL: 23456,
    Difficulty.HARD: 34567,
}


def _neighbours(x: int, y: int, width: int, height: int) -> List[Tuple[int, int, Direction]]:
    out: List[Tuple[int, int, Direction]] = []
    if x > 0:
        out.append((x - 1, y, Direction.LEFT))
    if x < width - 1:
        out.append((x + 1, y, Direction.RIGHT))
    if y > 0:
        out.append((x, y - 1, Direction.UP))
    if y < height - 1:
        out.append((x, y + 1, Direction.DOWN))
    return out


def _direction_between(a: Position, b: Position) -> Optional[Direction]:
    for direction in CARDINALS:
        if direction.step(a) == b:
            return direction
    return None


def grid_size(difficulty: Difficulty, rng: SeededRandom) -> Tuple[int, int]:
    if difficulty is Difficulty.EASY:
        return 3, 3
    if difficulty is Difficulty.NORMAL:
        rng.random()  # width draw, kept so seeds reproduce the same sequence
        height = 4 if rng.random() < 0.5 else 3
        return 4, height
    return 5, 5


def path_length_range(difficulty: Difficulty, width: int, height: int) -> Tuple[int, int]:
    total = width * height
    if difficulty is Difficulty.EASY:
        min_len, max_len = 3, min(total - 2, 5)
    elif difficulty is Difficulty.NORMAL:
        min_len, max_len = 5, min(total - 2, 10)
    else:
        min_len, max_len = 8, min(total - 2, 14)
    if min_len > max_len:
        min_len = max(2, max_len - 1)
    return min_len, max_len


def pick_endpoints(
    width: int, height: int, rng: SeededRandom
) -> Tuple[Position, Position]:
    """Faucet and goal cells on two different edges, never the same cell."""

    edges: List[Callable[[], Position]] = [
        lambda: (0, rng.randint_below(height)),
        lambda: (width - 1, rng.randint_below(height)),
        lambda: (rng.randint_below(width), 0),
        lambda: (rng.randint_below(width), height - 1),
    ]
    faucet_edge = rng.randint_below(len(edges))
    goal_edge = (faucet_edge + 1 + rng.randint_below(len(edges) - 1)) % len(edges)
    start = edges[faucet_edge]()
    end_x, end_y = edges[goal_edge]()
    if (end_x, end_y) == start:
        if end_x < width - 1:
            end_x += 1
        else:
            end_x = max(0, end_x - 1)
    return start, (end_x, end_y)


def shortest_path(
    start: Position, end: Position, width: int, height: int
) -> Optional[List[Position]]:
    previous: Dict[Position, Optional[Position]] = {start: None}
    queue: Deque[Position] = deque([start])
    while queue:
        current = queue.popleft()
        if current == end:
            break
        for nx, ny, _ in _neighbours(current[0], current[1], width, height):
            if (nx, ny) in previous:
                continue
            previous[(nx, ny)] = current
            queue.append((nx, ny))
    if end not in previous:
        return None
    path = [end]
    while previous[path[-1]] is not None:
        path.append(previous[path[-1]])
    path.reverse()
    return path


def _try_detour(
    path: List[Position], index: int, width: int, height: int, rng: SeededRandom
) -> bool:
    """Replace the step ``path[index] -> path[index + 1]`` with a sideways bump."""

    a, b = path[index], path[index + 1]
    forward = _direction_between(a, b)
    if forward is None:
        return False
    if forward in (Direction.LEFT, Direction.RIGHT):
        sideways = [Direction.UP, Direction.DOWN]
    else:
        sideways = [Direction.LEFT, Direction.RIGHT]
    rng.shuffle(sideways)
    used: Set[Position] = set(path)
    for side in sideways:
        first, second = side.step(a), side.step(b)
        if first in used or second in used:
            continue
        if not all(0 <= x < width and 0 <= y < height for x, y in (first, second)):
            continue
        path[index + 1:index + 1] = [first, second]
        return True
    return False


def build_path(
    start: Position,
    end: Position,
    width: int,
    height: int,
    min_len: int,
    max_len: int,
    rng: SeededRandom,
) -> Optional[List[Position]]:
    """Shortest route from ``start`` to ``end`` lengthened towards ``min_len``.

    Detours are two-cell bumps so the route stays contiguous; one is only
    spliced in while the route stays within ``max_len``.
    """

    path = shortest_path(start, end, width, height)
    if path is None:
        return None
    attempts = 0
    while len(path) < min_len and attempts < MAX_DETOUR_ATTEMPTS:
        attempts += 1
        if len(path) < 2 or len(path) + 2 > max_len:
            break
        index = rng.randint_below(len(path) - 1)
        _try_detour(path, index, width, height, rng)
    if len(path) > max_len:
        del path[max_len:]
    return path


def build_level_string(
    width: int,
    height: int,
    start: Position,
    end: Position,
    path: Sequence[Position],
    rng: SeededRandom,
) -> str:
    tokens = [[0] * width for _ in range(height)]
    on_path = set(path)

    def set_bits(position: Position, bits: int) -> None:
        tokens[position[1]][position[0]] |= bits

    for previous, current in zip(path, path[1:]):
        direction = _direction_between(previous, current)
        if direction is None:
            continue
        set_bits(previous, direction.bit)
        set_bits(current, direction.opposite().bit)
    if path:
        set_bits(path[0], derive_side(start[0], start[1], width, height).bit)
        if path[-1] == end:
            set_bits(end, derive_side(end[0], end[1], width, height).bit)

    for y in range(height):
        for x in range(width):
            if (x, y) in on_path:
                continue
            choices = [direction for _, _, direction in _neighbours(x, y, width, height)]
            rng.shuffle(choices)
            take = min(len(choices), max(2, 2 + rng.randint_below(2)))
            mask = 0
            for direction in choices[:take]:
                mask |= direction.bit
            tokens[y][x] = mask

    for index, (x, y) in enumerate(path):
        if tokens[y][x]:
            continue
        mask = 0
        for other in (index - 1, index + 1):
            if 0 <= other < len(path):
                direction = _direction_between((x, y), path[other])
                if direction is not None:
                    mask |= direction.bit
        if mask == 0:
            neighbours = _neighbours(x, y, width, height)
            if neighbours:
                mask = neighbours[0][2].bit
        tokens[y][x] = mask

    free_cells = [(x, y) for y in range(height) for x in range(width) if (x, y) not in on_path]
    if free_cells:
        empty_x, empty_y = rng.choice(free_cells)
        tokens[empty_y][empty_x] = 0
    elif len(path) > 2:
        empty_x, empty_y = path[-2]
        tokens[empty_y][empty_x] = 0
    else:
        empty_x, empty_y = width - 1, height - 1
        tokens[empty_y][empty_x] = 0

    for y in range(height):
        for x in range(width):
            value = tokens[y][x]
            if value == 0 or popcount(value) != 1:
                continue
            for nx, ny, direction in _neighbours(x, y, width, height):
                if tokens[ny][nx] == 0 or value & direction.bit:
                    continue
                tokens[y][x] |= direction.bit
                tokens[ny][nx] |= direction.opposite().bit
                break
            else:
                # Corner piece next to the empty slot: point the extra arm off the board.
                spare = next(d for d in CARDINALS if not value & d.bit)
                tokens[y][x] |= spare.bit

    cells: List[List[int]] = []
    connections = {}
    for y in range(height):
        cells.append([])
        for x in range(width):
            value = tokens[y][x]
            tile = 0 if value == 0 else y * width + x + 1
            cells[y].append(tile)
            if tile:
                connections[tile] = frozenset(mask_to_directions(value))
    board = Board(width=width, height=height, cells=cells, connections=connections)
    return encode_level(
        board,
        EdgePoint.on_board(start[0], start[1], width, height),
        EdgePoint.on_board(end[0], end[1], width, height),
    )


def generate_level(difficulty: Difficulty, rng: SeededRandom) -> str:
    width, height = grid_size(difficulty, rng)
    start, end = pick_endpoints(width, height, rng)
    min_len, max_len = path_length_range(difficulty, width, height)
    path = build_path(start, end, width, height, min_len, max_len, rng) or [start, end]
    return build_level_string(width, height, start, end, path, rng)


def generate_batch(
    count: int,
    difficulty: "str | Difficulty",
    seed: int,
    no_spill: bool = False,
) -> List[str]:
    """Generate ``count`` level strings; identical arguments give identical output.

    ``no_spill`` does not change the levels produced; it is accepted so batch
    requests from either rule set share one signature.
    """

    difficulty = Difficulty.parse(difficulty)
    rng = SeededRandom(seed)
    levels = [generate_level(difficulty, rng) for _ in range(count)]
    logger.debug(
        "Generated %d %s levels from seed %d (no_spill=%s)",
        len(levels),
        difficulty.value,
        seed,
        no_spill,
    )
    return levels


@lru_cache(maxsize=None)
def _builtin(difficulty: Difficulty) -> Tuple[str, ...]:
    return tuple(generate_batch(BUILTIN_BATCH_SIZE, difficulty, BUILTIN_SEEDS[difficulty]))


def builtin_levels(difficulty: "str | Difficulty") -> List[str]:
    return list(_builtin(Difficulty.parse(difficulty)))


def pick_solvable_level(
    difficulty: "str | Difficulty",
    rng: SeededRandom,
    *,
    no_spill: bool = False,
) -> Optional[str]:
    """Choose a verified candidate, or ``None`` if every candidate fails."""

    difficulty = Difficulty.parse(difficulty)
    if no_spill:
        candidates = generate_batch(NO_SPILL_BATCH_SIZE, difficulty, rng.next_seed(), no_spill=True)
    else:
        candidates = builtin_levels(difficulty)
    if not candidates:
        return None
    for _ in range(min(len(candidates), PICK_ATTEMPTS)):
        candidate = rng.choice(candidates)
        if is_level_string_solvable(candidate):
            return candidate
    for candidate in candidates:
        if is_level_string_solvable(candidate):
            return candidate
    logger.warning("No solvable %s level among %d candidates", difficulty.value, len(candidates))
    return None


def fallback_level(difficulty: "str | Difficulty", rng: SeededRandom) -> Level:
    """Trivial board used when no generated candidate is solvable.

    Pieces get random arms, the arrangement is shuffled and faucet and goal
    sit on random edges.
    """

    size = Difficulty.parse(difficulty).fallback_size
    board = Board.from_default(size, size, rng)
    values = [tile for row in default_grid(size, size) for tile in row]
    rng.shuffle(values)
    board.cells = [values[row * size:(row + 1) * size] for row in range(size)]

    def pick_edge() -> EdgePoint:
        side = rng.choice([Direction.LEFT, Direction.RIGHT, Direction.UP, Direction.DOWN])
        free = rng.randint_below(size)
        x, y = {
            Direction.LEFT: (0, free),
            Direction.RIGHT: (size - 1, free),
            Direction.UP: (free, 0),
            Direction.DOWN: (free, size - 1),
        }[side]
        return EdgePoint(x, y, side)

    faucet = pick_edge()
    goal = pick_edge()
    attempts = 0
    while goal.position == faucet.position and attempts < 8:
        goal = pick_edge()
        attempts += 1
    return Level(board=board, faucet=faucet, goal=goal, name="fallback")


__all__ = [
    "BUILTIN_SEEDS",
    "Difficulty",
    "SeededRandom",
    "build_level_string",
    "build_path",
    "builtin_levels",
    "fallback_level",
    "generate_batch",
    "generate_level",
    "pick_endpoints",
    "pick_solvable_level",
    "shortest_path",
]
