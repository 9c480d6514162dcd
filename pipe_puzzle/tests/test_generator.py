import pytest

from pipe_puzzle.board import EMPTY
from pipe_puzzle.codec import decode_level, encode
from pipe_puzzle.flow import FlowOutcome, run_flow
from pipe_puzzle.generator import (
    BUILTIN_SEEDS,
    Difficulty,
    SeededRandom,
    build_path,
    builtin_levels,
    fallback_level,
    generate_batch,
    pick_endpoints,
    pick_solvable_level,
    shortest_path,
)
from pipe_puzzle.geometry import popcount
from pipe_puzzle.solver import is_level_string_solvable


def test_xorshift_sequence_is_reproducible():
    assert SeededRandom(1).random() == 270369 / 0x100000000

    first = SeededRandom(99)
    second = SeededRandom(99)
    values = [first.random() for _ in range(50)]
    assert values == [second.random() for _ in range(50)]
    assert all(0.0 <= value < 1.0 for value in values)


def test_zero_seed_does_not_get_stuck():
    rng = SeededRandom(0)
    values = {rng.random() for _ in range(10)}
    assert len(values) == 10


def test_shuffle_and_choice_are_deterministic():
    items = list(range(10))
    SeededRandom(5).shuffle(items)
    again = list(range(10))
    SeededRandom(5).shuffle(again)
    assert items == again
    assert sorted(items) == list(range(10))
    assert SeededRandom(5).choice("abc") in "abc"
    with pytest.raises(IndexError):
        SeededRandom(5).choice([])


def test_difficulty_parse():
    assert Difficulty.parse("HARD") is Difficulty.HARD
    assert Difficulty.parse(Difficulty.EASY) is Difficulty.EASY
    with pytest.raises(ValueError):
        Difficulty.parse("impossible")


def test_generate_batch_is_deterministic():
    assert generate_batch(1, "easy", 42) == generate_batch(1, "easy", 42)
    assert generate_batch(3, "normal", 7) == generate_batch(3, "normal", 7)
    assert generate_batch(3, "normal", 7) != generate_batch(3, "normal", 8)


def test_no_spill_flag_does_not_change_the_batch():
    assert generate_batch(4, "hard", 11, no_spill=True) == generate_batch(4, "hard", 11)


@pytest.mark.parametrize(
    "difficulty, sizes",
    [
        ("easy", {(3, 3)}),
        ("normal", {(4, 3), (4, 4)}),
        ("hard", {(5, 5)}),
    ],
)
def test_generated_sizes(difficulty: str, sizes):
    for text in generate_batch(8, difficulty, 2024):
        level = decode_level(text)
        assert (level.width, level.height) in sizes


@pytest.mark.parametrize("difficulty", list(Difficulty))
def test_builtin_levels_are_valid_and_solvable(difficulty: Difficulty):
    levels = builtin_levels(difficulty)

    assert len(levels) == 16
    assert levels == generate_batch(16, difficulty, BUILTIN_SEEDS[difficulty])
    for text in levels:
        level = decode_level(text)
        assert encode(level) == text
        flat = [tile for row in level.board.cells for tile in row]
        assert flat.count(EMPTY) == 1
        for arms in level.board.connections.values():
            assert len(arms) >= 2
        assert level.faucet.position != level.goal.position
        assert is_level_string_solvable(text)
        result = run_flow(level.board, level.faucet, level.goal)
        assert result.outcome is FlowOutcome.WON


def test_pick_endpoints_never_share_a_cell():
    rng = SeededRandom(3)
    for _ in range(200):
        start, end = pick_endpoints(3, 3, rng)
        assert start != end


def test_build_path_is_contiguous_and_within_bounds():
    rng = SeededRandom(17)
    for _ in range(50):
        start, end = pick_endpoints(5, 5, rng)
        path = build_path(start, end, 5, 5, 8, 14, rng)
        assert path[0] == start and path[-1] == end
        assert len(path) <= 14
        assert len(set(path)) == len(path)
        for (ax, ay), (bx, by) in zip(path, path[1:]):
            assert abs(ax - bx) + abs(ay - by) == 1
            assert 0 <= bx < 5 and 0 <= by < 5


def test_shortest_path_length_is_manhattan_distance():
    path = shortest_path((0, 0), (3, 2), 4, 3)
    assert len(path) == 6


def test_pick_solvable_level_uses_verified_candidates():
    picked = pick_solvable_level("normal", SeededRandom(8))
    assert picked in builtin_levels("normal")

    strict = pick_solvable_level("easy", SeededRandom(8), no_spill=True)
    assert strict is not None
    assert is_level_string_solvable(strict)


def test_pick_solvable_level_returns_none_without_solvable_candidates(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr("pipe_puzzle.generator.is_level_string_solvable", lambda text: False)
    assert pick_solvable_level("easy", SeededRandom(1)) is None


@pytest.mark.parametrize("difficulty, size", [("easy", 3), ("normal", 4), ("hard", 5)])
def test_fallback_level(difficulty: str, size: int):
    level = fallback_level(difficulty, SeededRandom(21))

    assert (level.width, level.height) == (size, size)
    flat = sorted(tile for row in level.board.cells for tile in row)
    assert flat == list(range(size * size))
    assert level.faucet.position != level.goal.position
    assert level.name == "fallback"
    assert all(popcount(sum(d.bit for d in arms)) >= 2 for arms in level.board.connections.values())
