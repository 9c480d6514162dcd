from __future__ import annotations

import pytest

from pipe_puzzle.config import GameConfig
from pipe_puzzle.ui.main import build_parser, create_game, main


def test_create_game_from_level_string():
    args = build_parser().parse_args(["--level-string", "2 2 0 0 1 0 C C 0 3", "--no-spill"])
    game = create_game(args, GameConfig(seed=1))

    assert game.no_spill
    assert (game.board.width, game.board.height) == (2, 2)


def test_create_game_from_named_level():
    args = build_parser().parse_args(["--level", "bend", "--difficulty", "easy"])
    game = create_game(args, GameConfig(seed=1))

    assert game.level.name == "bend"
    assert game.difficulty.value == "easy"


def test_create_game_keeps_generated_board_for_bad_string():
    args = build_parser().parse_args(["--level-string", "2 2 0 0 1 0 C 8 0 3", "--seed", "9"])
    game = create_game(args, GameConfig())

    assert game.board.width == 4


def test_create_game_keeps_generated_board_for_missing_level():
    args = build_parser().parse_args(["--level", "nosuch", "--seed", "9"])
    game = create_game(args, GameConfig())

    assert game.level.name != "nosuch"
    assert game.board.width == 4


def test_level_and_level_string_are_exclusive(capsys: pytest.CaptureFixture[str]):
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--level", "bend", "--level-string", "x"])


def test_info_prints_level_directory(capsys: pytest.CaptureFixture[str]):
    assert main(["--info"]) == 0
    output = capsys.readouterr().out

    assert "Pipe Puzzle levels:" in output
    assert "levels" in output
