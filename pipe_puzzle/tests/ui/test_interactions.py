"""Headless interaction tests for the pygame based UI wrapper.

The fixtures in ``conftest.py`` force the SDL dummy drivers.  A fixed
``tile_size`` of 32 puts the board origin at (32, 32) because of the one-tile
margin reserved for the faucet and goal.
"""

from __future__ import annotations

from pipe_puzzle.codec import decode_level
from pipe_puzzle.config import GameConfig
from pipe_puzzle.flow import FaucetStatus
from pipe_puzzle.game import PipeGame
from pipe_puzzle.ui import PipeGameUI, status_lines
from pipe_puzzle.ui import layout

TILE = 32


def make_game(text: str = "2 2 0 0 1 0 C 0 3 C") -> PipeGame:
    config = GameConfig(tick_ms=100, slide_settle_ms=0, seed=5)
    return PipeGame(decode_level(text), config=config)


def cell_pixel(x: int, y: int) -> tuple:
    return (TILE + x * TILE + TILE // 2, TILE + y * TILE + TILE // 2)


def click(pygame, pos):
    return pygame.event.Event(pygame.MOUSEBUTTONDOWN, button=1, pos=pos)


def key(pygame, code):
    return pygame.event.Event(pygame.KEYDOWN, key=code)


def test_click_slides_tile_into_gap(pygame_module):
    pygame = pygame_module
    game = make_game()
    ui = PipeGameUI(game, tile_size=TILE)

    ui.process_events([click(pygame, cell_pixel(1, 1))])

    assert game.board.cells == [[1, 4], [3, 0]]


def test_clicks_outside_the_board_are_ignored(pygame_module):
    game = make_game()
    ui = PipeGameUI(game, tile_size=TILE)

    assert ui._grid_from_pixel((TILE * 10, TILE * 10)) is None
    assert not ui.handle_click(cell_pixel(2, 1))
    assert game.board.cells == [[1, 0], [3, 4]]


def test_faucet_click_opens_the_faucet(pygame_module):
    pygame = pygame_module
    game = make_game("2 2 0 0 1 0 C C 0 3")
    ui = PipeGameUI(game, tile_size=TILE)

    # The faucet sits one tile left of the board at (-1, 0).
    ui.process_events([click(pygame, cell_pixel(-1, 0))])

    assert game.faucet_status is FaucetStatus.OPEN


def test_keyboard_shortcuts(pygame_module):
    pygame = pygame_module
    game = make_game("2 2 0 0 1 0 C C 0 3")
    ui = PipeGameUI(game, tile_size=TILE)

    ui.process_events([key(pygame, pygame.K_SPACE)])
    assert game.faucet_status is FaucetStatus.OPEN

    ui.process_events([key(pygame, pygame.K_r)])
    assert game.faucet_status is FaucetStatus.CLOSED
    assert game.flow is None

    ui.process_events([key(pygame, pygame.K_1)])
    assert (game.board.width, game.board.height) == (3, 3)

    ui.process_events([key(pygame, pygame.K_s)])
    assert game.no_spill


def test_render_draws_empty_cell_and_water(pygame_module):
    game = make_game("2 2 0 0 1 0 C C 0 3")
    ui = PipeGameUI(game, tile_size=TILE)

    surface = ui.render()
    assert surface.get_size() == layout.compute_geometry(2, 2, TILE).window
    assert tuple(surface.get_at(cell_pixel(0, 1)))[:3] == layout.EMPTY_COLOR

    game.open_faucet()
    surface = ui.render()
    assert tuple(surface.get_at(cell_pixel(0, 0)))[:3] == layout.WATER_COLOR
    assert tuple(surface.get_at(cell_pixel(1, 0)))[:3] == layout.PIPE_COLOR


def test_render_follows_board_size_changes(pygame_module):
    game = make_game("2 2 0 0 1 0 C C 0 3")
    ui = PipeGameUI(game, tile_size=TILE)

    game.set_difficulty("hard")
    surface = ui.render()

    assert surface.get_size() == layout.compute_geometry(5, 5, TILE).window


def test_status_lines_describe_the_run():
    game = make_game("2 2 0 0 1 0 C C 0 3")
    lines = status_lines(game.snapshot())
    assert "Faucet: closed" in lines
    assert "No spill: off" in lines

    game.open_faucet()
    game.run_until_settled()
    assert "Goal reached!" in status_lines(game.snapshot())
