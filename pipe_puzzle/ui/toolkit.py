"""Minimal pygame based renderer and input adapter for the pipe puzzle.

Rendering is deterministic so it can be exercised in automated tests using the
SDL ``dummy`` video driver.  Everything drawn comes from
:meth:`PipeGame.snapshot`; input is translated into session calls.
"""

from __future__ import annotations

import os
from typing import Iterable, List, Optional, Tuple

from ..board import EdgePoint, Position
from ..flow import FaucetStatus, FlowOutcome
from ..game import GameSnapshot, PipeGame
from ..geometry import DIRECTION_POINTS, Direction, Point, arm_curve
from . import layout

# The import is performed lazily so test environments can select the
# ``dummy`` video driver before pygame initialises.
_PYGAME = None


def ensure_pygame():
    global _PYGAME
    if _PYGAME is None:
        os.environ.setdefault("SDL_AUDIODRIVER", "dummy")
        _PYGAME = __import__("pygame")
        _PYGAME.display.init()
        _PYGAME.font.init()
    return _PYGAME


def status_lines(snapshot: GameSnapshot) -> List[str]:
    """Text shown in the side panel for ``snapshot``."""

    lines = [
        f"Difficulty: {snapshot.difficulty.value}",
        f"No spill: {'on' if snapshot.no_spill else 'off'}",
        f"Faucet: {snapshot.faucet_status.value}",
        f"Ticks: {snapshot.tick_count}",
    ]
    if snapshot.goal_reached:
        lines.append("Goal reached!")
    elif snapshot.lost:
        lines.append("Spilled!" if snapshot.spills and snapshot.no_spill else "Dead end")
    elif snapshot.faucet_status is FaucetStatus.OPEN:
        lines.append("Water flowing...")
    if snapshot.movement_locked:
        lines.append("(locked)")
    return lines


class PipeGameUI:
    """Small pygame driven view over a :class:`PipeGame`."""

    def __init__(
        self,
        game: PipeGame,
        *,
        tile_size: int = 48,
        surface=None,
        use_display: bool = False,
    ) -> None:
        pygame = ensure_pygame()
        self.game = game
        self.tile_size = tile_size
        self.use_display = use_display
        self._fixed_surface = surface is not None
        self.geometry = layout.compute_geometry(game.board.width, game.board.height, tile_size)
        self.surface = surface or pygame.Surface(self.geometry.window)
        self.screen = None
        if use_display:
            self.screen = pygame.display.set_mode(self.geometry.window)
        self.font = pygame.font.Font(pygame.font.get_default_font(), 14)

    def _sync_geometry(self) -> None:
        board = self.game.board
        geometry = layout.compute_geometry(board.width, board.height, self.tile_size)
        if geometry == self.geometry:
            return
        pygame = ensure_pygame()
        self.geometry = geometry
        if not self._fixed_surface:
            self.surface = pygame.Surface(geometry.window)
        if self.screen is not None:
            self.screen = pygame.display.set_mode(geometry.window)

    # ------------------------------------------------------------------
    # Input handling
    def process_events(self, events: Iterable[object]) -> None:
        pygame = ensure_pygame()
        for event in events:
            if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                self.handle_click(event.pos)
            elif event.type == pygame.KEYDOWN:
                self.handle_key(event.key)

    def _grid_from_pixel(self, pos: Tuple[int, int]) -> Optional[Position]:
        """Grid coordinate under ``pos``, including the one-tile margin ring."""

        origin_x, origin_y = self.geometry.origin
        grid_x = (pos[0] - origin_x) // self.tile_size
        grid_y = (pos[1] - origin_y) // self.tile_size
        board = self.game.board
        if not (-1 <= grid_x <= board.width and -1 <= grid_y <= board.height):
            return None
        return grid_x, grid_y

    def handle_click(self, pos: Tuple[int, int]) -> bool:
        grid_pos = self._grid_from_pixel(pos)
        if grid_pos is None:
            return False
        if grid_pos == self.game.level.faucet.external_point:
            return self.game.open_faucet()
        if self.game.board.inside(grid_pos):
            return self.game.slide(*grid_pos)
        return False

    def handle_key(self, key: int) -> None:
        pygame = ensure_pygame()
        if key == pygame.K_SPACE:
            self.game.open_faucet()
        elif key == pygame.K_r:
            self.game.reset_board()
        elif key == pygame.K_n:
            self.game.new_board()
        elif key == pygame.K_s:
            self.game.toggle_no_spill()
        elif key == pygame.K_1:
            self.game.set_difficulty("easy")
        elif key == pygame.K_2:
            self.game.set_difficulty("normal")
        elif key == pygame.K_3:
            self.game.set_difficulty("hard")

    # ------------------------------------------------------------------
    # Rendering helpers
    def render(self):
        pygame = ensure_pygame()
        self._sync_geometry()
        snapshot = self.game.snapshot()
        self.surface.fill(layout.BACKGROUND_COLOR)
        self._draw_board(snapshot)
        self._draw_endpoints(snapshot)
        self._draw_spills(snapshot)
        self._draw_panel(snapshot)
        if self.screen is not None:
            self.screen.blit(self.surface, (0, 0))
            pygame.display.flip()
        return self.surface

    def _cell_rect(self, position: Position):
        pygame = ensure_pygame()
        origin_x, origin_y = self.geometry.origin
        return pygame.Rect(
            origin_x + position[0] * self.tile_size,
            origin_y + position[1] * self.tile_size,
            self.tile_size,
            self.tile_size,
        )

    def _to_pixel(self, position: Position, point: Point) -> Tuple[int, int]:
        rect = self._cell_rect(position)
        px, py = point.scaled(self.tile_size)
        return int(rect.x + px), int(rect.y + py)

    def _draw_board(self, snapshot: GameSnapshot) -> None:
        pygame = ensure_pygame()
        board_rect = pygame.Rect(*self.geometry.board)
        pygame.draw.rect(self.surface, layout.BOARD_BACKGROUND_COLOR, board_rect)
        pipe_width = max(2, int(self.tile_size * layout.PIPE_WIDTH_RATIO))
        for y, row in enumerate(snapshot.cells):
            for x, tile in enumerate(row):
                rect = self._cell_rect((x, y))
                if tile == 0:
                    self.surface.fill(layout.EMPTY_COLOR, rect)
                    continue
                self.surface.fill(layout.TILE_COLOR, rect.inflate(-2, -2))
                arms = snapshot.connections.get(tile, frozenset())
                centre = self._to_pixel((x, y), DIRECTION_POINTS[Direction.NONE])
                for direction in arms:
                    end = self._to_pixel((x, y), DIRECTION_POINTS[direction])
                    pygame.draw.line(self.surface, layout.PIPE_COLOR, centre, end, pipe_width)
                if snapshot.is_flowing(tile):
                    self._draw_water((x, y), snapshot.incoming.get(tile, Direction.NONE), arms, pipe_width)
                pygame.draw.rect(self.surface, layout.GRID_LINE_COLOR, rect, 1)

    def _draw_water(self, position: Position, entry: Direction, arms, pipe_width: int) -> None:
        pygame = ensure_pygame()
        width = max(1, pipe_width // 2)
        for outgoing in arms:
            if outgoing is entry:
                continue
            points = [self._to_pixel(position, point) for point in arm_curve(entry, outgoing, layout.CURVE_SAMPLES)]
            pygame.draw.lines(self.surface, layout.WATER_COLOR, False, points, width)

    def _draw_marker(self, point: EdgePoint, color: Tuple[int, int, int]) -> None:
        pygame = ensure_pygame()
        rect = self._cell_rect(point.external_point)
        inner = rect.inflate(-self.tile_size // 3, -self.tile_size // 3)
        pygame.draw.rect(self.surface, color, inner, border_radius=6)
        start = self._to_pixel(point.external_point, DIRECTION_POINTS[Direction.NONE])
        end = self._to_pixel(point.external_point, DIRECTION_POINTS[point.side.opposite()])
        pygame.draw.line(self.surface, color, start, end, max(2, self.tile_size // 6))

    def _draw_endpoints(self, snapshot: GameSnapshot) -> None:
        faucet_color = layout.FAUCET_COLOR
        if snapshot.faucet_status is FaucetStatus.BLOCKED:
            faucet_color = layout.FAUCET_BLOCKED_COLOR
        elif snapshot.faucet_status is FaucetStatus.OPEN:
            faucet_color = layout.WATER_COLOR
        self._draw_marker(snapshot.faucet, faucet_color)
        self._draw_marker(snapshot.goal, layout.GOAL_COLOR)

    def _draw_spills(self, snapshot: GameSnapshot) -> None:
        pygame = ensure_pygame()
        for spill in snapshot.spills:
            rect = self._cell_rect(spill.position)
            pygame.draw.circle(self.surface, layout.SPILL_COLOR, rect.center, self.tile_size // 5)

    def _draw_panel(self, snapshot: GameSnapshot) -> None:
        pygame = ensure_pygame()
        panel_rect = pygame.Rect(*self.geometry.panel)
        pygame.draw.rect(self.surface, layout.PANEL_BACKGROUND_COLOR, panel_rect)
        y = panel_rect.y + layout.PANEL_PADDING
        for index, line in enumerate(status_lines(snapshot)):
            color = layout.TEXT_COLOR
            if index >= 4 and snapshot.outcome is not FlowOutcome.RUNNING:
                color = layout.ACCENT_COLOR
            label = self.font.render(line, True, color)
            self.surface.blit(label, (panel_rect.x + layout.PANEL_PADDING, y))
            y += label.get_height() + layout.PANEL_SPACING


__all__ = ["PipeGameUI", "ensure_pygame", "status_lines"]
