"""Layout constants for the pipe puzzle viewer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

# Tile metrics
TILE_SIZE: int = 72
# One tile of margin around the board leaves room for the faucet and goal.
BOARD_MARGIN_TILES: int = 1
PIPE_WIDTH_RATIO: float = 0.22
CURVE_SAMPLES: int = 8

# Status panel metrics
PANEL_WIDTH: int = 260
PANEL_PADDING: int = 18
PANEL_SPACING: int = 10

# Colors expressed as RGB tuples
BACKGROUND_COLOR: Tuple[int, int, int] = (12, 14, 26)
BOARD_BACKGROUND_COLOR: Tuple[int, int, int] = (20, 24, 44)
PANEL_BACKGROUND_COLOR: Tuple[int, int, int] = (32, 36, 60)
GRID_LINE_COLOR: Tuple[int, int, int] = (58, 64, 96)
TILE_COLOR: Tuple[int, int, int] = (44, 50, 82)
EMPTY_COLOR: Tuple[int, int, int] = (16, 18, 32)
PIPE_COLOR: Tuple[int, int, int] = (150, 158, 184)
WATER_COLOR: Tuple[int, int, int] = (70, 160, 255)
SPILL_COLOR: Tuple[int, int, int] = (255, 94, 70)
FAUCET_COLOR: Tuple[int, int, int] = (130, 210, 255)
FAUCET_BLOCKED_COLOR: Tuple[int, int, int] = (120, 90, 100)
GOAL_COLOR: Tuple[int, int, int] = (140, 255, 180)
TEXT_COLOR: Tuple[int, int, int] = (232, 236, 244)
ACCENT_COLOR: Tuple[int, int, int] = (255, 200, 80)


@dataclass(frozen=True)
class BoardGeometry:
    """Pixel rectangles for the major viewer regions."""

    board: Tuple[int, int, int, int]
    panel: Tuple[int, int, int, int]
    window: Tuple[int, int]
    tile_size: int

    @property
    def origin(self) -> Tuple[int, int]:
        return self.board[0], self.board[1]


def compute_geometry(level_width: int, level_height: int, tile_size: int = TILE_SIZE) -> BoardGeometry:
    """Board rectangle inset by the margin, with the status panel to its right."""

    margin = BOARD_MARGIN_TILES * tile_size
    board_width = level_width * tile_size
    board_height = level_height * tile_size

    panel_x = margin * 2 + board_width
    window_width = panel_x + PANEL_WIDTH
    window_height = max(margin * 2 + board_height, PANEL_PADDING * 2 + 10 * 24)

    return BoardGeometry(
        board=(margin, margin, board_width, board_height),
        panel=(panel_x, 0, PANEL_WIDTH, window_height),
        window=(window_width, window_height),
        tile_size=tile_size,
    )
