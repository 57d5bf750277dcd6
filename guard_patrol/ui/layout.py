"""Layout constants for the patrol viewer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

# Tile metrics
TILE_SIZE: int = 48
MIN_TILE_SIZE: int = 4
MAX_BOARD_PIXELS: int = 900
GRID_PADDING: int = 24
BOARD_OUTER_PADDING: int = 32

# Status panel metrics
UI_PANEL_WIDTH: int = 280
UI_PANEL_PADDING: int = 24
UI_PANEL_SPACING: int = 12

# Tooltip metrics
TOOLTIP_HEIGHT: int = 72

# Colors expressed as RGB tuples
BACKGROUND_COLOR: Tuple[int, int, int] = (12, 14, 26)
BOARD_BACKGROUND_COLOR: Tuple[int, int, int] = (20, 24, 44)
PANEL_BACKGROUND_COLOR: Tuple[int, int, int] = (32, 36, 60)
TOOLTIP_BACKGROUND_COLOR: Tuple[int, int, int] = (40, 44, 72)
GRID_LINE_COLOR: Tuple[int, int, int] = (58, 64, 96)
TEXT_COLOR: Tuple[int, int, int] = (232, 236, 244)
OBSTACLE_COLOR: Tuple[int, int, int] = (150, 156, 180)
VISITED_COLOR: Tuple[int, int, int] = (52, 92, 150)
LOOP_CELL_COLOR: Tuple[int, int, int] = (255, 94, 0)
GUARD_COLOR: Tuple[int, int, int] = (90, 220, 120)
PATH_COLOR: Tuple[int, int, int] = (120, 170, 255)

# Rendering order for composed scenes
DRAW_ORDER = ("board", "ui_panel", "tooltips")


@dataclass(frozen=True)
class BoardGeometry:
    """Pixel rectangles for the major UI regions."""

    board: Tuple[int, int, int, int]
    panel: Tuple[int, int, int, int]
    tooltip: Tuple[int, int, int, int]
    window: Tuple[int, int]
    tile_size: int


def fit_tile_size(map_width: int, map_height: int, preferred: int = TILE_SIZE) -> int:
    """Shrink the tile size so large maps still fit on screen."""

    longest = max(map_width, map_height, 1)
    fitted = min(preferred, MAX_BOARD_PIXELS // longest)
    return max(MIN_TILE_SIZE, fitted)


def compute_geometry(map_width: int, map_height: int, tile_size: int = TILE_SIZE) -> BoardGeometry:
    """Compute the rectangles used to render the viewer window."""

    board_width = map_width * tile_size
    board_height = map_height * tile_size

    board_x = BOARD_OUTER_PADDING
    board_y = BOARD_OUTER_PADDING

    panel_x = board_x + board_width + GRID_PADDING
    panel_y = board_y

    tooltip_width = board_width + GRID_PADDING + UI_PANEL_WIDTH
    tooltip_x = board_x
    tooltip_y = board_y + board_height + GRID_PADDING

    window_width = tooltip_x + tooltip_width + BOARD_OUTER_PADDING
    window_height = tooltip_y + TOOLTIP_HEIGHT + BOARD_OUTER_PADDING

    return BoardGeometry(
        board=(board_x, board_y, board_width, board_height),
        panel=(panel_x, panel_y, UI_PANEL_WIDTH, board_height),
        tooltip=(tooltip_x, tooltip_y, tooltip_width, TOOLTIP_HEIGHT),
        window=(window_width, window_height),
        tile_size=tile_size,
    )
