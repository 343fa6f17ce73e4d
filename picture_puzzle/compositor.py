"""Rendering of a tile arrangement into a single decorated image."""

import functools
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Optional

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from .tile_set import TileSet

logger = logging.getLogger(__name__)

Font = ImageFont.FreeTypeFont | ImageFont.ImageFont
FontLoader = Callable[[int], Font]

_SYSTEM_FONTS = (
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/TTF/DejaVuSans.ttf",
    "DejaVuSans.ttf",
    "arial.ttf",
)


def load_font(size: int, font_path: Optional[str | Path] = None) -> Font:
    """
    Get a font for drawing labels, with fallback.

    Tries font_path first, then a few common system fonts, then the font
    bundled with Pillow.
    """
    candidates = ([str(font_path)] if font_path else []) + list(_SYSTEM_FONTS)
    for candidate in candidates:
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue

    if font_path:
        logger.warning(f"Font {font_path} not found, using default font")
    return ImageFont.load_default(size=size)


@dataclass(frozen=True)
class DecorationConfig:
    """Borders and labels drawn over each cell."""

    border_thickness: int = 5
    border_color: tuple[int, int, int, int] = (0, 0, 0, 255)  # Opaque black
    label_color: tuple[int, int, int, int] = (255, 255, 255, 255)
    font_size: int = 50
    label_inset: int = 10  # Offset of the label box from the cell corner
    label_padding: int = 10  # Space between the label box and its text
    show_labels: bool = True


def cell_origin(cell: int, grid_size: int, tile_width: int, tile_height: int) -> tuple[int, int]:
    """Top-left pixel (x, y) of a cell in row-major order."""
    return (cell % grid_size) * tile_width, (cell // grid_size) * tile_height


class Compositor:
    """Renders tiles in permutation order, then draws borders and cell numbers."""

    def __init__(self, font_loader: FontLoader = load_font):
        """
        Initialize the compositor.

        Args:
            font_loader: Callable returning a PIL font for a given size.
                Fonts are loaded once per size.
        """
        self._font = functools.lru_cache(maxsize=None)(font_loader)

    def render(
        self,
        tile_set: TileSet,
        permutation: Iterable[int],
        config: Optional[DecorationConfig] = None,
    ) -> np.ndarray:
        """
        Render the arrangement as a new RGBA image.

        Cells are copied first. Decorations are then drawn cell by cell in
        row-major order, so where a border spills into a neighbouring cell
        the later cell's decoration is drawn on top.

        Args:
            tile_set: Tiles to place
            permutation: Tile index for each cell, row-major
            config: Decoration settings (defaults used if None)

        Returns:
            Array of shape (height, width, 4) covering the tiled region

        Raises:
            ValueError: If the permutation length does not match the grid
        """
        config = config or DecorationConfig()
        order = tuple(permutation)
        if len(order) != tile_set.total_tiles:
            raise ValueError(
                f"Permutation has {len(order)} cells, expected {tile_set.total_tiles}"
            )

        grid = tile_set.grid_size
        tile_w, tile_h = tile_set.tile_width, tile_set.tile_height
        buffer = np.zeros((tile_set.height, tile_set.width, 4), dtype=np.uint8)

        for cell, tile_index in enumerate(order):
            x, y = cell_origin(cell, grid, tile_w, tile_h)
            buffer[y:y + tile_h, x:x + tile_w] = tile_set.tile_at(tile_index)

        if config.border_thickness <= 0 and not config.show_labels:
            return buffer

        pil_image = Image.fromarray(buffer)
        draw = ImageDraw.Draw(pil_image)
        font = self._font(config.font_size) if config.show_labels else None

        for cell in range(len(order)):
            x, y = cell_origin(cell, grid, tile_w, tile_h)
            self._draw_border(draw, pil_image.size, x, y, tile_w, tile_h, config)
            if font is not None:
                self._draw_label(draw, str(cell + 1), x, y, font, config)

        return np.array(pil_image)

    def _draw_border(
        self,
        draw: ImageDraw.ImageDraw,
        image_size: tuple[int, int],
        x: int,
        y: int,
        tile_w: int,
        tile_h: int,
        config: DecorationConfig,
    ) -> None:
        """Draw concentric 1-pixel outlines around a cell, clamped to the image."""
        width, height = image_size
        for t in range(config.border_thickness):
            x1 = max(x - t, 0)
            y1 = max(y - t, 0)
            x2 = min(x + tile_w + t, width - 1)
            y2 = min(y + tile_h + t, height - 1)
            draw.rectangle([x1, y1, x2, y2], outline=config.border_color)

    def _draw_label(
        self,
        draw: ImageDraw.ImageDraw,
        label: str,
        x: int,
        y: int,
        font: Font,
        config: DecorationConfig,
    ) -> None:
        """Draw the cell number on a filled box near the cell corner."""
        # Box size is estimated from the font size, not measured
        box_w = config.font_size * len(label) + config.label_padding * 2
        box_h = config.font_size + config.label_padding * 2
        box_x = x + config.label_inset
        box_y = y + config.label_inset

        draw.rectangle(
            [box_x, box_y, box_x + box_w - 1, box_y + box_h - 1],
            fill=config.border_color,
        )
        draw.text(
            (box_x + config.label_padding, box_y + config.label_padding),
            label,
            fill=config.label_color,
            font=font,
        )
