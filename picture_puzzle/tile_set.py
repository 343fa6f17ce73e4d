"""Decomposition of a source image into a grid of tiles."""

from typing import Iterator

import numpy as np

from .errors import IndexOutOfRange, InvalidImage


def normalize_image(image: np.ndarray) -> np.ndarray:
    """
    Convert an image array to RGBA uint8.

    Accepts grayscale (H, W) or (H, W, 1), RGB (H, W, 3) and RGBA (H, W, 4)
    arrays. Missing alpha is filled with 255.

    Raises:
        InvalidImage: If the array has an unsupported shape or dtype
    """
    if not isinstance(image, np.ndarray):
        raise InvalidImage(f"Expected a numpy array, got {type(image).__name__}")
    if image.dtype != np.uint8:
        raise InvalidImage(f"Expected uint8 pixel data, got {image.dtype}")

    if image.ndim == 2:
        image = image[:, :, np.newaxis]
    if image.ndim != 3 or image.shape[2] not in (1, 3, 4):
        raise InvalidImage(f"Unsupported image shape: {image.shape}")

    channels = image.shape[2]
    if channels == 4:
        return image
    if channels == 1:
        image = np.repeat(image, 3, axis=2)

    alpha = np.full(image.shape[:2] + (1,), 255, dtype=np.uint8)
    return np.concatenate([image, alpha], axis=2)


class TileSet:
    """Immutable row-major tiles cut from one source image."""

    def __init__(self, source: np.ndarray, grid_size: int, tile_width: int, tile_height: int):
        self._grid_size = grid_size
        self._tile_width = tile_width
        self._tile_height = tile_height
        self._source = source
        self._tiles = tuple(self._slice())

    @classmethod
    def build(cls, image: np.ndarray, grid_size: int) -> "TileSet":
        """
        Cut an image into grid_size x grid_size tiles.

        Tile dimensions use integer division. Pixels beyond the last full
        row or column of tiles are dropped.

        Args:
            image: Source image array
            grid_size: Number of tiles per side, at least 2

        Returns:
            A new TileSet

        Raises:
            InvalidImage: If the grid size is below 2, the array is not an
                image, or the image is smaller than the grid
        """
        if grid_size < 2:
            raise InvalidImage(f"Grid size must be at least 2. Got: {grid_size}")

        rgba = normalize_image(image)
        h, w = rgba.shape[:2]
        tile_height = h // grid_size
        tile_width = w // grid_size
        if tile_width == 0 or tile_height == 0:
            raise InvalidImage(
                f"Image of {w}x{h} is too small for a {grid_size}x{grid_size} grid"
            )

        source = rgba[: tile_height * grid_size, : tile_width * grid_size].copy()
        source.setflags(write=False)
        return cls(source, grid_size, tile_width, tile_height)

    def _slice(self) -> Iterator[np.ndarray]:
        for k in range(self.total_tiles):
            x1 = (k % self._grid_size) * self._tile_width
            y1 = (k // self._grid_size) * self._tile_height
            tile = self._source[y1:y1 + self._tile_height, x1:x1 + self._tile_width].copy()
            tile.setflags(write=False)
            yield tile

    def tile_at(self, tile_index: int) -> np.ndarray:
        """Get the tile with the given original (solved) index."""
        if not 0 <= tile_index < self.total_tiles:
            raise IndexOutOfRange(tile_index, self._grid_size)
        return self._tiles[tile_index]

    @property
    def grid_size(self) -> int:
        return self._grid_size

    @property
    def tile_width(self) -> int:
        return self._tile_width

    @property
    def tile_height(self) -> int:
        return self._tile_height

    @property
    def width(self) -> int:
        """Width of the tiled region in pixels."""
        return self._tile_width * self._grid_size

    @property
    def height(self) -> int:
        """Height of the tiled region in pixels."""
        return self._tile_height * self._grid_size

    @property
    def total_tiles(self) -> int:
        return self._grid_size ** 2

    @property
    def source(self) -> np.ndarray:
        """The tiled region of the source image (read-only)."""
        return self._source

    def __len__(self) -> int:
        return len(self._tiles)

    def __iter__(self) -> Iterator[np.ndarray]:
        return iter(self._tiles)

    def __repr__(self) -> str:
        return (
            f"TileSet(grid_size={self._grid_size}, "
            f"tile={self._tile_width}x{self._tile_height})"
        )
