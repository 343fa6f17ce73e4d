"""Tests for the compositor."""

import numpy as np
import pytest
from PIL import ImageFont

from picture_puzzle.compositor import Compositor, DecorationConfig, cell_origin, load_font
from picture_puzzle.permutation import PermutationState
from picture_puzzle.tile_set import TileSet

BLACK = (0, 0, 0, 255)
PLAIN = DecorationConfig(border_thickness=0, show_labels=False)
BORDERS_ONLY = DecorationConfig(show_labels=False)


def default_font(size: int):
    """Font loader that needs no font files."""
    return ImageFont.load_default()


@pytest.fixture
def compositor():
    return Compositor(font_loader=default_font)


@pytest.fixture
def tile_set():
    """A 300x300 image cut into nine flat-colored 100x100 tiles."""
    img = np.zeros((300, 300, 4), dtype=np.uint8)
    img[:, :, 3] = 255
    for k in range(9):
        x, y = cell_origin(k, 3, 100, 100)
        img[y:y + 100, x:x + 100, :3] = [(20 + k * 37) % 256, (200 + k * 53) % 256, 40 + k]
    return TileSet.build(img, 3)


class TestCompositor:
    """Tests for Compositor.render."""

    def test_output_dimensions(self, compositor, tile_set):
        """Test that the composite covers the tiled region."""
        result = compositor.render(tile_set, range(9))

        assert result.shape == (300, 300, 4)
        assert result.dtype == np.uint8

    def test_identity_without_decorations(self, compositor, tile_set):
        """Test that the solved order reproduces the source."""
        result = compositor.render(tile_set, range(9), PLAIN)

        assert np.array_equal(result, tile_set.source)

    def test_tiles_follow_permutation(self, compositor, tile_set):
        """Test that each cell shows the tile named by the permutation."""
        order = [8, 3, 5, 0, 2, 7, 1, 6, 4]

        result = compositor.render(tile_set, order, PLAIN)

        for cell, tile_index in enumerate(order):
            x, y = cell_origin(cell, 3, 100, 100)
            assert np.array_equal(result[y:y + 100, x:x + 100], tile_set.tile_at(tile_index))

    def test_accepts_permutation_state(self, compositor, tile_set):
        """Test rendering straight from a PermutationState."""
        state = PermutationState(3, [2, 1, 0, 3, 4, 5, 6, 7, 8])

        from_state = compositor.render(tile_set, state, PLAIN)
        from_list = compositor.render(tile_set, [2, 1, 0, 3, 4, 5, 6, 7, 8], PLAIN)

        assert np.array_equal(from_state, from_list)

    def test_wrong_permutation_length(self, compositor, tile_set):
        """Test that a permutation for another grid size is rejected."""
        with pytest.raises(ValueError):
            compositor.render(tile_set, range(4))

    def test_deterministic(self, compositor, tile_set):
        """Test that identical inputs give pixel-identical output."""
        order = [4, 2, 0, 1, 8, 3, 5, 7, 6]

        first = compositor.render(tile_set, order)
        second = compositor.render(tile_set, order)

        assert np.array_equal(first, second)

    def test_render_does_not_touch_tiles(self, compositor, tile_set):
        """Test that rendering leaves the tile set unchanged."""
        before = tile_set.source.copy()

        compositor.render(tile_set, [4, 2, 0, 1, 8, 3, 5, 7, 6])

        assert np.array_equal(tile_set.source, before)


class TestBorders:
    """Tests for cell borders."""

    def test_border_straddles_shared_edge(self, compositor, tile_set):
        """Test that the edge between cells 0 and 1 is black on both sides."""
        result = compositor.render(tile_set, range(9), BORDERS_ONLY)

        for x in range(96, 105):
            assert tuple(result[50, x]) == BLACK

        assert np.array_equal(result[50, 95], tile_set.tile_at(0)[50, 95])
        assert np.array_equal(result[50, 105], tile_set.tile_at(1)[50, 5])

    def test_border_clamped_to_image(self, compositor, tile_set):
        """Test that outer borders are drawn on the outermost pixels."""
        result = compositor.render(tile_set, range(9), BORDERS_ONLY)

        assert tuple(result[150, 0]) == BLACK
        assert tuple(result[150, 299]) == BLACK
        assert tuple(result[0, 150]) == BLACK
        assert tuple(result[299, 150]) == BLACK

    def test_cell_interior_untouched(self, compositor, tile_set):
        """Test that borders leave the middle of each cell alone."""
        result = compositor.render(tile_set, range(9), BORDERS_ONLY)

        for cell in range(9):
            x, y = cell_origin(cell, 3, 100, 100)
            assert np.array_equal(result[y + 50, x + 50], tile_set.tile_at(cell)[50, 50])

    def test_thickness(self, compositor, tile_set):
        """Test that a thinner border covers fewer pixels."""
        thin = compositor.render(tile_set, range(9), DecorationConfig(border_thickness=1, show_labels=False))

        assert tuple(thin[50, 100]) == BLACK
        assert tuple(thin[50, 99]) != BLACK
        assert tuple(thin[50, 102]) != BLACK


class TestLabels:
    """Tests for cell number labels."""

    def test_label_box_drawn(self, compositor, tile_set):
        """Test that a black box with light text sits near each cell corner."""
        result = compositor.render(tile_set, range(9))

        for cell in range(9):
            x, y = cell_origin(cell, 3, 100, 100)
            assert tuple(result[y + 12, x + 12]) == BLACK
            text_area = result[y + 20:y + 70, x + 20:x + 70]
            assert text_area[:, :, 0].max() > 100

    def test_labels_are_positional(self, compositor, tile_set):
        """Test that label boxes do not move with the tiles."""
        first = compositor.render(tile_set, range(9))
        second = compositor.render(tile_set, [8, 7, 6, 5, 4, 3, 2, 1, 0])

        for cell in range(9):
            x, y = cell_origin(cell, 3, 100, 100)
            box = (slice(y + 10, y + 80), slice(x + 10, x + 80))
            assert np.array_equal(first[box], second[box])

    def test_labels_differ_per_cell(self, compositor, tile_set):
        """Test that each cell carries its own number."""
        result = compositor.render(tile_set, range(9))

        assert not np.array_equal(result[10:80, 10:80], result[10:80, 110:180])

    def test_small_tiles(self, compositor):
        """Test that oversized labels are clipped on tiny tiles."""
        tile_set = TileSet.build(np.full((6, 6, 4), 90, dtype=np.uint8), 3)

        result = compositor.render(tile_set, range(9))

        assert result.shape == (6, 6, 4)

    def test_font_loaded_once_per_size(self, tile_set):
        """Test that the font loader is cached."""
        calls = []

        def counting_loader(size):
            calls.append(size)
            return ImageFont.load_default()

        compositor = Compositor(font_loader=counting_loader)
        compositor.render(tile_set, range(9))
        compositor.render(tile_set, range(9))
        compositor.render(tile_set, range(9), DecorationConfig(font_size=20))

        assert calls == [50, 20]


class TestLoadFont:
    """Tests for font loading fallback."""

    def test_missing_font_falls_back(self):
        """Test that a missing font path still yields a usable font."""
        font = load_font(24, font_path="/nonexistent/font.ttf")

        assert font is not None
        assert font.getbbox("1")[2] > 0
