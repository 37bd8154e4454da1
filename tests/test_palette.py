import numpy as np
import pytest

from mandelview import Palette, parse_hex_color
from mandelview.palette import DEFAULT_COLORS, INTERIOR_COLOR


def test_interior_color_for_max_iterations():
    assert Palette().color_for(100, 100) == INTERIOR_COLOR


def test_exterior_colors_cycle_every_sixteen():
    palette = Palette()
    for k in range(100):
        assert palette.color_for(k, 100) == DEFAULT_COLORS[k % 16]
    assert palette.color_for(16, 100) == palette.color_for(0, 100)


def test_color_for_large_counts_does_not_raise():
    assert Palette().color_for(10**9 + 3, 100) == DEFAULT_COLORS[(10**9 + 3) % 16]


def test_colorize_matches_color_for():
    palette = Palette()
    iterations = np.array([[0, 1, 15], [16, 99, 100]], dtype=np.int32)
    rgb = palette.colorize(iterations, 100)
    assert rgb.shape == (2, 3, 3)
    assert rgb.dtype == np.uint8
    for (row, col), k in np.ndenumerate(iterations):
        assert tuple(rgb[row, col]) == palette.color_for(int(k), 100)


def test_palette_is_immutable():
    palette = Palette()
    with pytest.raises(ValueError):
        palette.colors[0, 0] = 1


def test_palette_requires_sixteen_entries():
    with pytest.raises(ValueError):
        Palette(colors=[(0, 0, 0)] * 15)


def test_from_hex():
    palette = Palette.from_hex(['#000000'] * 15 + ['#ff8000'], interior='#0a0b0c')
    assert palette.color_for(15, 50) == (255, 128, 0)
    assert palette.color_for(50, 50) == (10, 11, 12)


@pytest.mark.parametrize("bad", ["#12345", "#ggggggg", "#zzzzzz"])
def test_parse_hex_color_rejects_malformed(bad):
    with pytest.raises(ValueError):
        parse_hex_color(bad)


def test_from_colormap_samples_sixteen_colors():
    palette = Palette.from_colormap("viridis")
    inverted = Palette.from_colormap("viridis", invert=True)
    assert palette.colors.shape == (16, 3)
    assert np.array_equal(palette.colors[::-1], inverted.colors)
