"""Escape-time color tables."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

PALETTE_SIZE = 16

# Classic 16-step gradient: dark brown through blues to yellow and back.
DEFAULT_COLORS = (
    (66, 30, 15),
    (25, 7, 26),
    (9, 1, 47),
    (4, 4, 73),
    (0, 7, 100),
    (12, 44, 138),
    (24, 82, 177),
    (57, 125, 209),
    (134, 181, 229),
    (211, 236, 248),
    (241, 233, 191),
    (248, 201, 95),
    (255, 170, 0),
    (204, 128, 0),
    (153, 87, 0),
    (106, 52, 3),
)

INTERIOR_COLOR = (0, 0, 0)


def parse_hex_color(hex_color: str) -> tuple[int, int, int]:
    """Parse ``#RRGGBB`` into an RGB triple."""

    digits = hex_color.lstrip('#')
    if len(digits) != 6:
        raise ValueError('color must be in the form #RRGGBB.')
    try:
        return tuple(int(digits[i:i + 2], 16) for i in (0, 2, 4))
    except ValueError as exc:
        raise ValueError('color must contain only hexadecimal digits.') from exc


def _frozen_table(colors) -> np.ndarray:
    table = np.array(colors, dtype=np.uint8, copy=True)
    if table.shape != (PALETTE_SIZE, 3):
        raise ValueError(f"palette must have {PALETTE_SIZE} RGB entries, got shape {table.shape}")
    table.setflags(write=False)
    return table


@dataclass(frozen=True, eq=False)
class Palette:
    """Sixteen exterior colors indexed by ``iterations mod 16`` plus an interior color."""

    colors: np.ndarray = field(default_factory=lambda: _frozen_table(DEFAULT_COLORS))
    interior: tuple[int, int, int] = INTERIOR_COLOR

    def __post_init__(self) -> None:
        object.__setattr__(self, "colors", _frozen_table(self.colors))
        interior = tuple(int(c) for c in self.interior)
        if len(interior) != 3 or any(c < 0 or c > 255 for c in interior):
            raise ValueError(f"interior color must be an RGB triple in [0, 255], got {self.interior!r}")
        object.__setattr__(self, "interior", interior)

    @classmethod
    def from_hex(cls, hex_colors, interior: str = '#000000') -> "Palette":
        return cls(colors=[parse_hex_color(c) for c in hex_colors], interior=parse_hex_color(interior))

    @classmethod
    def from_colormap(cls, name: str, *, invert: bool = False, interior=INTERIOR_COLOR) -> "Palette":
        """Sample a matplotlib colormap at sixteen evenly spaced points."""

        from matplotlib import colormaps

        cmap = colormaps[name]
        samples = np.linspace(0.0, 1.0, PALETTE_SIZE, dtype=np.float64)
        if invert:
            samples = 1.0 - samples
        rgba = np.asarray(cmap(samples), dtype=np.float64)
        rgb = np.uint8(np.clip(rgba[:, :3] * 255, 0, 255))
        return cls(colors=rgb, interior=interior)

    def color_for(self, iterations: int, max_iterations: int) -> tuple[int, int, int]:
        if iterations == max_iterations:
            return self.interior
        r, g, b = self.colors[int(iterations) % PALETTE_SIZE]
        return int(r), int(g), int(b)

    def colorize(self, iterations: np.ndarray, max_iterations: int) -> np.ndarray:
        """Vectorized :meth:`color_for` over an array of escape counts."""

        iterations = np.asarray(iterations)
        rgb = self.colors[np.mod(iterations, PALETTE_SIZE)]
        inside = iterations == max_iterations
        rgb[inside] = self.interior
        return rgb
