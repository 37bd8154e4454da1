"""Linear rescaling between screen space and plane space."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import DegenerateRangeError


def rescale(value, src_min: float, src_max: float, dst_min: float, dst_max: float):
    """Map ``value`` from ``[src_min, src_max]`` onto ``[dst_min, dst_max]``.

    The mapping is not clamped: values outside the source range extrapolate
    linearly. ``value`` may be a scalar or a numpy array, and both go through
    the same arithmetic so that vectorized grids match per-pixel results.
    """

    if src_max == src_min:
        raise DegenerateRangeError(f"source range [{src_min}, {src_max}] is empty")
    normalized = (value - src_min) / (src_max - src_min)
    return (dst_max - dst_min) * normalized + dst_min


@dataclass(frozen=True)
class CoordinateMapper:
    """A fixed affine mapping from one interval to another."""

    src_min: float
    src_max: float
    dst_min: float
    dst_max: float

    def __post_init__(self) -> None:
        if self.src_max == self.src_min:
            raise DegenerateRangeError(f"source range [{self.src_min}, {self.src_max}] is empty")

    def __call__(self, value):
        return rescale(value, self.src_min, self.src_max, self.dst_min, self.dst_max)

    def inverse(self) -> "CoordinateMapper":
        return CoordinateMapper(self.dst_min, self.dst_max, self.src_min, self.src_max)
