"""Public API for the Mandelbrot viewport engine."""

from .errors import DegenerateRangeError, InvalidViewportError, RenderCancelledError
from .mapping import CoordinateMapper, rescale
from .palette import Palette, parse_hex_color
from .engine import (
    IDENTITY,
    EngineConfig,
    FractalEngine,
    PixelBuffer,
    PlaneBounds,
    ViewportTransform,
    transformed_bounds,
)
from .viewer import Viewer

__all__ = [
    "CoordinateMapper",
    "DegenerateRangeError",
    "EngineConfig",
    "FractalEngine",
    "IDENTITY",
    "InvalidViewportError",
    "Palette",
    "PixelBuffer",
    "PlaneBounds",
    "RenderCancelledError",
    "ViewportTransform",
    "Viewer",
    "parse_hex_color",
    "rescale",
    "transformed_bounds",
]
