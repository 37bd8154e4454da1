"""Escape-time rendering and viewport bookkeeping for the Mandelbrot set."""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass, field
from typing import Optional

import numpy as np
import tensorflow as tf

from .errors import InvalidViewportError, RenderCancelledError
from .mapping import rescale
from .palette import Palette

# Zoom factors below this are treated as degenerate rather than divided by.
MIN_ZOOM = 1e-12


@dataclass(frozen=True)
class PlaneBounds:
    """Visible rectangle of the complex plane."""

    xl: float = -2.5
    xr: float = 1.0
    yl: float = -1.0
    yr: float = 1.0

    def __post_init__(self) -> None:
        values = (self.xl, self.xr, self.yl, self.yr)
        if not all(math.isfinite(v) for v in values):
            raise InvalidViewportError(f"plane bounds must be finite, got {values}")
        if not (self.xl < self.xr and self.yl < self.yr):
            raise InvalidViewportError(f"plane bounds must satisfy xl < xr and yl < yr, got {values}")

    @property
    def width(self) -> float:
        return self.xr - self.xl

    @property
    def height(self) -> float:
        return self.yr - self.yl

    @property
    def center(self) -> tuple[float, float]:
        return (self.xl + self.xr) / 2.0, (self.yl + self.yr) / 2.0


@dataclass(frozen=True)
class ViewportTransform:
    """Screen-space pan (pixels) and zoom accumulated since the last commit."""

    pan_x: float = 0.0
    pan_y: float = 0.0
    zoom: float = 1.0

    def __post_init__(self) -> None:
        _check_zoom(self.zoom)

    def panned(self, dx: float, dy: float) -> "ViewportTransform":
        return ViewportTransform(self.pan_x + dx, self.pan_y + dy, self.zoom)

    def zoomed(self, factor: float) -> "ViewportTransform":
        if not math.isfinite(factor) or factor <= 0:
            raise InvalidViewportError(f"zoom factor must be positive, got {factor}")
        return ViewportTransform(self.pan_x, self.pan_y, self.zoom * factor)

    @property
    def is_identity(self) -> bool:
        return self.pan_x == 0 and self.pan_y == 0 and self.zoom == 1


def _check_zoom(zoom: float) -> None:
    if not math.isfinite(zoom) or zoom <= 0:
        raise InvalidViewportError(f"zoom must be positive and finite, got {zoom}")
    if zoom < MIN_ZOOM:
        raise InvalidViewportError(f"zoom {zoom} is below the minimum of {MIN_ZOOM}")


IDENTITY = ViewportTransform()


@dataclass(frozen=True)
class EngineConfig:
    """Fractal parameters fixed for the lifetime of one engine."""

    max_iterations: int = 100
    escape_radius: float = 2.0
    power: int = 2
    downsample: int = 2
    band_rows: int = 32
    device: Optional[str] = None
    palette: Palette = field(default_factory=Palette)

    def __post_init__(self) -> None:
        if int(self.max_iterations) != self.max_iterations or self.max_iterations < 1:
            raise ValueError(f"max_iterations must be a positive integer, got {self.max_iterations}")
        if not math.isfinite(self.escape_radius) or self.escape_radius <= 0:
            raise ValueError(f"escape_radius must be positive, got {self.escape_radius}")
        if int(self.power) != self.power or self.power < 2:
            raise ValueError(f"power must be an integer >= 2, got {self.power}")
        if int(self.downsample) != self.downsample or self.downsample < 1:
            raise ValueError(f"downsample must be an integer >= 1, got {self.downsample}")
        if int(self.band_rows) != self.band_rows or self.band_rows < 1:
            raise ValueError(f"band_rows must be an integer >= 1, got {self.band_rows}")


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """One fully rendered frame at logical (downsampled) resolution."""

    rgb: np.ndarray
    iterations: np.ndarray
    bounds: PlaneBounds
    downsample: int

    def __post_init__(self) -> None:
        self.rgb.setflags(write=False)
        self.iterations.setflags(write=False)

    @property
    def width(self) -> int:
        return int(self.rgb.shape[1])

    @property
    def height(self) -> int:
        return int(self.rgb.shape[0])

    def expanded(self) -> np.ndarray:
        """Return the frame with each cell grown to a ``downsample`` square block."""

        d = self.downsample
        if d == 1:
            return np.array(self.rgb, copy=True)
        return np.repeat(np.repeat(self.rgb, d, axis=0), d, axis=1)


def _orbit_step(x, y, x0, y0, power: int):
    # Works on floats and tensors alike so both paths share the same arithmetic.
    zx, zy = x, y
    for _ in range(power - 1):
        zx, zy = zx * x - zy * y, zx * y + zy * x
    return zx + x0, zy + y0


@tf.function(reduce_retracing=True)
def _escape_run(x0: tf.Tensor, y0: tf.Tensor, max_iterations: tf.Tensor, radius_sq: tf.Tensor, power: int) -> tf.Tensor:
    """Count escape iterations for a grid of points with a TensorFlow while loop."""

    i = tf.constant(0, dtype=tf.int32)
    xs = tf.zeros_like(x0)
    ys = tf.zeros_like(y0)
    ns = tf.zeros_like(x0, dtype=tf.int32)
    active = tf.ones_like(x0, dtype=tf.bool)

    def cond(i, xs, ys, ns, active):
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i, xs, ys, ns, active):
        xs_new, ys_new = _orbit_step(xs, ys, x0, y0, power)
        xs = tf.where(active, xs_new, xs)
        ys = tf.where(active, ys_new, ys)
        ns = ns + tf.cast(active, tf.int32)
        active = tf.logical_and(active, xs * xs + ys * ys <= radius_sq)
        return i + 1, xs, ys, ns, active

    _, _, _, ns, _ = tf.while_loop(cond, body, (i, xs, ys, ns, active))
    return ns


def transformed_bounds(bounds: PlaneBounds, transform, canvas_width: float, canvas_height: float) -> PlaneBounds:
    """Fold a screen-space pan/zoom into new plane bounds.

    Every edge is mapped against the bounds as they were before the update.
    """

    _check_zoom(transform.zoom)
    s = 1.0 / transform.zoom

    scaled_width = s * canvas_width
    scaled_height = s * canvas_height

    center_x = canvas_width / 2 - transform.pan_x
    center_y = canvas_height / 2 - transform.pan_y

    left = center_x - scaled_width / 2
    right = center_x + scaled_width / 2
    top = center_y - scaled_height / 2
    bottom = center_y + scaled_height / 2

    return PlaneBounds(
        xl=rescale(left, 0, canvas_width, bounds.xl, bounds.xr),
        xr=rescale(right, 0, canvas_width, bounds.xl, bounds.xr),
        yl=rescale(top, 0, canvas_height, bounds.yl, bounds.yr),
        yr=rescale(bottom, 0, canvas_height, bounds.yl, bounds.yr),
    )


def _check_canvas(canvas_width: int, canvas_height: int) -> tuple[int, int]:
    if int(canvas_width) != canvas_width or int(canvas_height) != canvas_height:
        raise ValueError(f"canvas size must be integral, got {canvas_width}x{canvas_height}")
    if canvas_width < 1 or canvas_height < 1:
        raise ValueError(f"canvas size must be positive, got {canvas_width}x{canvas_height}")
    return int(canvas_width), int(canvas_height)


class FractalEngine:
    """Owns the plane bounds and the rendered buffer for one canvas.

    Commit and render are serialized by an internal lock. A render can be
    abandoned between row bands with :meth:`cancel_render`, in which case the
    previous buffer stays in place.
    """

    def __init__(
        self,
        canvas_width: int,
        canvas_height: int,
        bounds: Optional[PlaneBounds] = None,
        config: Optional[EngineConfig] = None,
    ) -> None:
        self._canvas = _check_canvas(canvas_width, canvas_height)
        self._bounds = bounds if bounds is not None else PlaneBounds()
        self._config = config if config is not None else EngineConfig()
        self._buffer: Optional[PixelBuffer] = None
        self._lock = threading.RLock()
        self._cancel = threading.Event()
        self._in_flight = False

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def bounds(self) -> PlaneBounds:
        return self._bounds

    @property
    def canvas_size(self) -> tuple[int, int]:
        return self._canvas

    @property
    def buffer_size(self) -> tuple[int, int]:
        """Logical ``(width, height)`` of the rendered buffer."""

        return self._buffer_size_for(self._canvas)

    def _buffer_size_for(self, canvas: tuple[int, int]) -> tuple[int, int]:
        d = self._config.downsample
        return max(canvas[0] // d, 1), max(canvas[1] // d, 1)

    @property
    def buffer(self) -> Optional[PixelBuffer]:
        return self._buffer

    def compute_escape_iterations(self, px: float, py: float) -> int:
        width, height = self.buffer_size
        bounds = self._bounds
        x0 = rescale(px, 0.0, float(width), bounds.xl, bounds.xr)
        y0 = rescale(py, 0.0, float(height), bounds.yl, bounds.yr)

        power = int(self._config.power)
        max_iterations = int(self._config.max_iterations)
        radius_sq = float(self._config.escape_radius) ** 2

        x = 0.0
        y = 0.0
        iteration = 0
        while x * x + y * y <= radius_sq and iteration < max_iterations:
            x, y = _orbit_step(x, y, x0, y0, power)
            iteration += 1
        return iteration

    def color_for(self, iterations: int) -> tuple[int, int, int]:
        return self._config.palette.color_for(iterations, self._config.max_iterations)

    def cancel_render(self) -> None:
        """Abandon the render in progress. Does nothing when the engine is idle."""

        if self._in_flight:
            self._cancel.set()

    def render(self) -> PixelBuffer:
        with self._lock:
            buffer = self._render_guarded(self._bounds, self._canvas)
            self._buffer = buffer
            return buffer

    def _render_guarded(self, bounds: PlaneBounds, canvas: tuple[int, int]) -> PixelBuffer:
        # A cancel that raced the end of the previous render is dropped here.
        self._cancel.clear()
        self._in_flight = True
        try:
            return self._render_frame(bounds, canvas)
        finally:
            self._in_flight = False
            self._cancel.clear()

    def _render_frame(self, bounds: PlaneBounds, canvas: tuple[int, int]) -> PixelBuffer:
        config = self._config
        width, height = self._buffer_size_for(canvas)

        xs = rescale(np.arange(width, dtype=np.float64), 0.0, float(width), bounds.xl, bounds.xr)
        ys = rescale(np.arange(height, dtype=np.float64), 0.0, float(height), bounds.yl, bounds.yr)

        iterations = np.empty((height, width), dtype=np.int32)
        max_iterations = tf.constant(int(config.max_iterations), dtype=tf.int32)
        radius_sq = tf.constant(float(config.escape_radius) ** 2, dtype=tf.float64)

        with tf.device(config.device if config.device is not None else "/CPU:0"):
            for start in range(0, height, config.band_rows):
                if self._cancel.is_set():
                    raise RenderCancelledError(f"render abandoned at row {start} of {height}")
                stop = min(start + config.band_rows, height)
                x0, y0 = np.meshgrid(xs, ys[start:stop])
                ns = _escape_run(
                    tf.convert_to_tensor(x0, dtype=tf.float64),
                    tf.convert_to_tensor(y0, dtype=tf.float64),
                    max_iterations,
                    radius_sq,
                    int(config.power),
                )
                iterations[start:stop] = ns.numpy()

        rgb = config.palette.colorize(iterations, config.max_iterations)
        return PixelBuffer(rgb=rgb, iterations=iterations, bounds=bounds, downsample=config.downsample)

    def commit_viewport_transform(self, transform, canvas_width: int, canvas_height: int) -> None:
        """Replace the bounds with those implied by ``transform`` and re-render.

        Bounds, canvas size and buffer change together once the new frame is
        complete. On :class:`InvalidViewportError` or
        :class:`RenderCancelledError` all three are left as they were.
        """

        canvas = _check_canvas(canvas_width, canvas_height)
        with self._lock:
            new_bounds = transformed_bounds(self._bounds, transform, *canvas)
            buffer = self._render_guarded(new_bounds, canvas)
            self._bounds = new_bounds
            self._canvas = canvas
            self._buffer = buffer
