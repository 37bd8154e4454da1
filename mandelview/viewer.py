"""Two-phase pan/zoom session around a :class:`FractalEngine`.

Input handlers only accumulate a pending :class:`ViewportTransform`. Nothing
is recomputed until :meth:`Viewer.request_commit`, so the host can show the
cached frame through :meth:`Viewer.preview_frame` at interactive rates.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
import PIL.Image

from .engine import IDENTITY, EngineConfig, FractalEngine, PixelBuffer, PlaneBounds, ViewportTransform


class Viewer:
    """Pending pan/zoom state and frame access for one engine."""

    def __init__(self, engine: FractalEngine) -> None:
        self.engine = engine
        self.pending: ViewportTransform = IDENTITY

    @classmethod
    def initialize(
        cls,
        canvas_width: int,
        canvas_height: int,
        xl: float = -2.5,
        xr: float = 1.0,
        yl: float = -1.0,
        yr: float = 1.0,
        config: Optional[EngineConfig] = None,
    ) -> "Viewer":
        engine = FractalEngine(canvas_width, canvas_height, PlaneBounds(xl, xr, yl, yr), config)
        engine.render()
        return cls(engine)

    @property
    def canvas_size(self) -> tuple[int, int]:
        return self.engine.canvas_size

    def accumulate_pan(self, dx: float, dy: float) -> None:
        self.pending = self.pending.panned(dx, dy)

    def accumulate_zoom(self, factor: float) -> None:
        self.pending = self.pending.zoomed(factor)

    def discard_pending(self) -> None:
        self.pending = IDENTITY

    def request_commit(self) -> PixelBuffer:
        """Fold the pending transform into the plane bounds and re-render.

        The pending transform is kept if the commit raises, so the host can
        decide whether to discard or adjust it.
        """

        width, height = self.engine.canvas_size
        self.engine.commit_viewport_transform(self.pending, width, height)
        self.pending = IDENTITY
        return self.engine.buffer

    def resize(self, canvas_width: int, canvas_height: int) -> PixelBuffer:
        self.engine.commit_viewport_transform(self.pending, canvas_width, canvas_height)
        self.pending = IDENTITY
        return self.engine.buffer

    def get_frame_buffer(self) -> np.ndarray:
        buffer = self.engine.buffer
        if buffer is None:
            buffer = self.engine.render()
        return buffer.expanded()

    def preview_frame(self) -> np.ndarray:
        """Return the cached frame as the canvas shows it under the pending transform.

        The frame is scaled by ``zoom`` about the canvas center and then
        shifted by the pan offset. Uncovered areas are black.
        """

        frame = self.get_frame_buffer()
        if self.pending.is_identity:
            return frame

        width, height = self.engine.canvas_size
        zoom = self.pending.zoom
        cx = width / 2
        cy = height / 2
        # Output pixel (u, v) samples source (a*u + c, e*v + f).
        coefficients = (
            1.0 / zoom, 0.0, cx - cx / zoom - self.pending.pan_x,
            0.0, 1.0 / zoom, cy - cy / zoom - self.pending.pan_y,
        )
        image = PIL.Image.fromarray(frame)
        moved = image.transform((width, height), PIL.Image.Transform.AFFINE, coefficients, resample=PIL.Image.Resampling.NEAREST)
        return np.array(moved, copy=True)
