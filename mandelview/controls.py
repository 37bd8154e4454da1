"""Keyboard and mouse bindings that drive a :class:`~mandelview.viewer.Viewer`."""

from __future__ import annotations

from typing import Callable, Optional

from .viewer import Viewer

PAN_STEP = 5.0
ZOOM_IN = 1.02
ZOOM_OUT = 0.98


KEY_BINDINGS: dict[str, Callable[[Viewer], object]] = {
    'r': lambda viewer: viewer.request_commit(),
    'w': lambda viewer: viewer.accumulate_pan(0.0, PAN_STEP),
    'a': lambda viewer: viewer.accumulate_pan(PAN_STEP, 0.0),
    's': lambda viewer: viewer.accumulate_pan(0.0, -PAN_STEP),
    'd': lambda viewer: viewer.accumulate_pan(-PAN_STEP, 0.0),
    ']': lambda viewer: viewer.accumulate_zoom(ZOOM_IN),
    '[': lambda viewer: viewer.accumulate_zoom(ZOOM_OUT),
}


def handle_key(viewer: Viewer, key: str) -> bool:
    """Apply the binding for ``key``. Returns False for unbound keys."""

    action = KEY_BINDINGS.get(key)
    if action is None:
        return False
    action(viewer)
    return True


def handle_wheel(viewer: Viewer, delta_y: float) -> None:
    viewer.accumulate_zoom(ZOOM_IN if delta_y > 0 else ZOOM_OUT)


class DragTracker:
    """Turns pointer drags into pan offsets in unzoomed screen pixels."""

    def __init__(self, viewer: Viewer) -> None:
        self.viewer = viewer
        self._last: Optional[tuple[float, float]] = None

    def press(self, x: float, y: float) -> None:
        self._last = (x, y)

    def move(self, x: float, y: float) -> None:
        if self._last is None:
            return
        zoom = self.viewer.pending.zoom
        self.viewer.accumulate_pan((x - self._last[0]) / zoom, (y - self._last[1]) / zoom)
        self._last = (x, y)

    def release(self) -> None:
        self._last = None
