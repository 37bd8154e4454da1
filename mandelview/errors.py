"""Exceptions raised by the viewport engine."""

from __future__ import annotations


class DegenerateRangeError(ValueError):
    """A linear rescale was requested from an empty source range."""


class InvalidViewportError(ValueError):
    """A pan/zoom would produce unusable plane bounds or a non-positive zoom."""


class RenderCancelledError(RuntimeError):
    """A render was abandoned before it replaced the current buffer."""
