"""Quadratic Bezier crossfade curve and the model behind its editor widget."""

from __future__ import annotations

import math
from typing import Callable, Optional

CONTROL_MIN = 0.05
CONTROL_MAX = 0.95
DEFAULT_CURVE_X = 0.25
DEFAULT_CURVE_Y = 0.75
HANDLE_RADIUS = 8.0
DEFAULT_SEGMENTS = 30

_MARGIN = 4.0
_EPS = 1e-6


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def clamp_control(value: float) -> float:
    """Clamp a control-point coordinate into the editable range."""
    return _clamp(float(value), CONTROL_MIN, CONTROL_MAX)


def solve_bezier_t(cx: float, x: float) -> float:
    """Find the curve parameter t whose x coordinate is ``x``.

    The curve runs from (0, 0) through control point (cx, cy) to (1, 1),
    so x(t) = 2(1 - t)t*cx + t^2 and the root is taken in [0, 1].
    """
    a = 1.0 - 2.0 * cx
    if abs(a) < _EPS:
        t = x / (2.0 * cx) if cx > _EPS else x
    else:
        disc = 4.0 * cx * cx + 4.0 * a * x
        t = (-2.0 * cx + math.sqrt(max(0.0, disc))) / (2.0 * a)
    return _clamp(t, 0.0, 1.0)


def eval_bezier_y(cy: float, t: float) -> float:
    """Evaluate the y coordinate of the curve at parameter ``t``."""
    return 2.0 * (1.0 - t) * t * cy + t * t


def fade_in(cx: float, cy: float, x: float) -> float:
    """Fade-in gain at crossfade progress ``x`` for control point (cx, cy)."""
    return eval_bezier_y(cy, solve_bezier_t(cx, x))


class CurveEditor:
    """Editable crossfade curve drawn inside a rectangle of the given size.

    Screen coordinates have their origin at the top-left corner; the unit
    square of the curve is inset by a small margin.
    """

    def __init__(
        self,
        width: float = 60.0,
        height: float = 60.0,
        on_curve_changed: Optional[Callable[[float, float], None]] = None,
    ) -> None:
        if width <= 2 * _MARGIN or height <= 2 * _MARGIN:
            raise ValueError("editor area is too small")
        self.width = float(width)
        self.height = float(height)
        self.on_curve_changed = on_curve_changed
        self.cx = DEFAULT_CURVE_X
        self.cy = DEFAULT_CURVE_Y
        self.dragging = False

    @property
    def _inner_width(self) -> float:
        return self.width - 2 * _MARGIN

    @property
    def _inner_height(self) -> float:
        return self.height - 2 * _MARGIN

    def set_control_point(self, cx: float, cy: float) -> None:
        """Move the control point, clamped into the editable range."""
        self.cx = clamp_control(cx)
        self.cy = clamp_control(cy)

    def to_screen(self, x: float, y: float) -> tuple[float, float]:
        """Map curve coordinates to screen coordinates."""
        bottom = self.height - _MARGIN
        return _MARGIN + x * self._inner_width, bottom - y * self._inner_height

    def from_screen(self, sx: float, sy: float) -> tuple[float, float]:
        """Map screen coordinates back to curve coordinates."""
        bottom = self.height - _MARGIN
        return (sx - _MARGIN) / self._inner_width, (bottom - sy) / self._inner_height

    def eval_y(self, x: float) -> float:
        """Fade-in gain of the current curve at progress ``x``."""
        return fade_in(self.cx, self.cy, x)

    def curve_points(self, segments: int = DEFAULT_SEGMENTS) -> list[tuple[float, float, float]]:
        """Sample the curve as (x, fade_in, fade_out) triples, ends included."""
        if segments < 1:
            raise ValueError("segments must be at least 1")
        points = []
        for i in range(segments + 1):
            x = i / segments
            y = self.eval_y(x)
            points.append((x, y, 1.0 - y))
        return points

    def mouse_down(self, x: float, y: float) -> bool:
        """Start dragging if the press lands on the control-point handle."""
        hx, hy = self.to_screen(self.cx, self.cy)
        if math.hypot(x - hx, y - hy) < HANDLE_RADIUS:
            self.dragging = True
        return self.dragging

    def mouse_drag(self, x: float, y: float) -> None:
        """Move the control point under the pointer while dragging."""
        if not self.dragging:
            return
        self.set_control_point(*self.from_screen(x, y))
        self._notify()

    def mouse_up(self) -> None:
        """Finish any drag in progress."""
        self.dragging = False

    def double_click(self) -> None:
        """Reset the curve to its default shape."""
        self.cx = DEFAULT_CURVE_X
        self.cy = DEFAULT_CURVE_Y
        self._notify()

    def _notify(self) -> None:
        if self.on_curve_changed is not None:
            self.on_curve_changed(self.cx, self.cy)