"""Model of the waveform view: loop handles, crossfade zones and playheads."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

HANDLE_HIT_RADIUS = 8.0
MIN_LOOP_SAMPLES = 256
MIN_PLAYHEAD_ALPHA = 0.15
DEFAULT_WIDTH = 600.0


class DragTarget(enum.Enum):
    """Which loop handle, if any, is being dragged."""

    NONE = "none"
    START = "start"
    END = "end"


class Cursor(enum.Enum):
    """Mouse cursor shown over the view."""

    NORMAL = "normal"
    RESIZE = "left-right-resize"


@dataclass(frozen=True)
class LoopOverlay:
    """Screen positions of the loop region and its crossfade zones."""

    start_x: float
    end_x: float
    head_end_x: Optional[float] = None
    tail_start_x: Optional[float] = None


@dataclass(frozen=True)
class Playhead:
    """A playhead line at screen position ``x`` drawn with opacity ``alpha``."""

    x: float
    alpha: float


def _jlimit(low, high, value):
    if value < low:
        return low
    if high < value:
        return high
    return value


def wrap_loop_position(position: int, loop_start: int, loop_end: int, crossfade: int) -> int:
    """Map a linear play position onto the loop range.

    With a crossfade, passes after the first skip the loop head, so the
    effective loop length is the loop length minus the crossfade.
    """
    loop_len = loop_end - loop_start
    if loop_len <= 0:
        raise ValueError("loop end must lie after loop start")
    if crossfade > 0 and position >= loop_end:
        effective = loop_len - crossfade
        if effective <= 0:
            raise ValueError("crossfade must be shorter than the loop")
        return loop_start + crossfade + (position - loop_end) % effective
    if position < loop_start:
        return loop_start
    return loop_start + (position - loop_start) % loop_len


class WaveformView:
    """Maps samples to pixels and handles loop-handle dragging and seeking."""

    def __init__(self, width: float = DEFAULT_WIDTH, transport=None) -> None:
        if width <= 0:
            raise ValueError("width must be positive")
        self.width = float(width)
        self.transport = transport
        self.looping_source = None
        self.sample_rate = 0.0
        self.total_seconds = 0.0
        self.dragging = DragTarget.NONE
        self.cursor = Cursor.NORMAL

    @property
    def loaded(self) -> bool:
        return self.total_seconds > 0.0

    def _ready(self) -> bool:
        return self.total_seconds > 0.0 and self.sample_rate > 0.0

    def sample_to_x(self, sample: int) -> float:
        """Horizontal pixel position of ``sample``."""
        if not self._ready():
            return 0.0
        total = self.total_seconds * self.sample_rate
        return float(sample) / total * self.width

    def x_to_sample(self, x: float) -> int:
        """Sample index under pixel position ``x``."""
        if not self._ready():
            return 0
        total = self.total_seconds * self.sample_rate
        return int(float(x) / self.width * total)

    def loop_overlay(self) -> Optional[LoopOverlay]:
        """Positions of the loop lines and crossfade zones, or None if nothing is shown."""
        src = self.looping_source
        if src is None or not self._ready():
            return None
        start_x = self.sample_to_x(src.loop_start)
        end_x = self.sample_to_x(src.loop_end)
        xfade = src.crossfade_samples
        if xfade <= 0:
            return LoopOverlay(start_x, end_x)
        return LoopOverlay(
            start_x,
            end_x,
            head_end_x=self.sample_to_x(src.loop_start + xfade),
            tail_start_x=self.sample_to_x(src.loop_end - xfade),
        )

    def playheads(self) -> list[Playhead]:
        """Playhead lines for the transport's position wrapped into the loop.

        Inside the crossfade zone there are two: the tail fading out and the
        head fading in.
        """
        transport, src = self.transport, self.looping_source
        if transport is None or src is None or not self._ready():
            return []
        if not (transport.playing or transport.current_position > 0.0):
            return []
        l_start, l_end = src.loop_start, src.loop_end
        if l_end - l_start <= 0:
            return []
        position = int(transport.current_position * self.sample_rate)
        xfade = src.crossfade_samples
        wrapped = wrap_loop_position(position, l_start, l_end, xfade)
        xfade_start = l_end - xfade
        if xfade > 0 and wrapped >= xfade_start:
            progress = (wrapped - xfade_start) / xfade
            return [
                Playhead(self.sample_to_x(wrapped), max(MIN_PLAYHEAD_ALPHA, 1.0 - progress)),
                Playhead(
                    self.sample_to_x(l_start + (wrapped - xfade_start)),
                    max(MIN_PLAYHEAD_ALPHA, progress),
                ),
            ]
        return [Playhead(self.sample_to_x(wrapped), 1.0)]

    def _hit(self, x: float) -> DragTarget:
        src = self.looping_source
        if abs(x - self.sample_to_x(src.loop_start)) <= HANDLE_HIT_RADIUS:
            return DragTarget.START
        if abs(x - self.sample_to_x(src.loop_end)) <= HANDLE_HIT_RADIUS:
            return DragTarget.END
        return DragTarget.NONE

    def mouse_down(self, x: float) -> DragTarget:
        """Grab a loop handle, or seek the transport to the clicked sample."""
        src = self.looping_source
        if src is None or self.sample_rate <= 0.0:
            return self.dragging
        self.dragging = self._hit(float(x))
        if self.dragging is DragTarget.NONE:
            if self.transport is not None:
                sample = _jlimit(src.loop_start, src.loop_end, self.x_to_sample(x))
                self.transport.set_position(sample / self.sample_rate)
        else:
            self.cursor = Cursor.RESIZE
        return self.dragging

    def mouse_drag(self, x: float) -> None:
        """Move the grabbed loop handle, keeping a minimum loop length."""
        src = self.looping_source
        if self.dragging is DragTarget.NONE or src is None or self.sample_rate <= 0.0:
            return
        total_samples = int(self.total_seconds * self.sample_rate)
        sample = self.x_to_sample(_jlimit(0.0, self.width, float(x)))
        loop_start, loop_end = src.loop_start, src.loop_end
        min_loop = max(MIN_LOOP_SAMPLES, src.crossfade_samples * 2)
        if self.dragging is DragTarget.START:
            sample = _jlimit(0, loop_end - min_loop, sample)
            src.set_loop_range(sample, loop_end)
        else:
            sample = _jlimit(loop_start + min_loop, total_samples, sample)
            src.set_loop_range(loop_start, sample)

    def mouse_up(self) -> None:
        """Release any grabbed handle."""
        self.dragging = DragTarget.NONE
        self.cursor = Cursor.NORMAL

    def cursor_at(self, x: float) -> Cursor:
        """Cursor to show with the pointer at ``x``."""
        if self.looping_source is None or self.sample_rate <= 0.0:
            self.cursor = Cursor.NORMAL
        elif self._hit(float(x)) is DragTarget.NONE:
            self.cursor = Cursor.NORMAL
        else:
            self.cursor = Cursor.RESIZE
        return self.cursor