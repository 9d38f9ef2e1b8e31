"""Sample-accurate looping with a curved crossfade at the loop seam."""

from __future__ import annotations

import numpy as np

from .curve import DEFAULT_CURVE_X, DEFAULT_CURVE_Y, clamp_control, fade_in

LUT_SIZE = 256
MAX_LENGTH = 2**63 - 1
_HEAD_CHANNELS = 2


class ArraySource:
    """Positionable source that plays samples held in memory.

    Reads outside the data produce silence. Output channels beyond those
    of the data repeat the last data channel.
    """

    looping = False

    def __init__(self, data, sample_rate: float = 44100.0) -> None:
        samples = np.asarray(data, dtype=np.float32)
        if samples.ndim == 1:
            samples = samples[np.newaxis, :]
        if samples.ndim != 2 or samples.shape[0] == 0:
            raise ValueError("data must have shape (samples,) or (channels, samples)")
        self.data = samples
        self.sample_rate = float(sample_rate)
        self.position = 0
        self.prepared = False

    @property
    def num_channels(self) -> int:
        return self.data.shape[0]

    def prepare_to_play(self, samples_per_block: int, sample_rate: float) -> None:
        """Mark the source ready for playback."""
        self.prepared = True

    def release_resources(self) -> None:
        """Mark the source as no longer playing."""
        self.prepared = False

    def get_next_block(self, buffer: np.ndarray, start: int, num_samples: int) -> None:
        """Copy the next samples into ``buffer[:, start:start + num_samples]``."""
        region = buffer[:, start:start + num_samples]
        region[...] = 0
        length = self.data.shape[1]
        begin = max(self.position, 0)
        end = min(self.position + num_samples, length)
        if end > begin:
            offset = begin - self.position
            rows = np.minimum(np.arange(region.shape[0]), self.num_channels - 1)
            region[:, offset:offset + end - begin] = self.data[rows, begin:end]
        self.position += num_samples

    def total_length(self) -> int:
        return self.data.shape[1]


class LoopingSource:
    """Plays a positionable source around a loop range.

    With a crossfade, the tail of the loop is blended into a cached copy of
    its head, and every later pass skips the head because it has already
    been heard during the blend.
    """

    def __init__(self, source) -> None:
        self.source = source
        self.looping = True
        self.position = 0
        self._loop_start = 0
        self._loop_end = 0
        self._crossfade = 0
        self._curve_x = DEFAULT_CURVE_X
        self._curve_y = DEFAULT_CURVE_Y
        self._lut = np.zeros(LUT_SIZE + 1)
        self._cached_curve = (-1.0, -1.0)
        self._head = np.zeros((_HEAD_CHANNELS, 0), dtype=np.float32)
        self._cached_loop_start = -1
        self._cached_xfade = -1

    @property
    def loop_start(self) -> int:
        return self._loop_start

    @property
    def loop_end(self) -> int:
        return self._loop_end

    @property
    def crossfade_samples(self) -> int:
        return self._crossfade

    @property
    def curve_x(self) -> float:
        return self._curve_x

    @property
    def curve_y(self) -> float:
        return self._curve_y

    def set_loop_range(self, start: int, end: int) -> None:
        """Loop over samples [start, end)."""
        if start < 0 or end <= start:
            raise ValueError("loop range must satisfy 0 <= start < end")
        self._loop_start = int(start)
        self._loop_end = int(end)

    def set_crossfade_samples(self, samples: int) -> None:
        """Set the crossfade length; negative values mean no crossfade."""
        self._crossfade = max(0, int(samples))

    def set_crossfade_curve(self, cx: float, cy: float) -> None:
        """Set the crossfade curve's control point, clamped to its range."""
        self._curve_x = clamp_control(cx)
        self._curve_y = clamp_control(cy)

    def prepare_to_play(self, samples_per_block: int, sample_rate: float) -> None:
        self.source.prepare_to_play(samples_per_block, sample_rate)
        self._head = np.zeros((_HEAD_CHANNELS, samples_per_block), dtype=np.float32)
        self._invalidate_head()

    def release_resources(self) -> None:
        self.source.release_resources()
        self._head = np.zeros((_HEAD_CHANNELS, 0), dtype=np.float32)
        self._invalidate_head()

    def total_length(self) -> int:
        return MAX_LENGTH if self.looping else self.source.total_length()

    def _invalidate_head(self) -> None:
        self._cached_loop_start = -1
        self._cached_xfade = -1

    def _rebuild_lut(self, cx: float, cy: float) -> None:
        self._lut = np.array([fade_in(cx, cy, i / LUT_SIZE) for i in range(LUT_SIZE + 1)])
        self._cached_curve = (cx, cy)

    def _read(self, buffer: np.ndarray, start: int, num_samples: int, position: int) -> None:
        self.source.position = position
        self.source.get_next_block(buffer, start, num_samples)

    def _cache_head(self, loop_start: int, xfade: int) -> None:
        if self._head.shape[1] < xfade:
            self._head = np.zeros((_HEAD_CHANNELS, xfade), dtype=np.float32)
        self._head[:, :xfade] = 0
        self._read(self._head, 0, xfade, loop_start)
        self._cached_loop_start = loop_start
        self._cached_xfade = xfade

    def get_next_block(self, buffer: np.ndarray, start: int, num_samples: int) -> None:
        """Fill ``buffer[:, start:start + num_samples]`` with looped audio."""
        pos = self.position
        l_start, l_end = self._loop_start, self._loop_end

        if not self.looping or l_end <= l_start or l_end <= 0:
            self._read(buffer, start, num_samples, pos)
            self.position = self.source.position
            return

        loop_len = l_end - l_start
        xfade = min(self._crossfade, loop_len // 2)
        xfade_start = l_end - xfade

        cx, cy = self._curve_x, self._curve_y
        cached_x, cached_y = self._cached_curve
        if abs(cx - cached_x) > 1e-7 or abs(cy - cached_y) > 1e-7:
            self._rebuild_lut(cx, cy)

        if xfade > 0 and (self._cached_loop_start != l_start or self._cached_xfade != xfade):
            self._cache_head(l_start, xfade)

        if pos < l_start or pos >= l_end:
            if xfade > 0 and pos >= l_end:
                pos = l_start + xfade + (pos - l_end) % (loop_len - xfade)
            elif pos < l_start:
                pos = l_start
            else:
                pos = l_start + (pos - l_start) % loop_len

        remaining = num_samples
        offset = start
        head_rows = np.minimum(np.arange(buffer.shape[0]), self._head.shape[0] - 1)

        while remaining > 0:
            if xfade == 0 or pos < xfade_start:
                boundary = xfade_start if xfade > 0 else l_end
                count = min(remaining, boundary - pos)
                self._read(buffer, offset, count, pos)
                pos += count
                offset += count
                remaining -= count
                if xfade == 0 and pos >= l_end:
                    pos = l_start
            else:
                count = min(remaining, l_end - pos)
                self._read(buffer, offset, count, pos)

                in_xfade = pos - xfade_start
                scaled = np.arange(in_xfade, in_xfade + count) / xfade * LUT_SIZE
                idx = np.minimum(scaled.astype(np.int64), LUT_SIZE - 1)
                frac = scaled - idx
                gain = self._lut[idx] + frac * (self._lut[idx + 1] - self._lut[idx])

                dest = buffer[:, offset:offset + count]
                head = self._head[head_rows, in_xfade:in_xfade + count]
                dest[...] = dest * (1.0 - gain) + head * gain

                pos += count
                offset += count
                remaining -= count
                if pos >= l_end:
                    pos = l_start + xfade

        self.position = pos