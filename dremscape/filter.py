"""High-pass filtering of an audio source."""

from __future__ import annotations

import math

import numpy as np

DEFAULT_CUTOFF_HZ = 20.0
DEFAULT_RESONANCE = 1.0 / math.sqrt(2.0)
OUTPUT_CHANNELS = 2


class HighPassFilter:
    """Topology-preserving state-variable high-pass filter, one state per channel."""

    def __init__(self, cutoff: float = DEFAULT_CUTOFF_HZ, resonance: float = DEFAULT_RESONANCE) -> None:
        if resonance <= 0:
            raise ValueError("resonance must be positive")
        if cutoff <= 0:
            raise ValueError("cutoff must be positive")
        self._cutoff = float(cutoff)
        self._resonance = float(resonance)
        self._sample_rate: float | None = None
        self._s1: list[float] = []
        self._s2: list[float] = []
        self._g = self._r2 = self._h = 0.0

    @property
    def sample_rate(self) -> float | None:
        return self._sample_rate

    @property
    def num_channels(self) -> int:
        return len(self._s1)

    @property
    def cutoff(self) -> float:
        return self._cutoff

    @cutoff.setter
    def cutoff(self, hz: float) -> None:
        self._check_cutoff(hz, self._sample_rate)
        self._cutoff = float(hz)
        if self._sample_rate is not None:
            self._update_coefficients()

    @staticmethod
    def _check_cutoff(hz: float, sample_rate: float | None) -> None:
        if hz <= 0:
            raise ValueError("cutoff must be positive")
        if sample_rate is not None and hz >= sample_rate * 0.5:
            raise ValueError("cutoff must lie below the Nyquist frequency")

    def _update_coefficients(self) -> None:
        self._g = math.tan(math.pi * self._cutoff / self._sample_rate)
        self._r2 = 1.0 / self._resonance
        self._h = 1.0 / (1.0 + self._r2 * self._g + self._g * self._g)

    def prepare(self, sample_rate: float, num_channels: int) -> None:
        """Set the sample rate and channel count and clear the state."""
        if sample_rate <= 0:
            raise ValueError("sample rate must be positive")
        if num_channels < 1:
            raise ValueError("at least one channel is required")
        self._check_cutoff(self._cutoff, sample_rate)
        self._sample_rate = float(sample_rate)
        self._s1 = [0.0] * num_channels
        self._s2 = [0.0] * num_channels
        self._update_coefficients()

    def reset(self) -> None:
        """Clear the filter state of every channel."""
        self._s1 = [0.0] * len(self._s1)
        self._s2 = [0.0] * len(self._s2)

    def process(self, block: np.ndarray) -> np.ndarray:
        """Filter a (channels, samples) block in place and return it."""
        if self._sample_rate is None:
            raise RuntimeError("filter used before prepare()")
        if block.ndim != 2:
            raise ValueError("block must have shape (channels, samples)")
        if block.shape[0] > len(self._s1):
            raise ValueError("block has more channels than the filter was prepared for")

        g, r2, h = self._g, self._r2, self._h
        for ch, samples in enumerate(block):
            s1, s2 = self._s1[ch], self._s2[ch]
            out = []
            for x in samples.tolist():
                y_hp = h * (x - s1 * (g + r2) - s2)
                y_bp = y_hp * g + s1
                s1 = y_hp * g + y_bp
                y_lp = y_bp * g + s2
                s2 = y_bp * g + y_lp
                out.append(y_hp)
            samples[:] = out
            self._s1[ch], self._s2[ch] = s1, s2
        return block


class FilteredSource:
    """Audio source that high-pass filters whatever its input produces."""

    def __init__(self, source, cutoff: float = DEFAULT_CUTOFF_HZ) -> None:
        if cutoff <= 0:
            raise ValueError("cutoff must be positive")
        self.source = source
        self.filter = HighPassFilter(cutoff)
        self._cutoff = float(cutoff)
        self.sample_rate = 44100.0

    @property
    def cutoff(self) -> float:
        return self._cutoff

    def prepare_to_play(self, samples_per_block: int, sample_rate: float) -> None:
        """Prepare the input source and the filter for playback."""
        self.sample_rate = float(sample_rate)
        self.source.prepare_to_play(samples_per_block, sample_rate)
        self.filter.prepare(sample_rate, OUTPUT_CHANNELS)
        self.filter.cutoff = self._cutoff

    def release_resources(self) -> None:
        """Release the input source and clear the filter state."""
        self.source.release_resources()
        self.filter.reset()

    def get_next_block(self, buffer: np.ndarray, start: int, num_samples: int) -> None:
        """Fill ``buffer[:, start:start + num_samples]`` with filtered audio."""
        self.source.get_next_block(buffer, start, num_samples)
        self.filter.cutoff = self._cutoff
        self.filter.process(buffer[:, start:start + num_samples])

    def set_cutoff(self, hz: float) -> None:
        """Set the cutoff used from the next block on."""
        if hz <= 0:
            raise ValueError("cutoff must be positive")
        self._cutoff = float(hz)