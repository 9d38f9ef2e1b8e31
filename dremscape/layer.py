"""One sound layer: an audio file looped through a transport with its controls."""

from __future__ import annotations

import wave
from pathlib import Path
from typing import Callable, NamedTuple, Optional

import numpy as np

from .curve import DEFAULT_CURVE_X, DEFAULT_CURVE_Y, CurveEditor
from .looping import ArraySource, LoopingSource
from .waveform import WaveformView

CROSSFADE_MAX_MS = 5000.0


class UnsupportedAudioFile(ValueError):
    """The file could not be decoded as audio."""


class AudioFile(NamedTuple):
    samples: np.ndarray
    sample_rate: float


def read_audio_file(path) -> AudioFile:
    """Decode a PCM WAV file into (channels, samples) floats in [-1, 1)."""
    path = Path(path)
    try:
        with wave.open(str(path), "rb") as wav:
            channels = wav.getnchannels()
            width = wav.getsampwidth()
            rate = wav.getframerate()
            frames = wav.readframes(wav.getnframes())
    except (wave.Error, EOFError) as exc:
        raise UnsupportedAudioFile(f"cannot read audio from {path}: {exc}") from exc

    frame_bytes = width * channels
    frames = frames[: len(frames) // frame_bytes * frame_bytes]
    if width == 1:
        values = (np.frombuffer(frames, np.uint8).astype(np.float32) - 128.0) / 128.0
    elif width == 2:
        values = np.frombuffer(frames, "<i2").astype(np.float32) / 32768.0
    elif width == 3:
        raw = np.frombuffer(frames, np.uint8).reshape(-1, 3).astype(np.int32)
        ints = raw[:, 0] | (raw[:, 1] << 8) | (raw[:, 2] << 16)
        ints = np.where(ints >= 1 << 23, ints - (1 << 24), ints)
        values = ints.astype(np.float32) / 8388608.0
    elif width == 4:
        values = (np.frombuffer(frames, "<i4").astype(np.float64) / 2147483648.0).astype(np.float32)
    else:
        raise UnsupportedAudioFile(f"unsupported sample width {width} in {path}")
    samples = np.ascontiguousarray(values.reshape(-1, channels).T, dtype=np.float32)
    return AudioFile(samples, float(rate))


class Transport:
    """Starts, stops and positions a source and applies a gain to its output."""

    def __init__(self, source=None, sample_rate: float = 0.0, gain: float = 1.0) -> None:
        self.source = source
        self.sample_rate = float(sample_rate)
        self.gain = float(gain)
        self.playing = False
        self._position = 0

    @property
    def current_position(self) -> float:
        """Play position in seconds, counted linearly since the last seek."""
        if self.sample_rate <= 0.0:
            return 0.0
        return self._position / self.sample_rate

    def start(self) -> None:
        if self.source is not None:
            self.playing = True

    def stop(self) -> None:
        self.playing = False

    def set_position(self, seconds: float) -> None:
        """Seek to ``seconds``; ignored while no sample rate is known."""
        if self.sample_rate <= 0.0:
            return
        self._position = int(seconds * self.sample_rate)
        if self.source is not None:
            self.source.position = self._position

    def prepare_to_play(self, samples_per_block: int, sample_rate: float) -> None:
        if self.source is not None:
            self.source.prepare_to_play(samples_per_block, sample_rate)

    def release_resources(self) -> None:
        if self.source is not None:
            self.source.release_resources()

    def get_next_block(self, buffer: np.ndarray, start: int, num_samples: int) -> None:
        """Fill ``buffer[:, start:start + num_samples]``; silence while stopped."""
        region = buffer[:, start:start + num_samples]
        if not self.playing or self.source is None:
            region[...] = 0
            return
        self.source.get_next_block(buffer, start, num_samples)
        region *= self.gain
        self._position += num_samples


def _snap_crossfade_ms(ms: float) -> float:
    return float(round(min(CROSSFADE_MAX_MS, max(0.0, float(ms)))))


class SoundLayer:
    """A looped audio file with volume, crossfade length and crossfade curve."""

    def __init__(
        self,
        on_remove: Optional[Callable[["SoundLayer"], None]] = None,
        waveform_width: float = 600.0,
    ) -> None:
        self.on_remove = on_remove
        self.transport = Transport()
        self.waveform = WaveformView(waveform_width, transport=self.transport)
        self.curve_editor = CurveEditor(on_curve_changed=self.set_curve)
        self.reader_source: Optional[ArraySource] = None
        self.looping_source: Optional[LoopingSource] = None
        self.file_path: Optional[Path] = None
        self.file_sample_rate = 0.0
        self.crossfade_ms = 0.0

    @property
    def is_loaded(self) -> bool:
        return self.reader_source is not None

    @property
    def crossfade_samples(self) -> int:
        return self.looping_source.crossfade_samples if self.looping_source else 0

    @property
    def curve_x(self) -> float:
        return self.looping_source.curve_x if self.looping_source else self.curve_editor.cx

    @property
    def curve_y(self) -> float:
        return self.looping_source.curve_y if self.looping_source else self.curve_editor.cy

    @property
    def volume(self) -> float:
        return self.transport.gain

    @volume.setter
    def volume(self, value: float) -> None:
        self.transport.gain = float(value)

    def load_file(
        self,
        path,
        loop_start: int = 0,
        loop_end: int = -1,
        crossfade_samples: int = 0,
        curve_x: float = DEFAULT_CURVE_X,
        curve_y: float = DEFAULT_CURVE_Y,
    ) -> None:
        """Load an audio file and loop it; out-of-range loop points are corrected."""
        self.transport.stop()
        self.transport.source = None
        self.looping_source = None
        self.reader_source = None

        audio = read_audio_file(path)
        rate = audio.sample_rate
        total = audio.samples.shape[1]
        if total == 0:
            raise UnsupportedAudioFile(f"{path} holds no samples")
        self.file_sample_rate = rate

        if loop_end < 0 or loop_end > total:
            loop_end = total
        if loop_start < 0 or loop_start >= loop_end:
            loop_start = 0

        reader = ArraySource(audio.samples, rate)
        looping = LoopingSource(reader)
        looping.set_loop_range(loop_start, loop_end)
        looping.looping = True
        looping.set_crossfade_samples(crossfade_samples)
        looping.set_crossfade_curve(curve_x, curve_y)
        self.curve_editor.set_control_point(curve_x, curve_y)

        self.reader_source = reader
        self.looping_source = looping
        self.transport.source = looping
        self.transport.sample_rate = rate
        self.transport.set_position(0.0)

        self.waveform.sample_rate = rate
        self.waveform.looping_source = looping
        self.waveform.total_seconds = total / rate

        if rate > 0.0:
            self.crossfade_ms = _snap_crossfade_ms(crossfade_samples / rate * 1000.0)
        else:
            self.crossfade_ms = 0.0
        self.file_path = Path(path)

    def set_crossfade_ms(self, ms: float) -> None:
        """Set the crossfade length in whole milliseconds, 0 to 5000."""
        self.crossfade_ms = _snap_crossfade_ms(ms)
        if self.looping_source is not None and self.file_sample_rate > 0.0:
            samples = int(self.crossfade_ms * self.file_sample_rate / 1000.0)
            self.looping_source.set_crossfade_samples(samples)

    def set_curve(self, cx: float, cy: float) -> None:
        """Set the crossfade curve's control point."""
        self.curve_editor.set_control_point(cx, cy)
        if self.looping_source is not None:
            self.looping_source.set_crossfade_curve(cx, cy)

    def start_playback(self) -> None:
        if self.reader_source is not None:
            self.transport.start()

    def stop_playback(self) -> None:
        self.transport.stop()

    def request_remove(self) -> None:
        """Ask the owner to remove this layer."""
        if self.on_remove is not None:
            self.on_remove(self)