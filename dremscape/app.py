"""The soundscape: layers mixed together, high-pass filtered and scaled by a master volume."""

from __future__ import annotations

import argparse
import math
import sys
import wave
from pathlib import Path
from typing import Callable, Optional

import numpy as np

from .curve import DEFAULT_CURVE_X, DEFAULT_CURVE_Y
from .filter import FilteredSource
from .layer import SoundLayer, UnsupportedAudioFile
from .preset import DEFAULT_HPF_CUTOFF, LayerSettings, Preset, PresetError, load_preset, save_preset

OUTPUT_CHANNELS = 2
DEFAULT_SAMPLE_RATE = 44100.0
DEFAULT_BLOCK_SIZE = 512
DEFAULT_MASTER_VOLUME = 1.0


class _Mixer:
    """Sums the output of its input sources."""

    def __init__(self) -> None:
        self.inputs: list = []
        self._prepared: Optional[tuple[int, float]] = None

    def add_input(self, source) -> None:
        if self._prepared is not None:
            source.prepare_to_play(*self._prepared)
        self.inputs.append(source)

    def remove_input(self, source) -> None:
        if source in self.inputs:
            self.inputs.remove(source)
            source.release_resources()

    def prepare_to_play(self, samples_per_block: int, sample_rate: float) -> None:
        self._prepared = (samples_per_block, sample_rate)
        for source in self.inputs:
            source.prepare_to_play(samples_per_block, sample_rate)

    def release_resources(self) -> None:
        self._prepared = None
        for source in self.inputs:
            source.release_resources()

    def get_next_block(self, buffer: np.ndarray, start: int, num_samples: int) -> None:
        region = buffer[:, start:start + num_samples]
        region[...] = 0
        scratch = np.zeros_like(region)
        for source in self.inputs:
            source.get_next_block(scratch, 0, num_samples)
            region += scratch


class Soundscape:
    """A set of looping layers played together."""

    def __init__(self, sample_rate: float = DEFAULT_SAMPLE_RATE, block_size: int = DEFAULT_BLOCK_SIZE) -> None:
        if sample_rate <= 0:
            raise ValueError("sample rate must be positive")
        if block_size < 1:
            raise ValueError("block size must be at least 1")
        self.sample_rate = float(sample_rate)
        self.block_size = int(block_size)
        self.layers: list[SoundLayer] = []
        self._mixer = _Mixer()
        self._output = FilteredSource(self._mixer, DEFAULT_HPF_CUTOFF)
        self._output.prepare_to_play(self.block_size, self.sample_rate)
        self._master_volume = DEFAULT_MASTER_VOLUME
        self._hpf_cutoff = DEFAULT_HPF_CUTOFF

    @property
    def master_volume(self) -> float:
        return self._master_volume

    @master_volume.setter
    def master_volume(self, value: float) -> None:
        self._master_volume = float(value)

    @property
    def hpf_cutoff(self) -> float:
        return self._hpf_cutoff

    @hpf_cutoff.setter
    def hpf_cutoff(self, hz: float) -> None:
        self._output.set_cutoff(hz)
        self._hpf_cutoff = float(hz)

    @property
    def can_play(self) -> bool:
        """Whether there is anything to play, save or stop."""
        return bool(self.layers)

    def add_layer(
        self,
        path,
        loop_start: int = 0,
        loop_end: int = -1,
        crossfade_samples: int = 0,
        curve_x: float = DEFAULT_CURVE_X,
        curve_y: float = DEFAULT_CURVE_Y,
        volume: float = 1.0,
    ) -> SoundLayer:
        """Load an audio file as a new layer and add it to the mix."""
        layer = SoundLayer(on_remove=self.remove_layer)
        layer.load_file(path, loop_start, loop_end, crossfade_samples, curve_x, curve_y)
        layer.volume = volume
        self._mixer.add_input(layer.transport)
        self.layers.append(layer)
        return layer

    def remove_layer(self, layer: SoundLayer) -> None:
        """Stop a layer and take it out of the mix; unknown layers are ignored."""
        if layer not in self.layers:
            return
        layer.stop_playback()
        self._mixer.remove_input(layer.transport)
        self.layers.remove(layer)

    def _clear_layers(self) -> None:
        for layer in self.layers:
            layer.stop_playback()
            self._mixer.remove_input(layer.transport)
        self.layers.clear()

    def start_playback(self) -> None:
        for layer in self.layers:
            layer.start_playback()

    def stop_playback(self) -> None:
        for layer in self.layers:
            layer.stop_playback()

    def is_playing(self) -> bool:
        return any(layer.transport.playing for layer in self.layers)

    def toggle_playback(self) -> bool:
        """Start if stopped, stop if playing; returns whether it is now playing."""
        if not self.layers:
            return False
        if self.is_playing():
            self.stop_playback()
        else:
            self.start_playback()
        return self.is_playing()

    def render(self, num_samples: int) -> np.ndarray:
        """Produce the next ``num_samples`` of stereo output, shaped (2, num_samples)."""
        if num_samples < 0:
            raise ValueError("number of samples must not be negative")
        buffer = np.zeros((OUTPUT_CHANNELS, num_samples), dtype=np.float32)
        for start in range(0, num_samples, self.block_size):
            count = min(self.block_size, num_samples - start)
            self._output.get_next_block(buffer, start, count)
        buffer *= self._master_volume
        return buffer

    def to_preset(self) -> Preset:
        """Capture the current layers and master settings."""
        if not self.layers:
            raise ValueError("there are no layers to save")
        settings = []
        for layer in self.layers:
            loop = layer.looping_source
            settings.append(
                LayerSettings(
                    file_path=str(layer.file_path),
                    loop_start=loop.loop_start if loop else 0,
                    loop_end=loop.loop_end if loop else -1,
                    crossfade_samples=loop.crossfade_samples if loop else 0,
                    curve_x=layer.curve_x,
                    curve_y=layer.curve_y,
                    volume=layer.volume,
                )
            )
        return Preset(layers=settings, master_volume=self._master_volume, hpf_cutoff=self._hpf_cutoff)

    def _add_from_settings(self, path, settings: LayerSettings) -> bool:
        try:
            self.add_layer(
                path,
                settings.loop_start,
                settings.loop_end,
                settings.crossfade_samples,
                settings.curve_x,
                settings.curve_y,
                settings.volume,
            )
        except (UnsupportedAudioFile, OSError):
            return False
        return True

    def apply_preset(
        self,
        preset: Preset,
        locate_missing: Optional[Callable[[LayerSettings], Optional[object]]] = None,
    ) -> list[LayerSettings]:
        """Replace the soundscape with a preset's.

        Layers whose file is missing are passed to ``locate_missing``, which
        may return a replacement path. Returns the layers that were not loaded.
        A preset without layers only changes the master settings.
        """
        if preset.master_volume is not None:
            self.master_volume = preset.master_volume
        self.hpf_cutoff = preset.hpf_cutoff

        if not preset.layers:
            return []

        self._clear_layers()
        skipped: list[LayerSettings] = []
        missing: list[LayerSettings] = []
        for settings in preset.layers:
            if Path(settings.file_path).is_file():
                if not self._add_from_settings(settings.file_path, settings):
                    skipped.append(settings)
            else:
                missing.append(settings)

        for settings in missing:
            chosen = locate_missing(settings) if locate_missing is not None else None
            if chosen is None or not Path(chosen).is_file() or not self._add_from_settings(chosen, settings):
                skipped.append(settings)
        return skipped


def _write_wav(path: Path, audio: np.ndarray, sample_rate: int) -> None:
    pcm = (np.clip(audio, -1.0, 1.0) * 32767.0).round().astype("<i2")
    with wave.open(str(path), "wb") as wav:
        wav.setnchannels(audio.shape[0])
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(pcm.T.tobytes())


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dremscape", description="Mix looping sound files into a soundscape.")
    parser.add_argument("files", nargs="*", type=Path, help="audio files to add as layers")
    parser.add_argument("--preset", type=Path, help="preset to load first")
    parser.add_argument("--save-preset", type=Path, help="write the resulting preset here")
    parser.add_argument("-o", "--output", type=Path, help="render the soundscape to this WAV file")
    parser.add_argument("--seconds", type=float, default=10.0, help="length to render")
    parser.add_argument("--sample-rate", type=int, default=int(DEFAULT_SAMPLE_RATE))
    parser.add_argument("--master-volume", type=float)
    parser.add_argument("--hpf", type=float, help="high-pass cutoff in Hz")
    return parser


def main(argv=None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        scape = Soundscape(sample_rate=args.sample_rate)
    except ValueError as exc:
        print(f"dremscape: {exc}", file=sys.stderr)
        return 1

    if args.preset is not None:
        try:
            preset = load_preset(args.preset)
        except (PresetError, OSError) as exc:
            print(f"dremscape: cannot load preset: {exc}", file=sys.stderr)
            return 1
        for settings in scape.apply_preset(preset):
            print(f"dremscape: skipped missing layer {settings.file_path}", file=sys.stderr)

    for path in args.files:
        if not path.is_file():
            print(f"dremscape: no such file {path}", file=sys.stderr)
            continue
        try:
            scape.add_layer(path)
        except (UnsupportedAudioFile, OSError) as exc:
            print(f"dremscape: {exc}", file=sys.stderr)

    try:
        if args.master_volume is not None:
            scape.master_volume = args.master_volume
        if args.hpf is not None:
            scape.hpf_cutoff = args.hpf
    except ValueError as exc:
        print(f"dremscape: {exc}", file=sys.stderr)
        return 1

    if args.save_preset is not None:
        if not scape.can_play:
            print("dremscape: no layers to save", file=sys.stderr)
            return 1
        save_preset(scape.to_preset(), args.save_preset)

    if args.output is not None:
        if not scape.can_play:
            print("dremscape: nothing to play", file=sys.stderr)
            return 1
        scape.start_playback()
        audio = scape.render(max(0, math.ceil(args.seconds * args.sample_rate)))
        _write_wav(args.output, audio, args.sample_rate)
    return 0


if __name__ == "__main__":
    sys.exit(main())