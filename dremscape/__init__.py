"""Looping WAV layers with curved crossfades, mixed through a master high-pass filter, with JSON presets."""

__version__ = "0.1.0"
__all__ = ["curve", "filter", "looping", "waveform", "layer", "preset", "app"]