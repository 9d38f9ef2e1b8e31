"""Soundscape presets: the settings of every layer plus the master controls, as JSON."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .curve import DEFAULT_CURVE_X, DEFAULT_CURVE_Y

PRESET_VERSION = 1
DEFAULT_HPF_CUTOFF = 20.0
DEFAULT_VOLUME = 1.0


class PresetError(ValueError):
    """The preset text is not a valid preset document."""


def _as_float(value: Any, default: float) -> float:
    if isinstance(value, (bool, int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return default
    return default


def _as_int(value: Any, default: int) -> int:
    if isinstance(value, (bool, int)):
        return int(value)
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(float(value))
        except ValueError:
            return default
    return default


@dataclass
class LayerSettings:
    """Everything needed to recreate one layer."""

    file_path: str
    loop_start: int = 0
    loop_end: int = -1
    crossfade_samples: int = 0
    curve_x: float = DEFAULT_CURVE_X
    curve_y: float = DEFAULT_CURVE_Y
    volume: float = DEFAULT_VOLUME

    def to_dict(self) -> dict[str, Any]:
        return {
            "filePath": self.file_path,
            "loopStart": self.loop_start,
            "loopEnd": self.loop_end,
            "crossfadeSamples": self.crossfade_samples,
            "crossfadeCurveX": float(self.curve_x),
            "crossfadeCurveY": float(self.curve_y),
            "volume": float(self.volume),
        }

    @classmethod
    def from_dict(cls, obj: dict[str, Any]) -> "LayerSettings":
        path = obj.get("filePath", "")
        return cls(
            file_path="" if path is None else str(path),
            loop_start=_as_int(obj.get("loopStart"), 0),
            loop_end=_as_int(obj.get("loopEnd"), -1),
            crossfade_samples=_as_int(obj.get("crossfadeSamples"), 0),
            curve_x=_as_float(obj.get("crossfadeCurveX"), DEFAULT_CURVE_X),
            curve_y=_as_float(obj.get("crossfadeCurveY"), DEFAULT_CURVE_Y),
            volume=_as_float(obj.get("volume"), DEFAULT_VOLUME),
        )


@dataclass
class Preset:
    """A whole soundscape. A master volume of None leaves the current one alone."""

    layers: list[LayerSettings] = field(default_factory=list)
    master_volume: Optional[float] = None
    hpf_cutoff: float = DEFAULT_HPF_CUTOFF
    version: int = PRESET_VERSION

    def to_dict(self) -> dict[str, Any]:
        """The JSON object stored in a preset file."""
        result: dict[str, Any] = {"version": PRESET_VERSION}
        if self.master_volume is not None:
            result["masterVolume"] = float(self.master_volume)
        result["hpfCutoff"] = float(self.hpf_cutoff)
        result["layers"] = [layer.to_dict() for layer in self.layers]
        return result


def parse_preset(text: str) -> Preset:
    """Parse preset JSON; missing values take their defaults, malformed layers are skipped."""
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise PresetError(f"preset is not valid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise PresetError("preset must be a JSON object")

    master = parsed.get("masterVolume") if "masterVolume" in parsed else None
    master_volume = None if master is None else _as_float(master, DEFAULT_VOLUME)
    hpf = _as_float(parsed.get("hpfCutoff"), DEFAULT_HPF_CUTOFF) if "hpfCutoff" in parsed else DEFAULT_HPF_CUTOFF

    raw_layers = parsed.get("layers")
    layers = []
    if isinstance(raw_layers, list):
        layers = [LayerSettings.from_dict(item) for item in raw_layers if isinstance(item, dict)]

    return Preset(
        layers=layers,
        master_volume=master_volume,
        hpf_cutoff=hpf,
        version=_as_int(parsed.get("version"), PRESET_VERSION),
    )


def load_preset(path) -> Preset:
    """Read and parse a preset file."""
    return parse_preset(Path(path).read_text(encoding="utf-8"))


def save_preset(preset: Preset, path) -> None:
    """Write a preset file, replacing any existing one."""
    Path(path).write_text(json.dumps(preset.to_dict(), indent=2) + "\n", encoding="utf-8")