# dremscape

Build ambient soundscapes out of several looping audio layers. Each layer
plays one WAV file over a loop range. Where the loop wraps around, the seam
can be smoothed with a crossfade. A quadratic Bézier control point sets the
shape of that crossfade. All layers are summed into one mix. A master
high-pass filter and then a master volume act on that mix. The whole setup
can be saved to a JSON preset and loaded again, and the result can be
rendered to a WAV file.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Command line

```
dremscape [files ...] [--preset PRESET] [--save-preset PATH]
          [-o OUTPUT] [--seconds SECONDS] [--sample-rate RATE]
          [--master-volume VOLUME] [--hpf HZ]
```

The steps run in this order:

1. `--preset` loads a preset. Layers whose files are missing are skipped,
   and each one is reported on stderr.
2. Each file given on the command line is added as a layer that loops over
   the whole file.
3. `--master-volume` and `--hpf` override the master volume and the
   high-pass cutoff in Hz.
4. `--save-preset` writes the resulting preset.
5. `-o/--output` starts playback and renders `--seconds` seconds, 10 by
   default, to a 16-bit stereo WAV file at `--sample-rate`, which defaults
   to 44100.

The command exits with status 1 in three cases: the preset cannot be read,
a setting is invalid, or there are no layers to save or render.
`dremscape.app.main` is the function behind the command.

## Library use

```python
from dremscape.app import Soundscape
from dremscape.preset import load_preset, save_preset

scape = Soundscape()                      # 44100 Hz, 512-sample blocks
layer = scape.add_layer("rain.wav", 0, -1, 4410, 0.25, 0.75, 0.8)
scape.start_playback()
block = scape.render(1024)                # numpy float32 array, shape (2, 1024)

save_preset(scape.to_preset(), "evening.json")
skipped = scape.apply_preset(load_preset("evening.json"), None)
```

`Soundscape` also provides the following:

- `remove_layer` takes a layer out of the mix.
- `stop_playback` stops all layers.
- `toggle_playback` starts the layers if they are stopped and stops them if
  they are playing.
- `is_playing` reports whether any layer is playing.
- `master_volume` and `hpf_cutoff` are the master settings.

### Building blocks

- `dremscape.looping.LoopingSource` plays a source over a loop range.
  Three setters configure it:
  - `set_loop_range` sets the range `[start, end)`.
  - `set_crossfade_samples` sets the crossfade length, capped at half the
    loop.
  - `set_crossfade_curve` sets the control point, clamped to 0.05–0.95.

  The tail of the loop is blended into a cached copy of the loop's head.
  After the first pass the source skips the head region, because that
  region has already been heard during the blend.
- `dremscape.looping.ArraySource` is a positionable source backed by an
  in-memory numpy array. Reads outside the data produce silence.
- `dremscape.curve` holds the crossfade curve maths: `solve_bezier_t`,
  `eval_bezier_y` and `fade_in`. `CurveEditor` is the model of the
  draggable control point:
  - It maps between screen and curve coordinates.
  - It samples the curve with `curve_points`.
  - A double click resets it to (0.25, 0.75).
- `dremscape.filter.HighPassFilter` is a state-variable (TPT) high-pass
  filter. The cutoff must lie below the Nyquist frequency.
  `FilteredSource` wraps any source with this filter. Its cutoff defaults
  to 20 Hz.
- `dremscape.waveform.WaveformView` covers these jobs:
  - mapping samples to pixels and back;
  - computing the loop overlay (`loop_overlay`) and the playhead lines
    (`playheads`);
  - dragging the loop start and end handles, which keeps at least 256
    samples, or twice the crossfade if that is longer, between them;
  - seeking when the view is clicked away from a handle.

  `wrap_loop_position` turns a linear transport position into a position
  inside the loop.
- `dremscape.layer.SoundLayer` ties one file, its looping source and a
  gain-controlled `Transport` together. Its crossfade length can be set
  in whole milliseconds, from 0 to 5000, with `set_crossfade_ms`.
  `read_audio_file` decodes PCM WAV files with 8-, 16-, 24- or 32-bit
  samples. Any other file raises `UnsupportedAudioFile`.
- `dremscape.preset` reads and writes presets. `parse_preset`,
  `load_preset` and `save_preset` work with `Preset` and `LayerSettings`.
  Text that is not a JSON object raises `PresetError`.

### Preset format

```json
{
  "version": 1,
  "masterVolume": 1.0,
  "hpfCutoff": 20.0,
  "layers": [
    {
      "filePath": "/path/to/rain.wav",
      "loopStart": 0,
      "loopEnd": 441000,
      "crossfadeSamples": 4410,
      "crossfadeCurveX": 0.25,
      "crossfadeCurveY": 0.75,
      "volume": 0.8
    }
  ]
}
```

A preset may leave out any value. The defaults are:

| Missing value | Effect |
| --- | --- |
| `masterVolume` | the current master volume is kept |
| `hpfCutoff` | 20 Hz |
| `loopEnd` | the end of the file |
| curve values | (0.25, 0.75) |
| `volume` | 1.0 |

Layer entries that are not objects are ignored.

`apply_preset` replaces the current layers only when the preset has at
least one layer. A layer whose file no longer exists is passed to the
`locate_missing` callback. The callback can return a replacement path, or
`None` to skip that layer. The method returns the layers that were not
loaded.

## What it does not do

- There is no graphical interface. `CurveEditor` and `WaveformView` hold
  the geometry and the mouse handling of such an interface, but they draw
  nothing.
- There is no live playback to an audio device. Audio is produced with
  `Soundscape.render`, or written to a WAV file by the command.
- Only uncompressed PCM WAV files can be loaded.