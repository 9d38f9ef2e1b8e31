[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dremscape"
version = "0.1.0"
description = "Layered looping soundscape engine with curved crossfades, a high-pass master filter and JSON presets"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["audio", "loop", "crossfade", "soundscape", "ambient", "mixer", "wav"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Multimedia :: Sound/Audio :: Editors",
    "Topic :: Multimedia :: Sound/Audio :: Mixers",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
dremscape = "dremscape.app:main"

[tool.hatch.build.targets.wheel]
packages = ["dremscape"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
