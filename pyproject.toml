[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "atracio"
version = "0.1.0"
description = "Audio I/O and signal-processing building blocks for ATRAC-style codecs: PCM engine, QMF, transient detection, gain control, WAV/AU PCM access and RealMedia output"
requires-python = ">=3.10"
keywords = ["atrac", "audio", "qmf", "realmedia", "pcm", "wav", "au", "codec"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Sound/Audio :: Conversion",
    "Topic :: Multimedia :: Sound/Audio :: Analysis",
]
dependencies = [
    "numpy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["atracio"]

[tool.pytest.ini_options]
addopts = "-ra"
