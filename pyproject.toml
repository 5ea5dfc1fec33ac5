[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "noiseinverter"
version = "1.0.0"
description = "Real-time noise cancellation by filtering, inverting and delaying a microphone signal"
requires-python = ">=3.10"
dependencies = [
    "pygame",
]
keywords = ["audio", "noise cancellation", "dsp", "iir filter", "real-time"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Sound/Audio",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
noise-inverter = "noiseinverter.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["noiseinverter"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
