[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mcraw"
version = "0.5.0"
description = "Decode MotionCam raw frame payloads and write them as DNG files, with WAV audio output and recording-folder helpers"
requires-python = ">=3.10"
dependencies = []
keywords = ["mcraw", "motioncam", "raw", "dng", "bayer", "wav", "video"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: End Users/Desktop",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Video :: Conversion",
    "Topic :: Multimedia :: Graphics :: Graphics Conversion",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["mcraw"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
