[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "busdecode"
version = "0.1.0"
description = "Execution profilers, symbol tables and Tube protocol decoding for 6502-family bus trace analysis"
requires-python = ">=3.10"
dependencies = []
keywords = ["6502", "profiler", "bus trace", "tube", "symbols", "avl tree", "decoder"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Debuggers",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["busdecode"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
