[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "simpleterm"
version = "0.8.4"
description = "A small VT-style terminal emulation core: screen model, escape sequence handling, selection and pty plumbing"
requires-python = ">=3.10"
dependencies = [
    "wcwidth",
]
keywords = ["terminal", "emulator", "vt100", "xterm", "pty", "escape-sequences"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Terminals :: Terminal Emulators/X Terminals",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["simpleterm"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"
