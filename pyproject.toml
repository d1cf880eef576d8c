[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gwbuddy"
version = "0.7.1"
description = "Evaluates combat events per fight: cast hits, buff applies, breakbar damage and condition transfers."
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["combat", "log", "cast", "breakbar", "buffs", "condition transfer", "fight history"]
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
    "Topic :: Games/Entertainment :: Role-Playing",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["gwbuddy"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
