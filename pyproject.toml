[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "relaybot"
version = "0.1.0"
description = "Building blocks for relaying chat messages: text filters, album grouping, rate limiting, deduplication and text transformation."
requires-python = ">=3.10"
dependencies = [
    "regex",
]
keywords = ["telegram", "chat", "forwarding", "relay", "bot", "filters", "markdown"]
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
    "Topic :: Communications :: Chat",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["relaybot"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
