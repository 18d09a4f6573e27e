[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "liveshark"
version = "0.1.0"
description = "Analysis building blocks for show-control network captures (Art-Net / sACN): UDP decoding, flow statistics, DMX universes and source conflicts."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "art-net",
    "sacn",
    "e1.31",
    "dmx",
    "udp",
    "show-control",
    "network-analysis",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["liveshark"]

[tool.hatch.build.targets.sdist]
include = ["liveshark", "tests", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
