[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "edenchain"
version = "0.1.0"
description = "In-memory model of a parachain's token economics: mint curve allocations, vesting grants, reserves and mandates"
requires-python = ">=3.10"
dependencies = []
keywords = ["blockchain", "vesting", "inflation", "treasury", "allocations", "simulation"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["edenchain"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
