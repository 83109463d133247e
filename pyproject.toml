[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fmpartition"
version = "0.1.0"
description = "Two-way netlist partitioning with Fiduccia-Mattheyses refinement and an optional genetic-algorithm seed"
requires-python = ">=3.10"
dependencies = []
keywords = ["partitioning", "fiduccia-mattheyses", "hypergraph", "netlist", "vlsi", "genetic-algorithm"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Electronic Design Automation (EDA)",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
fmpartition = "fmpartition.runner:main"

[tool.hatch.build.targets.wheel]
packages = ["fmpartition"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
