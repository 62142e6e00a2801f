[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "shardnet"
version = "0.1.0"
description = "Erasure-coded file replication across peer nodes, with an asyncio network simulator"
requires-python = ">=3.10"
dependencies = []
keywords = ["erasure-coding", "reed-solomon", "replication", "simulation", "asyncio", "distributed"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Framework :: AsyncIO",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
shardnet-sim = "shardnet.sim.simulation:main"

[tool.hatch.build.targets.wheel]
packages = ["shardnet"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
