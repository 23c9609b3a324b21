[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pomdpkit"
version = "0.1.0"
description = "Composable building blocks for POMDPs: particle-filter belief updates and Monte-Carlo tree search planning"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "pomdp",
    "particle filter",
    "sequential monte carlo",
    "bayesian filtering",
    "mcts",
    "pomcp",
    "planning",
    "progressive widening",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
pomdpkit-online = "pomdpkit.examples.continuous:main"
pomdpkit-offline = "pomdpkit.examples.discrete:main"
pomdpkit-simple = "pomdpkit.examples.simple:main"

[tool.hatch.build.targets.wheel]
packages = ["pomdpkit"]

[tool.hatch.build.targets.sdist]
include = ["pomdpkit", "tests", "README.md"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
