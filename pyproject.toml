[build-system]
requires = ["setuptools>=61"]
build-backend = "setuptools.build_meta"

[project]
name = "ballistic"
version = "0.1.0"
description = "Proximal Policy Optimization with a Gaussian actor-critic built on NumPy"
requires-python = ">=3.10"
dependencies = ["numpy"]
keywords = ["reinforcement-learning", "ppo", "actor-critic", "gae", "numpy"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
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

[tool.setuptools.packages.find]
include = ["ballistic*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
