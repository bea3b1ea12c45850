"""Proximal Policy Optimization with a Gaussian actor-critic on NumPy."""

__version__ = "0.1.0"