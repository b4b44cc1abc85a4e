"""Echelon core: market simulation engine and advisory gateway."""

__version__ = "0.3.0"
