# src/__init__.py
"""speechwright: multi-stage speechwriting pipeline."""

from speechwright.version import __version__

__all__ = ["__version__"]
