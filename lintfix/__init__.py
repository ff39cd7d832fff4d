"""Lint-fix orchestration: normalize lint output and resolve findings with opencode."""

from __future__ import annotations

__version__ = '0.1.0'

__all__ = ['__version__']
