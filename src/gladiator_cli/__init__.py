"""Gladiator command-line interface."""

from gladiator_mcp import __version__

__all__ = ["__version__"]
