"""
App module for Conductor.

Configuration loading and the command-line session simulator.
"""

from conductor.app.config import PlayerConfig

__all__ = ["PlayerConfig"]
