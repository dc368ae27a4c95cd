"""Playback state enumeration."""

from enum import Enum


class PlaybackState(Enum):
    """Transport-facing playback states reported by the orchestrator."""
    PLAYING = "PLAYING"
    PAUSED = "PAUSED"
    STOPPED = "STOPPED"
    LOADING = "LOADING"
