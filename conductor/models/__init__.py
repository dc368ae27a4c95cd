"""
Models module for Conductor.

Plain data holders (tracks, playlists, playback states) shared by the
queue, the orchestrator and the transports.
"""

from conductor.models.playback_state import PlaybackState
from conductor.models.track import Playlist, Track

__all__ = ["PlaybackState", "Playlist", "Track"]
