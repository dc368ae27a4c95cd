"""
Conductor: probability-driven playback orchestration.

"What plays next" is a weighted draw over a probability field shaped by
listener behavior and time of day, instead of a fixed pointer into a list.
"""

from conductor.broadcast_core import PlayerEngine, QueueManager
from conductor.clock import RuntimeClock
from conductor.models import PlaybackState, Playlist, Track
from conductor.music_logic import ProbabilityEngine, TrackFeedback
from conductor.state import InteractionTracker, ListeningContext, MetricsSnapshot

__version__ = "0.1.0"

__all__ = [
    "InteractionTracker",
    "ListeningContext",
    "MetricsSnapshot",
    "PlaybackState",
    "PlayerEngine",
    "Playlist",
    "ProbabilityEngine",
    "QueueManager",
    "RuntimeClock",
    "Track",
    "TrackFeedback",
]
