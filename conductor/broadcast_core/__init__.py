"""
Broadcast Core module for Conductor.

This package contains the queue state machine, the player orchestrator
and its notification channel.
"""

from conductor.broadcast_core.events import EventBus, PlayerEvent
from conductor.broadcast_core.queue_manager import QueueManager
from conductor.broadcast_core.player_engine import (
    NoTrackAvailableError,
    PlaybackError,
    PlayerEngine,
    RuntimeState,
    TimeUpdate,
)

__all__ = [
    "EventBus",
    "PlayerEvent",
    "QueueManager",
    "NoTrackAvailableError",
    "PlaybackError",
    "PlayerEngine",
    "RuntimeState",
    "TimeUpdate",
]
