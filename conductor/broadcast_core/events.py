"""
Player notification channel.

Typed publish/subscribe channel owned by the PlayerEngine. Subscribers
register per event kind; a failing subscriber is logged and never affects
playback or other subscribers.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class PlayerEvent(Enum):
    """Kinds of notification published by the PlayerEngine."""
    STATE_CHANGE = "statechange"    # payload: PlaybackState
    TRACK_CHANGE = "trackchange"    # payload: Track
    TRACK_ENDED = "trackended"      # payload: Optional[Track]
    TIME_UPDATE = "timeupdate"      # payload: TimeUpdate
    VOLUME_CHANGE = "volumechange"  # payload: float
    ERROR = "error"                 # payload: Exception


Subscriber = Callable[[Any], None]


class EventBus:
    """Subscriber lists keyed by PlayerEvent."""

    def __init__(self):
        self._subscribers: Dict[PlayerEvent, List[Subscriber]] = {kind: [] for kind in PlayerEvent}

    def subscribe(self, kind: PlayerEvent, callback: Subscriber) -> None:
        """
        Register a subscriber for one event kind.

        Registering the same callback twice for a kind has no effect.

        Args:
            kind: Event kind
            callback: Function taking the event payload
        """
        subscribers = self._subscribers[kind]
        if callback not in subscribers:
            subscribers.append(callback)

    def unsubscribe(self, kind: PlayerEvent, callback: Subscriber) -> None:
        subscribers = self._subscribers[kind]
        if callback in subscribers:
            subscribers.remove(callback)

    def subscriber_count(self, kind: PlayerEvent) -> int:
        return len(self._subscribers[kind])

    def publish(self, kind: PlayerEvent, payload: Any = None) -> None:
        """
        Deliver a payload to every subscriber of ``kind``.

        Args:
            kind: Event kind
            payload: Event data
        """
        # Snapshot so subscribers may unsubscribe while being notified
        for callback in list(self._subscribers[kind]):
            try:
                callback(payload)
            except Exception as e:
                logger.error(f"[PLAYER] Subscriber error on {kind.value}: {e}", exc_info=True)
