"""
Runtime Clock for Conductor.

Logical clock that advances independently of audio position and fires
one-shot scheduled callbacks.

Features:
- Externally driven: tick() is called by the owner at its own cadence
- Pause/resume without crediting the paused interval
- Time scaling (dilation) within [MIN_TIME_SCALE, MAX_TIME_SCALE]
- A failing callback is logged and never breaks the clock
"""

import itertools
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

MIN_TIME_SCALE: float = 0.1
MAX_TIME_SCALE: float = 2.0


@dataclass
class ScheduledEvent:
    """
    A one-shot callback bound to an internal time.

    Attributes:
        id: Event ID returned by schedule_event
        fire_at_time: Internal time (seconds) at which the event fires
        callback: Zero-argument callable
        fired: True once the callback has been invoked
    """
    id: str
    fire_at_time: float
    callback: Callable[[], None]
    fired: bool = False


@dataclass(frozen=True)
class ClockState:
    """Snapshot of the runtime clock for state reporting."""
    internal_time: float
    elapsed_time: float
    time_scale: float
    paused: bool
    scheduled_events: int


class RuntimeClock:
    """
    Internal runtime clock, separate from audio playback time.

    Internal time is measured in seconds. The time source is injected so
    that elapsed deltas are deterministic under test.
    """

    def __init__(self, time_source: Optional[Callable[[], float]] = None):
        """
        Initialize runtime clock.

        Args:
            time_source: Callable returning monotonic seconds (default: time.monotonic)
        """
        self._time_source: Callable[[], float] = time_source or time.monotonic
        self._start_time: float = self._time_source()
        self._last_update: float = self._start_time
        self._internal_time: float = 0.0
        self._time_scale: float = 1.0
        self._paused: bool = False
        self._events: Dict[str, ScheduledEvent] = {}
        self._event_ids = itertools.count(1)

    def tick(self) -> None:
        """
        Advance internal time and fire due events.

        No-op while paused. Must not be called concurrently with itself.
        """
        if self._paused:
            return

        now = self._time_source()
        delta_seconds = (now - self._last_update) * self._time_scale
        self._internal_time += delta_seconds
        self._last_update = now

        self._process_events()

    def _process_events(self) -> None:
        current_time = self._internal_time
        due = sorted(
            (event for event in self._events.values() if not event.fired and current_time >= event.fire_at_time),
            key=lambda event: event.fire_at_time,
        )
        for event in due:
            # An earlier callback may have cancelled this one
            if event.id not in self._events:
                continue
            event.fired = True
            del self._events[event.id]
            try:
                event.callback()
            except Exception as e:
                logger.error(f"[CLOCK] Error in scheduled event {event.id}: {e}", exc_info=True)

    def get_internal_time(self) -> float:
        """Internal runtime time in seconds."""
        return self._internal_time

    def get_elapsed_time(self) -> float:
        """Real elapsed time in seconds since start (or last reset)."""
        return self._time_source() - self._start_time

    def is_paused(self) -> bool:
        return self._paused

    def pause(self) -> None:
        """Stop crediting time until resume()."""
        if not self._paused:
            self._paused = True
            logger.debug(f"[CLOCK] Paused at {self._internal_time:.3f}s")

    def resume(self) -> None:
        """Resume crediting time; the paused interval contributes nothing."""
        if self._paused:
            self._paused = False
            self._last_update = self._time_source()
            logger.debug(f"[CLOCK] Resumed at {self._internal_time:.3f}s")

    def get_time_scale(self) -> float:
        return self._time_scale

    def set_time_scale(self, scale: float) -> None:
        """
        Set the time dilation factor.

        Args:
            scale: Time scale (1.0 = real time), clamped to [0.1, 2.0]
        """
        self._time_scale = max(MIN_TIME_SCALE, min(scale, MAX_TIME_SCALE))

    def schedule_event(self, fire_at_time: float, callback: Callable[[], None]) -> str:
        """
        Schedule a callback at an internal time.

        The callback fires once, on the first tick where internal time has
        reached ``fire_at_time``.

        Args:
            fire_at_time: Internal time in seconds
            callback: Zero-argument callable

        Returns:
            Event ID
        """
        event_id = f"evt_{next(self._event_ids)}"
        self._events[event_id] = ScheduledEvent(id=event_id, fire_at_time=fire_at_time, callback=callback)
        logger.debug(f"[CLOCK] Scheduled {event_id} at {fire_at_time:.3f}s")
        return event_id

    def cancel_event(self, event_id: str) -> None:
        """Cancel a pending event. Unknown or already-fired ids are ignored."""
        if self._events.pop(event_id, None) is not None:
            logger.debug(f"[CLOCK] Cancelled {event_id}")

    def reset(self) -> None:
        """Reset to time zero, running, with no pending events."""
        now = self._time_source()
        self._start_time = now
        self._last_update = now
        self._internal_time = 0.0
        self._paused = False
        self._events.clear()

    def get_state(self) -> ClockState:
        """
        Get clock state.

        Returns:
            ClockState snapshot
        """
        return ClockState(
            internal_time=self._internal_time,
            elapsed_time=self.get_elapsed_time(),
            time_scale=self._time_scale,
            paused=self._paused,
            scheduled_events=len(self._events),
        )
