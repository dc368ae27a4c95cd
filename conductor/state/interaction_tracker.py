"""
Interaction tracking for Conductor.

Records discrete listener behavior (volume changes, pauses, skips, track
completions) and derives the rolling metrics that drive track selection:

- Volume change frequency (per minute)
- Pause frequency (per hour)
- Skip rate (per 10 track outcomes)
- Average listen duration (completion percentage)
- Interaction density (composite activity score)

Energy and flow are derived from those metrics on demand and packaged,
together with the time of day, into a ListeningContext.

Metrics are recomputed from the full history on every recorded event.
History is not capped, so recomputation cost grows with session length.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Literal, Optional

from conductor.state.context import ListeningContext, MetricsSnapshot

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_THRESHOLD_MINUTES: float = 5.0
MAX_INACTIVITY_MINUTES: float = 30.0

# Normalizers for the density components and the energy penalties
VOLUME_ACTIVITY_SCALE: float = 2.0
PAUSE_ACTIVITY_SCALE: float = 3.0
MAX_SKIP_PENALTY: float = 0.3
MAX_PAUSE_PENALTY: float = 0.3

# Flow blend
FLOW_LISTEN_WEIGHT: float = 0.4
FLOW_CALM_WEIGHT: float = 0.3
FLOW_LOW_SKIP_WEIGHT: float = 0.3


@dataclass(frozen=True)
class VolumeChangeEvent:
    timestamp: datetime
    magnitude: float
    direction: Literal["up", "down"]


@dataclass(frozen=True)
class PauseEvent:
    timestamp: datetime
    track_progress: float
    hour: int


@dataclass(frozen=True)
class SkipEvent:
    timestamp: datetime
    track_progress: float
    track_id: str
    hour: int


@dataclass(frozen=True)
class CompletionEvent:
    timestamp: datetime
    percentage: float
    listened_seconds: float


@dataclass
class InteractionLog:
    """Append-only interaction history for one listening session."""
    volume_changes: List[VolumeChangeEvent] = field(default_factory=list)
    pauses: List[PauseEvent] = field(default_factory=list)
    skips: List[SkipEvent] = field(default_factory=list)
    completions: List[CompletionEvent] = field(default_factory=list)
    last_interaction_time: Optional[datetime] = None

    def copy(self) -> "InteractionLog":
        return InteractionLog(
            volume_changes=list(self.volume_changes),
            pauses=list(self.pauses),
            skips=list(self.skips),
            completions=list(self.completions),
            last_interaction_time=self.last_interaction_time,
        )


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


class InteractionTracker:
    """
    Monitors listener interactions and derives engagement metrics.

    The wall clock is injected so that metrics and contexts are
    reproducible under test. It must return naive or aware datetimes
    consistently.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize interaction tracker.

        Args:
            clock: Callable returning the current datetime (default: datetime.now)
        """
        self._clock: Callable[[], datetime] = clock or datetime.now
        self._log = InteractionLog()
        self._metrics = MetricsSnapshot()
        self._start_time: datetime = self._clock()

        # Open listening session (start_track / complete_track bracket)
        self._current_track_start: Optional[datetime] = None
        self._current_track_duration: float = 0.0

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record_volume_change(self, old_volume: float, new_volume: float) -> None:
        """
        Record a volume change interaction.

        Args:
            old_volume: Previous volume level (0-1)
            new_volume: New volume level (0-1)
        """
        now = self._clock()
        event = VolumeChangeEvent(
            timestamp=now,
            magnitude=abs(new_volume - old_volume),
            direction="up" if new_volume > old_volume else "down",
        )
        self._log.volume_changes.append(event)
        self._log.last_interaction_time = now
        logger.debug(f"[TRACKER] Volume {event.direction} by {event.magnitude:.2f}")
        self._update_metrics()

    def record_pause(self, track_progress: float) -> None:
        """
        Record a pause interaction.

        Args:
            track_progress: How far into the track the pause happened (0-1)
        """
        now = self._clock()
        self._log.pauses.append(PauseEvent(timestamp=now, track_progress=track_progress, hour=now.hour))
        self._log.last_interaction_time = now
        logger.debug(f"[TRACKER] Pause at {track_progress:.0%}")
        self._update_metrics()

    def record_skip(self, track_progress: float, track_id: str) -> None:
        """
        Record a skip interaction.

        Args:
            track_progress: How far into the track the skip happened (0-1)
            track_id: ID of the skipped track
        """
        now = self._clock()
        self._log.skips.append(
            SkipEvent(timestamp=now, track_progress=track_progress, track_id=track_id, hour=now.hour)
        )
        self._log.last_interaction_time = now
        logger.debug(f"[TRACKER] Skip of {track_id} at {track_progress:.0%}")
        self._update_metrics()

    def start_track(self, duration: float) -> None:
        """
        Open a listening session for a track.

        Args:
            duration: Track duration in seconds
        """
        self._current_track_start = self._clock()
        self._current_track_duration = duration

    def complete_track(self, actual_listen_time: float) -> None:
        """
        Close the listening session and record how much was heard.

        Nothing is recorded unless a session was opened with a positive
        duration. The session is closed either way.

        Args:
            actual_listen_time: Seconds actually listened
        """
        if self._current_track_start is not None and self._current_track_duration > 0:
            percentage = min(actual_listen_time / self._current_track_duration, 1.0)
            self._log.completions.append(
                CompletionEvent(
                    timestamp=self._clock(),
                    percentage=percentage,
                    listened_seconds=actual_listen_time,
                )
            )
            logger.debug(f"[TRACKER] Completion at {percentage:.0%} ({actual_listen_time:.1f}s)")
            self._update_metrics()
        self._current_track_start = None

    # ------------------------------------------------------------------
    # Metrics
    # ------------------------------------------------------------------

    def _update_metrics(self) -> None:
        """Recompute every metric from the full interaction history."""
        now = self._clock()
        log = self._log
        runtime_minutes = (now - self._start_time).total_seconds() / 60
        runtime_hours = runtime_minutes / 60

        volume_change_frequency = len(log.volume_changes) / runtime_minutes if runtime_minutes > 0 else 0.0
        pause_frequency = len(log.pauses) / runtime_hours if runtime_hours > 0 else 0.0

        total_outcomes = len(log.completions) + len(log.skips)
        skip_rate = (len(log.skips) / total_outcomes) * 10 if total_outcomes > 0 else 0.0

        # Sticky: keep the previous average until the first completion
        average_listen_duration = self._metrics.average_listen_duration
        if log.completions:
            average_listen_duration = sum(c.percentage for c in log.completions) / len(log.completions)

        if log.last_interaction_time is not None:
            minutes_since = (now - log.last_interaction_time).total_seconds() / 60
            if minutes_since < RECENT_ACTIVITY_THRESHOLD_MINUTES:
                recent_activity = 1.0
            else:
                recent_activity = max(0.0, 1 - minutes_since / MAX_INACTIVITY_MINUTES)
        else:
            recent_activity = 0.0

        volume_activity = min(volume_change_frequency / VOLUME_ACTIVITY_SCALE, 1.0)
        pause_activity = min(pause_frequency / PAUSE_ACTIVITY_SCALE, 1.0)

        self._metrics = MetricsSnapshot(
            volume_change_frequency=volume_change_frequency,
            pause_frequency=pause_frequency,
            skip_rate=skip_rate,
            average_listen_duration=average_listen_duration,
            interaction_density=(recent_activity + volume_activity + pause_activity) / 3,
        )

    def get_metrics(self) -> MetricsSnapshot:
        """
        Get the current metrics.

        Returns:
            Immutable snapshot of the last recomputation
        """
        return self._metrics

    def get_interactions(self) -> InteractionLog:
        """Return a copy of the interaction history."""
        return self._log.copy()

    def get_energy_level(self) -> float:
        """
        Get engagement energy (0-1).

        High interaction density raises energy; skips and pauses pull it
        down, each by at most 0.3.
        """
        metrics = self._metrics
        skip_penalty = min(metrics.skip_rate / 10, MAX_SKIP_PENALTY)
        pause_penalty = min(metrics.pause_frequency / 10, MAX_PAUSE_PENALTY)
        return _clamp01(metrics.interaction_density - skip_penalty - pause_penalty)

    def get_flow_state(self) -> float:
        """
        Get flow state (0-1).

        High flow means long, uninterrupted listening with few skips.
        """
        metrics = self._metrics
        listen_completion = metrics.average_listen_duration
        low_interaction = 1 - min(metrics.interaction_density, 1.0)
        low_skips = 1 - min(metrics.skip_rate / 10, 1.0)
        return _clamp01(
            listen_completion * FLOW_LISTEN_WEIGHT
            + low_interaction * FLOW_CALM_WEIGHT
            + low_skips * FLOW_LOW_SKIP_WEIGHT
        )

    def get_context(self) -> ListeningContext:
        """
        Build the listening context for a selection decision.

        Returns:
            ListeningContext with time of day, energy, flow and metrics
        """
        now = self._clock()
        return ListeningContext(
            hour=now.hour,
            day_of_week=now.isoweekday() % 7,
            energy=self.get_energy_level(),
            flow=self.get_flow_state(),
            metrics=self._metrics,
        )

    def reset(self) -> None:
        """Clear all interaction history and restart the session clock."""
        self._log = InteractionLog()
        self._metrics = MetricsSnapshot()
        self._start_time = self._clock()
        self._current_track_start = None
        self._current_track_duration = 0.0
        logger.info("[TRACKER] Interaction history reset")
