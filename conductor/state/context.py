"""
Listening context snapshots.

Defines the immutable values that flow from the InteractionTracker into
track selection: the derived metrics snapshot and the listening context
(time of day plus energy and flow).
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class MetricsSnapshot:
    """
    Derived interaction metrics.

    Attributes:
        volume_change_frequency: Volume changes per minute since tracker start
        pause_frequency: Pauses per hour since tracker start
        skip_rate: Skips per 10 track outcomes (skips + completions)
        average_listen_duration: Mean completion percentage (0-1)
        interaction_density: Composite activity score (0-1)
    """
    volume_change_frequency: float = 0.0
    pause_frequency: float = 0.0
    skip_rate: float = 0.0
    average_listen_duration: float = 0.0
    interaction_density: float = 0.0


@dataclass(frozen=True)
class ListeningContext:
    """
    Snapshot passed into a single selection decision.

    Defaults describe a neutral midday context, so a hand-built
    ``ListeningContext(hour=14)`` applies no energy or flow skew.

    Attributes:
        hour: Hour of day (0-23)
        day_of_week: 0 = Sunday ... 6 = Saturday
        energy: Engagement intensity (0-1)
        flow: Listening continuity (0-1)
        metrics: Metrics the energy and flow values were derived from
    """
    hour: int = 12
    day_of_week: int = 0
    energy: float = 0.5
    flow: float = 0.5
    metrics: MetricsSnapshot = field(default_factory=MetricsSnapshot)
