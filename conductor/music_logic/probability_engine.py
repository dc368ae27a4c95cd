"""
Probability-weighted track selection for Conductor.

Maintains a probability field over the available tracks instead of a
deterministic "next" pointer. Each track carries a learned weight that is
shaped at selection time by:

- Recent selection penalty (last 5 picks, linear decay)
- Listener energy
- Flow state (continuity bonus, or jitter when flow is broken)
- Time of day

Learned weights move only through post-playback feedback
(update_track_weight) and stay within [MIN_WEIGHT, MAX_WEIGHT].
"""

import logging
import random
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, List, Optional, Sequence

import numpy as np

from conductor.models.track import Track
from conductor.state.context import ListeningContext

logger = logging.getLogger(__name__)

BASE_WEIGHT: float = 1.0
MIN_WEIGHT: float = 0.1
MAX_WEIGHT: float = 5.0
MAX_RECENT_TRACKS: int = 5
RECENT_PENALTY_STRENGTH: float = 0.7
ENERGY_SKEW: float = 0.3
HIGH_FLOW_THRESHOLD: float = 0.7
LOW_FLOW_THRESHOLD: float = 0.3
HIGH_FLOW_BONUS: float = 1.2
LOW_FLOW_JITTER_MIN: float = 0.8
LOW_FLOW_JITTER_SPAN: float = 0.4
# Floor applied before normalization so no track is structurally excluded
MIN_SELECTION_WEIGHT: float = 0.01

# Feedback multipliers
WELL_LISTENED_THRESHOLD: float = 0.8
WELL_LISTENED_FACTOR: float = 1.1
SKIP_FACTOR: float = 0.6
PAUSE_FACTOR: float = 0.9
VOLUME_CHANGES_THRESHOLD: int = 3
VOLUME_ENGAGEMENT_FACTOR: float = 1.05


@dataclass(frozen=True)
class TrackFeedback:
    """
    Listening feedback for one play of a track.

    Attributes:
        listen_percentage: Fraction of the track that was heard (0-1)
        skipped: Track was skipped
        paused: Track was paused at least once
        volume_changes: Volume changes made while the track played
    """
    listen_percentage: float = 1.0
    skipped: bool = False
    paused: bool = False
    volume_changes: int = 0


def get_time_weight(hour: int) -> float:
    """
    Time-of-day multiplier.

    Morning (6-11): 1.0, afternoon (12-17): 1.1, evening (18-23): 1.2,
    night (0-5): 0.9.
    """
    if 6 <= hour < 12:
        return 1.0
    if 12 <= hour < 18:
        return 1.1
    if 18 <= hour < 24:
        return 1.2
    return 0.9


class ProbabilityEngine:
    """
    Owns the per-track weight table and the recent-selection history.

    All randomness (flow jitter and the weighted draw) comes from a single
    injected random source.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        """
        Initialize the probability engine.

        Args:
            rng: Random source for jitter and draws (default: new unseeded Random)
        """
        self._rng: random.Random = rng or random.Random()
        self._track_weights: Dict[str, float] = {}
        self._recent_tracks: Deque[str] = deque(maxlen=MAX_RECENT_TRACKS)

    def initialize_tracks(self, tracks: Sequence[Track]) -> None:
        """
        Register default weights for tracks not seen before.

        Existing weights are never changed.

        Args:
            tracks: Available tracks
        """
        added = 0
        for track in tracks:
            if track.id not in self._track_weights:
                self._track_weights[track.id] = BASE_WEIGHT
                added += 1
        if added:
            logger.debug(f"[PROBABILITY] Registered {added} new tracks ({len(self._track_weights)} known)")

    def _recency_factor(self, track_id: str) -> float:
        try:
            position = self._recent_tracks.index(track_id)  # 0 = most recent
        except ValueError:
            return 1.0
        recency = (MAX_RECENT_TRACKS - position) / MAX_RECENT_TRACKS
        return 1 - recency * RECENT_PENALTY_STRENGTH

    def _flow_factor(self, flow: float) -> float:
        if flow > HIGH_FLOW_THRESHOLD:
            return HIGH_FLOW_BONUS
        if flow < LOW_FLOW_THRESHOLD:
            return LOW_FLOW_JITTER_MIN + self._rng.random() * LOW_FLOW_JITTER_SPAN
        return 1.0

    def _calculate_weights(self, tracks: Sequence[Track], context: ListeningContext) -> np.ndarray:
        """
        Calculate normalized selection probabilities, one per list position.

        Args:
            tracks: Candidate tracks (non-empty)
            context: Current listening context

        Returns:
            Array of probabilities aligned with ``tracks``
        """
        energy_factor = 1 + (context.energy - 0.5) * ENERGY_SKEW
        time_factor = get_time_weight(context.hour)

        weights = np.empty(len(tracks), dtype=np.float64)
        for i, track in enumerate(tracks):
            weight = self._track_weights.get(track.id, BASE_WEIGHT)
            weight *= self._recency_factor(track.id)
            weight *= energy_factor
            weight *= self._flow_factor(context.flow)
            weight *= time_factor
            weights[i] = weight

        np.maximum(weights, MIN_SELECTION_WEIGHT, out=weights)
        return weights / weights.sum()

    def calculate_probabilities(
        self, tracks: Sequence[Track], context: Optional[ListeningContext] = None
    ) -> Dict[str, float]:
        """
        Calculate the probability distribution for the next selection.

        Args:
            tracks: Available tracks
            context: Current listening context (default: neutral context)

        Returns:
            Track ID to probability mapping (sums to 1)
        """
        if not tracks:
            return {}
        probabilities = self._calculate_weights(tracks, context or ListeningContext())
        result: Dict[str, float] = {}
        for track, probability in zip(tracks, probabilities):
            result[track.id] = result.get(track.id, 0.0) + float(probability)
        return result

    def select_next_track(
        self, tracks: Sequence[Track], context: Optional[ListeningContext] = None
    ) -> Optional[Track]:
        """
        Draw the next track from the probability field.

        Args:
            tracks: Available tracks
            context: Current listening context (default: neutral context)

        Returns:
            Selected track, or None if no tracks are available
        """
        if not tracks:
            return None

        probabilities = self._calculate_weights(tracks, context or ListeningContext())
        draw = self._rng.random()
        cumulative = np.cumsum(probabilities)
        # First position whose cumulative probability exceeds the draw
        index = int(np.searchsorted(cumulative, draw, side="right"))
        if index >= len(tracks):
            # Floating-point residue left the draw unmatched
            index = len(tracks) - 1

        selected = tracks[index]
        self._record_selection(selected.id)
        logger.debug(
            f"[PROBABILITY] Selected {selected.id} "
            f"(p={probabilities[index]:.3f}, draw={draw:.3f}, candidates={len(tracks)})"
        )
        return selected

    def update_track_weight(self, track_id: str, feedback: Optional[TrackFeedback] = None) -> None:
        """
        Update a track's learned weight from listening feedback.

        Signals compose multiplicatively; the result is clamped to
        [MIN_WEIGHT, MAX_WEIGHT].

        Args:
            track_id: Track ID
            feedback: Listening feedback (default: fully heard, no interactions)
        """
        feedback = feedback or TrackFeedback()
        weight = self._track_weights.get(track_id, BASE_WEIGHT)

        if feedback.listen_percentage > WELL_LISTENED_THRESHOLD:
            weight *= WELL_LISTENED_FACTOR
        if feedback.skipped:
            weight *= SKIP_FACTOR
        if feedback.paused:
            weight *= PAUSE_FACTOR
        if feedback.volume_changes > VOLUME_CHANGES_THRESHOLD:
            weight *= VOLUME_ENGAGEMENT_FACTOR

        weight = max(MIN_WEIGHT, min(weight, MAX_WEIGHT))
        self._track_weights[track_id] = weight
        logger.debug(f"[PROBABILITY] Weight for {track_id} -> {weight:.3f} ({feedback})")

    def _record_selection(self, track_id: str) -> None:
        # deque(maxlen) drops the oldest entry from the right
        self._recent_tracks.appendleft(track_id)

    def get_track_weights(self) -> Dict[str, float]:
        """Return a copy of the learned weight table."""
        return dict(self._track_weights)

    def get_recent_selections(self) -> List[str]:
        """Return recently selected track IDs, most recent first."""
        return list(self._recent_tracks)

    def get_probability_distribution(
        self, tracks: Sequence[Track], context: Optional[ListeningContext] = None
    ) -> Dict[str, float]:
        """Probability distribution as a plain dict (for reporting)."""
        return self.calculate_probabilities(tracks, context)

    def reset(self) -> None:
        """Clear all learned weights and selection history."""
        self._track_weights.clear()
        self._recent_tracks.clear()
        logger.info("[PROBABILITY] Weights and selection history reset")
