"""
Queue Manager for Conductor.

Playback-queue state machine over the current playlist:

- current position (-1 = nothing selected)
- repeat and shuffle modes
- probability mode, which hands "what's next" to the ProbabilityEngine

Deterministic navigation walks the play order: raw playlist order, or a
Fisher-Yates permutation of it while shuffle is enabled. ``current_index``
is always a position in that play order.
"""

import logging
import random
from typing import List, Optional

from conductor.models.track import Playlist, Track
from conductor.music_logic.probability_engine import ProbabilityEngine, TrackFeedback
from conductor.state.context import ListeningContext

logger = logging.getLogger(__name__)

NO_SELECTION: int = -1


class QueueManager:
    """
    Orchestrates playlist position and probability-based selection.

    The playlist is owned by the caller; add_track/remove_track/clear
    mutate it in place. If the caller changes the playlist directly, the
    shuffle permutation is regenerated before it is next used.
    """

    def __init__(
        self,
        playlist: Optional[Playlist] = None,
        probability_engine: Optional[ProbabilityEngine] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize the queue manager.

        Args:
            playlist: Initial playlist (default: empty "Default Queue")
            probability_engine: Engine used in probability mode (default: new engine sharing ``rng``)
            rng: Random source for shuffle permutations (default: new unseeded Random)
        """
        self._rng: random.Random = rng or random.Random()
        self._playlist: Playlist = playlist if playlist is not None else Playlist(id="default", name="Default Queue")
        self._probability_engine: ProbabilityEngine = probability_engine or ProbabilityEngine(rng=self._rng)
        self._current_index: int = NO_SELECTION
        self._repeat: bool = False
        self._shuffle: bool = False
        self._probability_mode: bool = False
        self._shuffled_indices: List[int] = []

        if playlist is not None:
            self._probability_engine.initialize_tracks(self._playlist.tracks)

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def repeat(self) -> bool:
        return self._repeat

    @property
    def shuffle(self) -> bool:
        return self._shuffle

    @property
    def probability_mode(self) -> bool:
        return self._probability_mode

    @property
    def shuffled_indices(self) -> List[int]:
        return list(self._shuffled_indices)

    def get_tracks(self) -> List[Track]:
        return list(self._playlist.tracks)

    def get_track_count(self) -> int:
        return self._playlist.get_track_count()

    def get_probability_engine(self) -> ProbabilityEngine:
        return self._probability_engine

    # ------------------------------------------------------------------
    # Collection management
    # ------------------------------------------------------------------

    def set_playlist(self, playlist: Playlist) -> None:
        """
        Replace the track collection.

        Resets the position, regenerates the shuffle permutation and
        registers the new tracks with the probability engine. Weights
        already learned for known ids are kept.

        Args:
            playlist: Playlist to set
        """
        self._playlist = playlist
        self._current_index = NO_SELECTION
        self._update_shuffled_indices()
        self._probability_engine.initialize_tracks(playlist.tracks)
        logger.info(f"[QUEUE] Playlist set: {playlist.name} ({playlist.get_track_count()} tracks)")

    def add_track(self, track: Track) -> None:
        """Append a track to the queue."""
        self._playlist.add_track(track)
        self._update_shuffled_indices()
        self._probability_engine.initialize_tracks([track])

    def remove_track(self, track_id: str) -> bool:
        """
        Remove a track from the queue.

        Returns:
            True if the track was removed
        """
        removed = self._playlist.remove_track(track_id)
        if removed:
            self._update_shuffled_indices()
            if self._current_index >= self._playlist.get_track_count():
                self._current_index = self._playlist.get_track_count() - 1
        return removed

    def clear(self) -> None:
        """Empty the queue. Learned weights are kept."""
        self._playlist.clear()
        self._current_index = NO_SELECTION
        self._shuffled_indices = []
        logger.debug("[QUEUE] Queue cleared")

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _sync_play_order(self) -> None:
        """Regenerate a shuffle permutation that no longer covers the playlist."""
        if self._shuffle and len(self._shuffled_indices) != self._playlist.get_track_count():
            logger.debug("[QUEUE] Playlist changed outside the queue, reshuffling")
            self._update_shuffled_indices()

    def _resolve(self, position: int) -> Optional[Track]:
        """Map a play-order position to a track."""
        if self._shuffle and self._shuffled_indices:
            if not 0 <= position < len(self._shuffled_indices):
                return None
            return self._playlist.get_track_by_index(self._shuffled_indices[position])
        return self._playlist.get_track_by_index(position)

    def _position_of(self, raw_index: int) -> int:
        """Map a raw playlist index to its play-order position."""
        if self._shuffle and self._shuffled_indices:
            return self._shuffled_indices.index(raw_index)
        return raw_index

    def get_current_track(self) -> Optional[Track]:
        """
        Get the current track.

        Returns:
            Current track, or None if nothing is selected
        """
        if self._current_index == NO_SELECTION or self._playlist.get_track_count() == 0:
            return None
        self._sync_play_order()
        return self._resolve(self._current_index)

    def next(self, context: Optional[ListeningContext] = None) -> Optional[Track]:
        """
        Move to the next track.

        In probability mode with a context, the next track is drawn from
        the whole collection and shuffle/repeat are bypassed. Otherwise the
        queue advances one position in play order, wrapping only when
        repeat is enabled.

        Args:
            context: Listening context for probability-based selection

        Returns:
            Next track, or None if the end of the queue was reached
        """
        track_count = self._playlist.get_track_count()
        if track_count == 0:
            return None
        self._sync_play_order()

        if self._probability_mode and context is not None:
            tracks = self._playlist.tracks
            selected = self._probability_engine.select_next_track(tracks, context)
            if selected is not None:
                raw_index = next(i for i, track in enumerate(tracks) if track.id == selected.id)
                self._current_index = self._position_of(raw_index)
                logger.debug(f"[QUEUE] Probability pick: {selected.id} (position {self._current_index})")
                return selected

        if self._current_index < track_count - 1:
            self._current_index += 1
        elif self._repeat:
            self._current_index = 0
        else:
            logger.debug("[QUEUE] End of queue reached")
            return None

        return self.get_current_track()

    def previous(self) -> Optional[Track]:
        """
        Move to the previous track (always deterministic).

        Returns:
            Previous track, or None if at the start without repeat
        """
        track_count = self._playlist.get_track_count()
        if track_count == 0:
            return None
        self._sync_play_order()

        if self._current_index > 0:
            self._current_index -= 1
        elif self._repeat:
            self._current_index = track_count - 1
        else:
            return None

        return self.get_current_track()

    def jump_to_track(self, index: int) -> Optional[Track]:
        """
        Jump to a play-order position.

        Returns:
            Track at that position, or None if out of range
        """
        self._sync_play_order()
        if 0 <= index < self._playlist.get_track_count():
            self._current_index = index
            return self.get_current_track()
        return None

    def jump_to_track_by_id(self, track_id: str) -> Optional[Track]:
        """
        Jump to a track by ID.

        Returns:
            The track, or None if the id is not queued
        """
        self._sync_play_order()
        for raw_index, track in enumerate(self._playlist.tracks):
            if track.id == track_id:
                return self.jump_to_track(self._position_of(raw_index))
        return None

    def has_next(self) -> bool:
        """Check whether deterministic advance would yield a track."""
        track_count = self._playlist.get_track_count()
        return track_count > 0 and (self._current_index < track_count - 1 or self._repeat)

    def has_previous(self) -> bool:
        """Check whether deterministic retreat would yield a track."""
        return self._playlist.get_track_count() > 0 and (self._current_index > 0 or self._repeat)

    # ------------------------------------------------------------------
    # Modes
    # ------------------------------------------------------------------

    def set_repeat(self, enabled: bool) -> None:
        self._repeat = enabled

    def set_shuffle(self, enabled: bool) -> None:
        """
        Enable or disable shuffle.

        Enabling draws a fresh permutation; disabling drops it so
        navigation uses raw playlist order.
        """
        self._shuffle = enabled
        self._update_shuffled_indices()
        logger.debug(f"[QUEUE] Shuffle {'enabled' if enabled else 'disabled'}")

    def set_probability_mode(self, enabled: bool) -> None:
        self._probability_mode = enabled
        logger.debug(f"[QUEUE] Probability mode {'enabled' if enabled else 'disabled'}")

    def update_track_feedback(self, track_id: str, feedback: TrackFeedback) -> None:
        """Forward listening feedback to the probability engine."""
        self._probability_engine.update_track_weight(track_id, feedback)

    def _update_shuffled_indices(self) -> None:
        """Regenerate the play-order permutation (Fisher-Yates)."""
        if not self._shuffle:
            self._shuffled_indices = []
            return

        count = self._playlist.get_track_count()
        indices = list(range(count))
        for i in range(count - 1, 0, -1):
            j = self._rng.randrange(i + 1)
            indices[i], indices[j] = indices[j], indices[i]
        self._shuffled_indices = indices
