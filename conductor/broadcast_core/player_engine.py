"""
Player Engine for Conductor.

Orchestrates the transport, the queue, the interaction tracker and the
runtime clock:

- Reacts to transport notifications (ended drives the next selection,
  timeupdate is republished, error stops playback)
- Turns listener actions (skip, pause, volume) into tracker events and
  per-track weight feedback
- Publishes state, track, time and volume changes on a typed EventBus
- Reports audio time and runtime time side by side

Transport failures are never retried: playback stops, an ERROR
notification is published and the exception is re-raised to the caller.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from conductor.broadcast_core.events import EventBus, PlayerEvent
from conductor.broadcast_core.queue_manager import QueueManager
from conductor.clock.runtime_clock import RuntimeClock
from conductor.models.playback_state import PlaybackState
from conductor.models.track import Track
from conductor.music_logic.probability_engine import TrackFeedback
from conductor.outputs.base_transport import AudioTransport, TransportError, TransportEvent
from conductor.state.context import ListeningContext
from conductor.state.interaction_tracker import InteractionTracker

logger = logging.getLogger(__name__)


class PlaybackError(Exception):
    """Base class for orchestrator-level playback failures."""


class NoTrackAvailableError(PlaybackError):
    """Raised when play() is called with nothing selected in the queue."""


@dataclass(frozen=True)
class TimeUpdate:
    current_time: float
    duration: float


@dataclass(frozen=True)
class RuntimeState:
    """Combined playback and runtime snapshot."""
    playback_state: PlaybackState
    current_track: Optional[Track]
    audio_time: float
    runtime_time: float
    energy: float
    flow: float
    context: ListeningContext


class PlayerEngine:
    """
    Runtime orchestrator: plays tracks, learns from the listener, and asks
    the queue what comes next.
    """

    def __init__(
        self,
        transport: AudioTransport,
        queue_manager: Optional[QueueManager] = None,
        tracker: Optional[InteractionTracker] = None,
        clock: Optional[RuntimeClock] = None,
    ):
        """
        Initialize the player engine.

        Args:
            transport: Audio transport to drive
            queue_manager: Queue (default: new empty QueueManager)
            tracker: Interaction tracker (default: new tracker on the system clock)
            clock: Runtime clock (default: new clock on time.monotonic)
        """
        self.transport = transport
        self.queue_manager = queue_manager or QueueManager()
        self.tracker = tracker or InteractionTracker()
        self.clock = clock or RuntimeClock()
        self.events = EventBus()

        self._state = PlaybackState.STOPPED
        self._current_track: Optional[Track] = None
        self._previous_volume: float = transport.get_volume()
        self._track_start_time: float = 0.0
        self._last_error: Optional[BaseException] = None

        # Per-track interaction counters, folded into weight feedback
        self._outcome_pending = False
        self._track_pauses = 0
        self._track_volume_changes = 0

        self.transport.set_listener(self._on_transport_event)

    # ------------------------------------------------------------------
    # State helpers
    # ------------------------------------------------------------------

    def _set_state(self, new_state: PlaybackState) -> None:
        """Set playback state, publishing only actual transitions."""
        if self._state == new_state:
            return
        previous_state = self._state
        self._state = new_state
        logger.debug(f"[PLAYER] State transition: {previous_state.value} → {new_state.value}")
        self.events.publish(PlayerEvent.STATE_CHANGE, new_state)

    def _publish_error(self, error: BaseException) -> None:
        if error is self._last_error:
            return
        self._last_error = error
        logger.error(f"[PLAYER] Playback error: {error}")
        self.events.publish(PlayerEvent.ERROR, error)

    def _track_progress(self) -> float:
        duration = self.transport.get_duration()
        return self.transport.get_current_time() / duration if duration > 0 else 0.0

    def _finish_current_track(self, skipped: bool) -> None:
        """
        Report the outcome of the current track once.

        A skip is recorded as a skip; anything else closes the tracker's
        listening session as a completion. Either way the engine receives
        weight feedback for the track.
        """
        track = self._current_track
        if track is None or not self._outcome_pending:
            return
        self._outcome_pending = False

        listened = self.transport.get_current_time()
        duration = self.transport.get_duration() or track.duration
        listen_percentage = min(listened / duration, 1.0) if duration > 0 else 0.0

        if skipped:
            self.tracker.record_skip(listen_percentage, track.id)
        else:
            self.tracker.complete_track(listened)

        feedback = TrackFeedback(
            listen_percentage=listen_percentage,
            skipped=skipped,
            paused=self._track_pauses > 0,
            volume_changes=self._track_volume_changes,
        )
        self.queue_manager.update_track_feedback(track.id, feedback)

    # ------------------------------------------------------------------
    # Transport notifications
    # ------------------------------------------------------------------

    def _on_transport_event(self, event: TransportEvent, payload: Any) -> None:
        if event == TransportEvent.PLAY:
            self._set_state(PlaybackState.PLAYING)
        elif event == TransportEvent.PAUSE:
            self._set_state(PlaybackState.PAUSED)
        elif event == TransportEvent.LOADING:
            self._set_state(PlaybackState.LOADING)
        elif event == TransportEvent.TIMEUPDATE:
            self.events.publish(
                PlayerEvent.TIME_UPDATE,
                TimeUpdate(current_time=float(payload), duration=self.transport.get_duration()),
            )
        elif event == TransportEvent.ENDED:
            self._handle_track_ended()
        elif event == TransportEvent.ERROR:
            self._set_state(PlaybackState.STOPPED)
            self._publish_error(payload)

    def _handle_track_ended(self) -> None:
        """Complete the finished track and move on with a fresh context."""
        finished = self._current_track
        self._finish_current_track(skipped=False)
        self._set_state(PlaybackState.STOPPED)
        self.events.publish(PlayerEvent.TRACK_ENDED, finished)

        next_track = self.queue_manager.next(self.tracker.get_context())
        if next_track is not None:
            self.play(next_track)
        else:
            logger.info("[PLAYER] Queue exhausted")

    # ------------------------------------------------------------------
    # Transport control
    # ------------------------------------------------------------------

    def play(self, track: Optional[Track] = None) -> None:
        """
        Play a track, resume a paused one, or start the queue's current track.

        Args:
            track: Track to play (default: resume, or the queue's current track)

        Raises:
            NoTrackAvailableError: Nothing to resume and nothing selected in the queue
            TransportError: The transport failed to load or play
        """
        try:
            if track is not None:
                if self._state in (PlaybackState.PLAYING, PlaybackState.PAUSED):
                    self._finish_current_track(skipped=False)

                self._current_track = track
                self._outcome_pending = True
                self._track_pauses = 0
                self._track_volume_changes = 0
                self._set_state(PlaybackState.LOADING)
                self.events.publish(PlayerEvent.TRACK_CHANGE, track)
                logger.info(f"[PLAYER] Playing: {track.title} - {track.artist} ({track.formatted_duration()})")

                self._track_start_time = self.clock.get_internal_time()
                self.tracker.start_track(track.duration)
                self.clock.resume()

                self.transport.load(track.url)
                self.transport.play()
            elif self._state == PlaybackState.PAUSED and self._current_track is not None:
                self.clock.resume()
                self.transport.play()
            else:
                queue_track = self.queue_manager.get_current_track()
                if queue_track is None:
                    raise NoTrackAvailableError("No track to play")
                self.play(queue_track)
        except TransportError as e:
            self._outcome_pending = False
            self._set_state(PlaybackState.STOPPED)
            self._publish_error(e)
            raise

    def pause(self) -> None:
        """Pause playback, recording the pause as an interaction."""
        if self._state != PlaybackState.PLAYING:
            return
        self.tracker.record_pause(self._track_progress())
        self._track_pauses += 1
        self.clock.pause()
        self.transport.pause()

    def stop(self) -> None:
        self.transport.stop()
        self._set_state(PlaybackState.STOPPED)

    def seek(self, position: float) -> None:
        self.transport.seek(position)

    def set_volume(self, volume: float) -> None:
        """
        Set volume, recording the change as an interaction.

        Args:
            volume: Volume level (0-1)
        """
        self.tracker.record_volume_change(self._previous_volume, volume)
        self._previous_volume = volume
        if self._current_track is not None:
            self._track_volume_changes += 1
        self.transport.set_volume(volume)
        self.events.publish(PlayerEvent.VOLUME_CHANGE, volume)

    def get_volume(self) -> float:
        return self.transport.get_volume()

    def next(self) -> Optional[Track]:
        """
        Skip to the next track.

        A track that is still playing or paused is recorded as skipped
        before the queue is asked for the next track with the current context.

        Returns:
            The track now playing, or None if playback stopped
        """
        if self._current_track is not None and self._state in (PlaybackState.PLAYING, PlaybackState.PAUSED):
            self._finish_current_track(skipped=True)

        next_track = self.queue_manager.next(self.tracker.get_context())
        if next_track is not None:
            self.play(next_track)
        else:
            self.stop()
        return next_track

    def previous(self) -> Optional[Track]:
        """
        Go back to the previous track.

        Returns:
            The track now playing, or None if playback stopped
        """
        previous_track = self.queue_manager.previous()
        if previous_track is not None:
            self.play(previous_track)
        else:
            self.stop()
        return previous_track

    def tick(self) -> None:
        """Advance the runtime clock (called by the external driver)."""
        self.clock.tick()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_state(self) -> PlaybackState:
        return self._state

    def get_current_track(self) -> Optional[Track]:
        return self._current_track

    def get_current_time(self) -> float:
        return self.transport.get_current_time()

    def get_duration(self) -> float:
        return self.transport.get_duration()

    def get_track_runtime(self) -> float:
        """Runtime seconds elapsed since the current track started."""
        return self.clock.get_internal_time() - self._track_start_time

    def get_runtime_state(self) -> RuntimeState:
        """
        Get the combined runtime state.

        Returns:
            RuntimeState with audio time and runtime time side by side
        """
        context = self.tracker.get_context()
        return RuntimeState(
            playback_state=self._state,
            current_track=self._current_track,
            audio_time=self.get_current_time(),
            runtime_time=self.clock.get_internal_time(),
            energy=context.energy,
            flow=context.flow,
            context=context,
        )
