"""
Tests for PlayerEngine.

Drives the orchestrator through a SimulatedTransport and checks:
- State transitions and published events
- Track-end handling (completion feedback, next selection, queue exhaustion)
- Listener actions (skip, pause, volume) feeding tracker and weights
- Transport failure handling
- Runtime time reporting
"""

import pytest

from conductor.broadcast_core.events import PlayerEvent
from conductor.broadcast_core.player_engine import NoTrackAvailableError, PlayerEngine, TimeUpdate
from conductor.broadcast_core.queue_manager import QueueManager
from conductor.models.playback_state import PlaybackState
from conductor.outputs.base_transport import TransportError
from conductor.tests.test_doubles import ScriptedRandom


@pytest.fixture
def recorded(player):
    """Payloads published by the player, per event kind."""
    published = {kind: [] for kind in PlayerEvent}
    for kind in PlayerEvent:
        player.events.subscribe(kind, published[kind].append)
    return published


def start_first_track(player):
    player.queue_manager.next()
    player.play()


def weights(player):
    return player.queue_manager.get_probability_engine().get_track_weights()


class TestPlay:

    def test_nothing_selected(self, player):
        with pytest.raises(NoTrackAvailableError):
            player.play()
        assert player.get_state() == PlaybackState.STOPPED

    def test_play_queue_current_track(self, player, recorded, transport):
        start_first_track(player)

        assert player.get_state() == PlaybackState.PLAYING
        assert player.get_current_track().id == "a"
        assert transport.get_url() == "sim://a"
        assert transport.is_playing()
        assert recorded[PlayerEvent.STATE_CHANGE] == [PlaybackState.LOADING, PlaybackState.PLAYING]
        assert [t.id for t in recorded[PlayerEvent.TRACK_CHANGE]] == ["a"]

    def test_play_logs_track(self, player, caplog):
        with caplog.at_level("INFO"):
            start_first_track(player)
        assert "Playing: Title a - Artist a (1:40)" in caplog.text

    def test_play_explicit_track(self, player, playlist):
        player.play(playlist.tracks[2])
        assert player.get_current_track().id == "c"
        assert player.get_duration() == 100.0

    def test_replacing_a_playing_track_counts_as_completion(self, player, playlist, transport, tracker):
        player.play(playlist.tracks[0])
        transport.advance(50)

        player.play(playlist.tracks[1])

        completions = tracker.get_interactions().completions
        assert len(completions) == 1
        assert completions[0].percentage == pytest.approx(0.5)
        assert tracker.get_interactions().skips == []
        assert weights(player)["a"] == pytest.approx(1.0)

    def test_subscriber_failure_does_not_break_playback(self, player):
        def broken(_payload):
            raise RuntimeError("subscriber bug")

        player.events.subscribe(PlayerEvent.STATE_CHANGE, broken)
        start_first_track(player)

        assert player.get_state() == PlaybackState.PLAYING


class TestTrackEnd:

    def test_end_completes_and_advances(self, player, recorded, transport, tracker):
        start_first_track(player)

        transport.advance(100)

        assert weights(player)["a"] == pytest.approx(1.1)
        assert [t.id for t in recorded[PlayerEvent.TRACK_ENDED]] == ["a"]
        assert player.get_current_track().id == "b"
        assert player.get_state() == PlaybackState.PLAYING
        assert tracker.get_interactions().completions[0].percentage == 1.0

    def test_state_passes_through_stopped(self, player, recorded, transport):
        start_first_track(player)
        transport.advance(100)

        assert recorded[PlayerEvent.STATE_CHANGE] == [
            PlaybackState.LOADING,
            PlaybackState.PLAYING,
            PlaybackState.STOPPED,
            PlaybackState.LOADING,
            PlaybackState.PLAYING,
        ]

    def test_time_updates_are_republished(self, player, recorded, transport):
        start_first_track(player)
        transport.advance(10)
        transport.advance(15)

        assert recorded[PlayerEvent.TIME_UPDATE] == [TimeUpdate(10.0, 100.0), TimeUpdate(25.0, 100.0)]
        assert player.get_current_time() == 25.0

    def test_queue_exhausted(self, player, transport, caplog):
        player.queue_manager.jump_to_track(2)
        player.play()

        with caplog.at_level("INFO"):
            transport.advance(100)

        assert player.get_state() == PlaybackState.STOPPED
        assert player.get_current_track().id == "c"
        assert "Queue exhausted" in caplog.text

    def test_probability_selection_uses_tracker_context(self, playlist, transport, tracker, runtime_clock):
        queue = QueueManager(playlist=playlist, rng=ScriptedRandom([0.99]))
        queue.set_probability_mode(True)
        queue.jump_to_track(0)
        player = PlayerEngine(transport, queue_manager=queue, tracker=tracker, clock=runtime_clock)
        player.play()

        transport.advance(100)

        assert player.get_current_track().id == "c"
        assert queue.get_probability_engine().get_recent_selections() == ["c"]


class TestListenerActions:

    def test_skip_records_skip_and_penalizes(self, player, transport, tracker):
        start_first_track(player)
        transport.advance(30)

        next_track = player.next()

        assert next_track.id == "b"
        assert player.get_current_track().id == "b"
        skips = tracker.get_interactions().skips
        assert len(skips) == 1
        assert skips[0].track_id == "a"
        assert skips[0].track_progress == pytest.approx(0.3)
        assert tracker.get_interactions().completions == []
        assert weights(player)["a"] == pytest.approx(0.6)

    def test_next_at_end_stops(self, player, transport):
        player.queue_manager.jump_to_track(2)
        player.play()

        assert player.next() is None
        assert player.get_state() == PlaybackState.STOPPED
        assert not transport.is_playing()

    def test_next_when_stopped_is_not_a_skip(self, player, tracker):
        assert player.next().id == "a"
        assert tracker.get_interactions().skips == []

    def test_skipping_a_paused_track_is_a_skip(self, player, transport, tracker):
        start_first_track(player)
        transport.advance(95)
        player.pause()

        assert player.next().id == "b"

        interactions = tracker.get_interactions()
        assert len(interactions.skips) == 1
        assert interactions.skips[0].track_id == "a"
        assert interactions.skips[0].track_progress == pytest.approx(0.95)
        assert interactions.completions == []
        # Listen bonus, skip penalty and pause penalty all apply
        assert weights(player)["a"] == pytest.approx(1.1 * 0.6 * 0.9)
        assert player.get_state() == PlaybackState.PLAYING

    def test_pause_and_resume(self, player, transport, tracker, runtime_clock):
        start_first_track(player)
        transport.advance(10)

        player.pause()

        assert player.get_state() == PlaybackState.PAUSED
        assert runtime_clock.is_paused()
        assert tracker.get_interactions().pauses[0].track_progress == pytest.approx(0.1)

        player.play()

        assert player.get_state() == PlaybackState.PLAYING
        assert not runtime_clock.is_paused()
        assert player.get_current_track().id == "a"
        assert transport.get_current_time() == 10.0

    def test_paused_track_feedback(self, player, transport):
        start_first_track(player)
        transport.advance(10)
        player.pause()
        player.play()

        transport.advance(90)

        assert weights(player)["a"] == pytest.approx(1.1 * 0.9)

    def test_pause_when_not_playing_is_ignored(self, player, tracker):
        player.pause()
        assert tracker.get_interactions().pauses == []
        assert player.get_state() == PlaybackState.STOPPED

    def test_volume_change(self, player, recorded, transport, tracker):
        player.set_volume(0.5)

        assert player.get_volume() == 0.5
        assert transport.get_volume() == 0.5
        assert recorded[PlayerEvent.VOLUME_CHANGE] == [0.5]
        change = tracker.get_interactions().volume_changes[0]
        assert change.direction == "down"
        assert change.magnitude == pytest.approx(0.5)

    def test_frequent_volume_changes_reward_track(self, player, transport):
        start_first_track(player)
        for volume in (0.9, 0.7, 0.8, 0.6):
            player.set_volume(volume)

        transport.advance(100)

        assert weights(player)["a"] == pytest.approx(1.1 * 1.05)

    def test_previous(self, player):
        player.queue_manager.jump_to_track(1)
        player.play()

        assert player.previous().id == "a"
        assert player.get_current_track().id == "a"

    def test_previous_at_start_stops(self, player):
        start_first_track(player)

        assert player.previous() is None
        assert player.get_state() == PlaybackState.STOPPED

    def test_stop_and_seek(self, player, transport):
        start_first_track(player)
        player.seek(40)
        assert player.get_current_time() == 40.0

        player.stop()
        assert player.get_state() == PlaybackState.STOPPED
        assert not transport.is_playing()


class TestTransportFailure:

    def test_load_failure(self, player, recorded, transport):
        transport.fail_on("sim://a")
        player.queue_manager.next()

        with pytest.raises(TransportError):
            player.play()

        assert player.get_state() == PlaybackState.STOPPED
        assert len(recorded[PlayerEvent.ERROR]) == 1
        assert isinstance(recorded[PlayerEvent.ERROR][0], TransportError)

    def test_failed_track_gets_no_feedback(self, player, playlist, transport):
        transport.fail_on("sim://a")
        with pytest.raises(TransportError):
            player.play(playlist.tracks[0])

        player.play(playlist.tracks[1])

        assert weights(player)["a"] == 1.0

    def test_failure_on_track_end_propagates(self, player, transport):
        transport.fail_on("sim://b")
        start_first_track(player)

        with pytest.raises(TransportError):
            transport.advance(100)

        assert player.get_state() == PlaybackState.STOPPED


class TestRuntimeTime:

    def test_track_runtime_follows_clock(self, player, sim_time):
        start_first_track(player)
        sim_time.advance(5)
        player.tick()

        assert player.get_track_runtime() == pytest.approx(5.0)

    def test_track_runtime_restarts_per_track(self, player, playlist, sim_time):
        start_first_track(player)
        sim_time.advance(5)
        player.tick()

        player.play(playlist.tracks[1])
        sim_time.advance(2)
        player.tick()

        assert player.get_track_runtime() == pytest.approx(2.0)

    def test_runtime_state(self, player, transport, sim_time, tracker):
        start_first_track(player)
        transport.advance(20)
        sim_time.advance(5)
        player.tick()

        state = player.get_runtime_state()

        assert state.playback_state == PlaybackState.PLAYING
        assert state.current_track.id == "a"
        assert state.audio_time == 20.0
        assert state.runtime_time == pytest.approx(5.0)
        assert state.context.hour == 14
        assert state.energy == tracker.get_energy_level()
        assert state.flow == tracker.get_flow_state()
