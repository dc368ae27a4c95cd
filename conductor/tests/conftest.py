"""
Shared pytest fixtures for Conductor tests.

Every time-dependent component runs on a SimulatedTime so tests never
depend on the wall clock.
"""

from datetime import datetime

import pytest

from conductor.broadcast_core.player_engine import PlayerEngine
from conductor.broadcast_core.queue_manager import QueueManager
from conductor.clock.runtime_clock import RuntimeClock
from conductor.clock.simulated_time import SimulatedTime
from conductor.outputs.simulated_transport import SimulatedTransport
from conductor.state.interaction_tracker import InteractionTracker
from conductor.tests.test_doubles import make_playlist

# Wednesday afternoon
SESSION_START = datetime(2024, 5, 15, 14, 0, 0)


@pytest.fixture
def sim_time():
    """Simulated time starting on a Wednesday at 14:00."""
    return SimulatedTime(start=SESSION_START)


@pytest.fixture
def tracker(sim_time):
    return InteractionTracker(clock=sim_time.now)


@pytest.fixture
def runtime_clock(sim_time):
    return RuntimeClock(time_source=sim_time.monotonic)


@pytest.fixture
def playlist():
    """Three 100-second tracks: a, b, c."""
    return make_playlist("a", "b", "c")


@pytest.fixture
def transport(playlist):
    return SimulatedTransport(durations={track.url: track.duration for track in playlist.tracks})


@pytest.fixture
def player(playlist, transport, tracker, runtime_clock):
    """PlayerEngine in sequential mode over the three-track playlist."""
    queue = QueueManager()
    queue.set_playlist(playlist)
    return PlayerEngine(transport, queue_manager=queue, tracker=tracker, clock=runtime_clock)
