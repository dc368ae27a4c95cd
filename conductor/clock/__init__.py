"""
Clock module for Conductor.

Runtime clock (logical time decoupled from audio position) and the
simulated time source used by the simulator and tests.
"""

from conductor.clock.runtime_clock import ClockState, RuntimeClock, ScheduledEvent
from conductor.clock.simulated_time import SimulatedTime

__all__ = ["ClockState", "RuntimeClock", "ScheduledEvent", "SimulatedTime"]
