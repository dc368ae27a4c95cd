"""
Simulated time source.

Stands in for both time.monotonic and datetime.now when a session is
driven faster than real time (the command-line simulator) or must be
reproducible (tests). Time only moves when advance() is called.
"""

from datetime import datetime, timedelta
from typing import Optional


class SimulatedTime:
    """Manually advanced clock exposing monotonic seconds and wall-clock datetimes."""

    def __init__(self, start: Optional[datetime] = None):
        """
        Args:
            start: Wall-clock time at zero (default: current local time)
        """
        self._start: datetime = start or datetime.now()
        self._elapsed: float = 0.0

    def advance(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError(f"Cannot move time backwards: {seconds}")
        self._elapsed += seconds

    def monotonic(self) -> float:
        return self._elapsed

    def now(self) -> datetime:
        return self._start + timedelta(seconds=self._elapsed)
