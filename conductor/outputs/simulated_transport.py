"""
Simulated audio transport.

Keeps playback position, duration and volume in memory without decoding
anything. Position moves only when the driver calls advance(), which makes
whole listening sessions reproducible and runnable faster than real time.
"""

import logging
from typing import Dict, Optional, Set

from conductor.outputs.base_transport import AudioTransport, TransportError, TransportEvent

logger = logging.getLogger(__name__)


class SimulatedTransport(AudioTransport):
    """A transport that plays silence on a simulated timeline. Useful for tests and simulation."""

    def __init__(self, durations: Optional[Dict[str, float]] = None, default_duration: float = 180.0):
        """
        Initialize simulated transport.

        Args:
            durations: Media duration in seconds per url
            default_duration: Duration used for urls missing from ``durations``
        """
        super().__init__()
        self._durations: Dict[str, float] = dict(durations or {})
        self._default_duration = default_duration
        self._failing_urls: Set[str] = set()

        self._url: Optional[str] = None
        self._duration: float = 0.0
        self._position: float = 0.0
        self._volume: float = 1.0
        self._playing: bool = False

    def fail_on(self, url: str) -> None:
        """Make subsequent loads of ``url`` fail."""
        self._failing_urls.add(url)

    def is_playing(self) -> bool:
        return self._playing

    def get_url(self) -> Optional[str]:
        return self._url

    def load(self, url: str) -> None:
        self._playing = False
        self._notify(TransportEvent.LOADING, url)
        if url in self._failing_urls:
            self._url = None
            self._duration = 0.0
            error = TransportError(f"Failed to load {url}")
            self._notify(TransportEvent.ERROR, error)
            raise error

        self._url = url
        self._duration = self._durations.get(url, self._default_duration)
        self._position = 0.0
        logger.debug(f"[TRANSPORT] Loaded {url} ({self._duration:.1f}s)")

    def play(self) -> None:
        if self._url is None:
            raise TransportError("Nothing loaded")
        if not self._playing:
            self._playing = True
            self._notify(TransportEvent.PLAY)

    def pause(self) -> None:
        if self._playing:
            self._playing = False
            self._notify(TransportEvent.PAUSE)

    def stop(self) -> None:
        self._playing = False
        self._position = 0.0

    def seek(self, position: float) -> None:
        self._position = max(0.0, min(position, self._duration))

    def set_volume(self, volume: float) -> None:
        self._volume = max(0.0, min(volume, 1.0))

    def get_volume(self) -> float:
        return self._volume

    def get_current_time(self) -> float:
        return self._position

    def get_duration(self) -> float:
        return self._duration

    def advance(self, seconds: float) -> None:
        """
        Move the playback position forward while playing.

        Emits TIMEUPDATE, then ENDED once the position reaches the duration.
        """
        if not self._playing:
            return
        self._position = min(self._position + seconds, self._duration)
        self._notify(TransportEvent.TIMEUPDATE, self._position)
        if self._position >= self._duration:
            self._playing = False
            self._notify(TransportEvent.ENDED, self._url)
