from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Optional


class TransportError(Exception):
    """Raised when a transport fails to load or play media."""


class TransportEvent(Enum):
    PLAY = "play"
    PAUSE = "pause"
    ENDED = "ended"
    TIMEUPDATE = "timeupdate"
    ERROR = "error"
    LOADING = "loading"


TransportListener = Callable[[TransportEvent, Any], None]


class AudioTransport(ABC):
    """
    Abstract base class for all audio transports.

    A transport loads and plays one url at a time and reports what happens
    to a single listener registered by the orchestrator.
    """

    def __init__(self) -> None:
        self._listener: Optional[TransportListener] = None

    def set_listener(self, listener: Optional[TransportListener]) -> None:
        """
        Register the callable receiving transport notifications.

        Args:
            listener: Function taking (TransportEvent, payload), or None to detach
        """
        self._listener = listener

    def _notify(self, event: TransportEvent, payload: Any = None) -> None:
        if self._listener is not None:
            self._listener(event, payload)

    @abstractmethod
    def load(self, url: str) -> None:
        """
        Load media for playback.

        Raises:
            TransportError: If the media cannot be loaded
        """
        ...

    @abstractmethod
    def play(self) -> None:
        """Start or resume playback of the loaded media."""
        ...

    @abstractmethod
    def pause(self) -> None:
        ...

    @abstractmethod
    def stop(self) -> None:
        """Stop playback and reset position to zero."""
        ...

    @abstractmethod
    def seek(self, position: float) -> None:
        ...

    @abstractmethod
    def set_volume(self, volume: float) -> None:
        ...

    @abstractmethod
    def get_volume(self) -> float:
        ...

    @abstractmethod
    def get_current_time(self) -> float:
        """Playback position in seconds."""
        ...

    @abstractmethod
    def get_duration(self) -> float:
        """Duration of the loaded media in seconds (0 if unknown)."""
        ...
