"""
Track and playlist data holders.

Plain metadata containers consumed by the queue and the orchestrator.
The selection core only reads ``Track.id`` and ``Track.duration``.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Track:
    """
    Immutable track metadata.

    Attributes:
        id: Unique track identifier
        title: Track title
        artist: Track artist
        duration: Track duration in seconds
        url: Location of the audio file
        album: Album name (optional)
        artwork: Artwork location (optional)
    """
    id: str
    title: str
    artist: str
    duration: float
    url: str
    album: str = ""
    artwork: str = ""

    def formatted_duration(self) -> str:
        """
        Format the duration as M:SS.

        Returns:
            Duration string, e.g. "3:07"
        """
        minutes = int(self.duration // 60)
        seconds = int(self.duration % 60)
        return f"{minutes}:{seconds:02d}"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Track":
        """
        Build a Track from a plain mapping (e.g. a JSON object).

        Raises:
            ValueError: If a required field is missing or duration is not numeric
        """
        missing = [key for key in ("id", "title", "artist", "duration", "url") if key not in data]
        if missing:
            raise ValueError(f"Track is missing required fields: {', '.join(missing)}")
        try:
            duration = float(data["duration"])
        except (TypeError, ValueError):
            raise ValueError(f"Invalid duration for track {data['id']}: {data['duration']!r}")
        return cls(
            id=str(data["id"]),
            title=str(data["title"]),
            artist=str(data["artist"]),
            duration=duration,
            url=str(data["url"]),
            album=str(data.get("album", "")),
            artwork=str(data.get("artwork", "")),
        )


@dataclass
class Playlist:
    """Ordered, mutable collection of tracks."""
    id: str
    name: str
    tracks: List[Track] = field(default_factory=list)

    def __post_init__(self) -> None:
        # Never alias the caller's list
        self.tracks = list(self.tracks)

    @classmethod
    def from_dicts(cls, playlist_id: str, name: str, items: Iterable[Dict[str, Any]]) -> "Playlist":
        """Build a playlist from an iterable of track mappings."""
        return cls(id=playlist_id, name=name, tracks=[Track.from_dict(item) for item in items])

    def add_track(self, track: Track) -> None:
        """Append a track to the end of the playlist."""
        self.tracks.append(track)

    def remove_track(self, track_id: str) -> bool:
        """
        Remove every track with the given id.

        Returns:
            True if at least one track was removed
        """
        initial_length = len(self.tracks)
        self.tracks = [track for track in self.tracks if track.id != track_id]
        removed = len(self.tracks) < initial_length
        if removed:
            logger.debug(f"[PLAYLIST] Removed {track_id} from {self.id}")
        return removed

    def get_track(self, track_id: str) -> Optional[Track]:
        """Return the first track with the given id, or None."""
        for track in self.tracks:
            if track.id == track_id:
                return track
        return None

    def get_track_by_index(self, index: int) -> Optional[Track]:
        """Return the track at index, or None if out of bounds."""
        if 0 <= index < len(self.tracks):
            return self.tracks[index]
        return None

    def get_track_count(self) -> int:
        return len(self.tracks)

    def clear(self) -> None:
        self.tracks = []
