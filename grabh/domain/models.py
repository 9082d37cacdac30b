"""Framework-agnostic domain models for GRABH.

The Pydantic DTOs in grabh.models are the HTTP response schema; these
dataclasses are what the extractor, dispatcher and bot pass around, with
mappers at the boundary.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class MediaFormat:
    """One downloadable mp4 rendition carrying both audio and video."""
    format_id: str
    ext: str
    resolution: str
    filesize: Optional[int]
    url: str
    vcodec: str
    acodec: str


@dataclass
class MediaInfo:
    """Metadata resolved by the extractor for a media URL."""
    id: str
    title: str
    description: str
    thumbnail: str
    duration: float
    duration_string: str
    uploader: str
    view_count: int
    webpage_url: str
    extractor: str
    filesize_approx: Optional[int] = None
    formats: list[MediaFormat] = field(default_factory=list)
    best_url: Optional[str] = None


@dataclass
class DownloadedMedia:
    """A finished download sitting in the download directory."""
    path: str
    size: int
    filename: str

    @property
    def size_mb(self) -> float:
        return self.size / 1024 / 1024


@dataclass
class QueueStatus:
    waiting: int
    active: int
    capacity: int


@dataclass
class ChatUser:
    """A Telegram user as seen by the user store."""
    id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None

    @property
    def display_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p) or "Unknown"
