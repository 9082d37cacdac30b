"""MediaExtractorPort — abstract interface for resolving and downloading media."""

from abc import ABC, abstractmethod

from grabh.domain.models import MediaInfo


class MediaExtractorPort(ABC):
    @abstractmethod
    async def get_info(self, url: str) -> MediaInfo:
        """Resolve metadata for a media URL without downloading it."""

    @abstractmethod
    async def download(self, url: str, output_dir: str) -> str:
        """Download the media into output_dir. Returns the absolute file path."""
