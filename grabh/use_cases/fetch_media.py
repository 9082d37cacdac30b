"""FetchMediaUseCase — resolve a URL and download it through the shared queue.

Both the HTTP API and the Telegram bot go through this class, so every
download in the process competes for the same concurrency slots.
"""

import asyncio
import logging
import os
from typing import Optional

from grabh.domain.models import DownloadedMedia, MediaInfo
from grabh.errors import FileTooLargeError
from grabh.formatting import sanitize_filename
from grabh.ports.extractor import MediaExtractorPort
from grabh.ports.job_queue import JobQueuePort

logger = logging.getLogger(__name__)


class FetchMediaUseCase:
    def __init__(
        self,
        queue: JobQueuePort,
        extractor: MediaExtractorPort,
        download_dir: str,
        max_file_size_mb: float,
    ):
        self._queue = queue
        self._extractor = extractor
        self._download_dir = download_dir
        self.max_file_size_mb = max_file_size_mb

    async def describe(self, url: str) -> MediaInfo:
        """Resolve metadata. Not queued: metadata lookups are cheap."""
        return await self._extractor.get_info(url)

    async def _download(self, url: str) -> str:
        return await self._extractor.download(url, self._download_dir)

    async def fetch(self, url: str, max_size_mb: Optional[float] = None) -> DownloadedMedia:
        """Download through the queue and enforce a size limit.

        Args:
            url: Media page URL.
            max_size_mb: Limit for this caller; defaults to the configured limit.

        Returns:
            DownloadedMedia pointing at the file on disk. The caller owns the
            file and must call discard() when done with it.

        Raises:
            FileTooLargeError: The file exceeded the limit (it has been deleted).
            ExtractionError: yt-dlp failed.
        """
        limit = self.max_file_size_mb if max_size_mb is None else max_size_mb
        completion = self._queue.submit(url, self._download)
        try:
            file_path = await asyncio.shield(completion)
        except asyncio.CancelledError:
            # Nobody will read the file once the job finishes
            completion.add_done_callback(self._discard_orphan)
            raise

        size = os.path.getsize(file_path)
        media = DownloadedMedia(path=file_path, size=size, filename=sanitize_filename(file_path))
        if media.size_mb > limit:
            self.discard(media)
            raise FileTooLargeError(media.size_mb, limit)
        logger.info(f"Fetched {url} -> {media.filename} ({media.size_mb:.1f}MB)")
        return media

    def _discard_orphan(self, completion: "asyncio.Future[str]") -> None:
        if completion.cancelled() or completion.exception() is not None:
            return
        path = completion.result()
        logger.info(f"Removing download for a caller that stopped waiting: {path}")
        self.discard(DownloadedMedia(path=path, size=0, filename=os.path.basename(path)))

    def discard(self, media: DownloadedMedia) -> None:
        try:
            if os.path.exists(media.path):
                os.unlink(media.path)
        except OSError as e:
            logger.warning(f"Cleanup error: {e}")
