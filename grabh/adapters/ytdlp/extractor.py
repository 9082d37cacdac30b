"""YtDlpExtractorAdapter — media metadata and downloads via the yt-dlp binary."""

import asyncio
import json
import logging
import os
from typing import Optional

from grabh.domain.models import MediaFormat, MediaInfo
from grabh.errors import ExtractionError
from grabh.formatting import format_duration
from grabh.ports.extractor import MediaExtractorPort

logger = logging.getLogger(__name__)

OUTPUT_TEMPLATE = "%(id)s.%(ext)s"
FORMAT_SELECTOR = "best[ext=mp4]/best"


def parse_formats(raw_formats: list) -> list[MediaFormat]:
    """Keep mp4 renditions that carry both a video and an audio stream."""
    formats: list[MediaFormat] = []
    for f in raw_formats or []:
        if f.get("ext") != "mp4" or f.get("vcodec") == "none" or f.get("acodec") == "none":
            continue
        formats.append(MediaFormat(
            format_id=f.get("format_id", ""),
            ext=f["ext"],
            resolution=f.get("resolution") or f"{f.get('width')}x{f.get('height')}",
            filesize=f.get("filesize") or f.get("filesize_approx") or None,
            url=f.get("url", ""),
            vcodec=f.get("vcodec", ""),
            acodec=f.get("acodec", ""),
        ))
    return formats


def parse_info(raw: dict, url: str) -> MediaInfo:
    """Build a MediaInfo from yt-dlp's --dump-json document."""
    formats = parse_formats(raw.get("formats"))
    best = formats[-1] if formats else None
    duration = raw.get("duration") or 0

    return MediaInfo(
        id=raw.get("id", ""),
        title=raw.get("title") or "Untitled",
        description=raw.get("description") or "",
        thumbnail=raw.get("thumbnail") or "",
        duration=duration,
        duration_string=raw.get("duration_string") or format_duration(duration),
        uploader=raw.get("uploader") or raw.get("channel") or "Unknown",
        view_count=raw.get("view_count") or 0,
        webpage_url=raw.get("webpage_url") or url,
        extractor=raw.get("extractor") or "unknown",
        filesize_approx=(
            raw.get("filesize_approx") or raw.get("filesize") or (best.filesize if best else None)
        ),
        formats=formats,
        best_url=best.url if best else None,
    )


class YtDlpExtractorAdapter(MediaExtractorPort):
    def __init__(
        self,
        binary: str = "yt-dlp",
        cookies_file: str = "",
        cookies_browser: str = "",
        timeout: Optional[float] = None,
    ):
        self._binary = binary
        self._cookies_file = cookies_file
        self._cookies_browser = cookies_browser
        self._timeout = timeout or None

    def base_args(self) -> list[str]:
        args = [self._binary, "--no-warnings", "--extractor-retries", "3"]
        # Cookie file wins over browser cookies
        if self._cookies_file and os.path.exists(self._cookies_file):
            args += ["--cookies", self._cookies_file]
        elif self._cookies_browser:
            args += ["--cookies-from-browser", self._cookies_browser]
        return args

    async def get_info(self, url: str) -> MediaInfo:
        cmd = [*self.base_args(), "--dump-json", url]
        returncode, stdout, stderr = await self._run(cmd)
        if returncode != 0:
            raise ExtractionError(f"yt-dlp failed: {stderr.strip() or 'Unknown error'}")

        try:
            raw = json.loads(stdout)
        except json.JSONDecodeError as e:
            raise ExtractionError(f"Failed to parse yt-dlp output: {e}") from e

        info = parse_info(raw, url)
        logger.info(f"Resolved {info.extractor} media '{info.title}' ({len(info.formats)} mp4 formats)")
        return info

    async def download(self, url: str, output_dir: str) -> str:
        abs_dir = os.path.abspath(output_dir)
        os.makedirs(abs_dir, exist_ok=True)

        cmd = [
            *self.base_args(),
            "-f", FORMAT_SELECTOR,
            "-o", os.path.join(abs_dir, OUTPUT_TEMPLATE),
            "--print", "after_move:filepath",
            url,
        ]
        returncode, stdout, stderr = await self._run(cmd)
        if returncode != 0:
            logger.error(f"Download failed for {url}: {stderr.strip()}")
            raise ExtractionError(f"Download failed: {stderr.strip() or 'Unknown error'}")

        lines = [line.strip() for line in stdout.strip().splitlines() if line.strip()]
        file_path = lines[-1] if lines else ""
        if not file_path or not os.path.exists(file_path):
            raise ExtractionError("Download completed but file not found on disk")
        return file_path

    async def _run(self, cmd: list[str]) -> tuple[int, str, str]:
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise ExtractionError(f"yt-dlp binary not found: {self._binary}") from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self._timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise ExtractionError(f"yt-dlp timed out after {self._timeout:g}s")
        except asyncio.CancelledError:
            proc.kill()
            await asyncio.shield(proc.wait())
            raise

        return (
            proc.returncode,
            stdout.decode("utf-8", errors="replace"),
            stderr.decode("utf-8", errors="replace"),
        )
