"""yt-dlp adapter for media metadata and downloads."""

from .extractor import YtDlpExtractorAdapter

__all__ = ["YtDlpExtractorAdapter"]
