import asyncio
import os
from typing import Optional

import pytest

from grabh.config import get_config
from grabh.domain.models import MediaInfo
from grabh.errors import ExtractionError
from grabh.ports.extractor import MediaExtractorPort
from grabh.ports.progress import ProgressPort


def make_info(title: str = "Clip", **overrides) -> MediaInfo:
    fields = dict(
        id="abc123",
        title=title,
        description="",
        thumbnail="https://img.example/t.jpg",
        duration=75,
        duration_string="1:15",
        uploader="Uploader",
        view_count=10,
        webpage_url="https://video.example/watch/abc123",
        extractor="generic",
    )
    fields.update(overrides)
    return MediaInfo(**fields)


class FakeExtractor(MediaExtractorPort):
    """Writes a file of ``size`` bytes instead of calling yt-dlp."""

    def __init__(self, size: int = 1024, fail_with: Optional[str] = None, delay: float = 0.0):
        self.size = size
        self.fail_with = fail_with
        self.delay = delay
        self.downloads: list[str] = []

    async def get_info(self, url: str) -> MediaInfo:
        if self.fail_with:
            raise ExtractionError(f"yt-dlp failed: {self.fail_with}")
        return make_info(webpage_url=url)

    async def download(self, url: str, output_dir: str) -> str:
        self.downloads.append(url)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with:
            raise ExtractionError(f"Download failed: {self.fail_with}")
        os.makedirs(output_dir, exist_ok=True)
        path = os.path.join(output_dir, f"media {len(self.downloads)}.mp4")
        with open(path, "wb") as f:
            f.write(b"\0" * self.size)
        return path


class RecordingProgress(ProgressPort):
    def __init__(self):
        self.events: list[tuple[str, str]] = []

    def report(self, job_id, stage, progress=0.0, detail=None):
        self.events.append((job_id, stage))

    def stages(self) -> list[str]:
        return [stage for _, stage in self.events]


async def settle(rounds: int = 10) -> None:
    """Give scheduled tasks a few loop iterations to run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def cfg(tmp_path, monkeypatch):
    config = get_config()
    monkeypatch.setattr(config, "download_dir", str(tmp_path / "downloads"))
    monkeypatch.setattr(config, "public_dir", str(tmp_path / "public"))
    monkeypatch.setattr(config, "max_file_size_mb", 1)
    monkeypatch.setattr(config, "max_concurrent_downloads", 2)
    monkeypatch.setattr(config, "user_store_file", str(tmp_path / "users.json"))
    monkeypatch.setattr(config, "bot_token", "")
    return config
