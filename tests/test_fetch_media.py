import asyncio
import os

import pytest

from grabh.adapters.local.bounded_queue import BoundedJobQueue
from grabh.errors import ExtractionError, FileTooLargeError
from grabh.use_cases.fetch_media import FetchMediaUseCase
from tests.conftest import FakeExtractor


def make_use_case(tmp_path, extractor, max_mb=1, slots=2):
    queue = BoundedJobQueue(slots)
    return FetchMediaUseCase(queue, extractor, str(tmp_path / "dl"), max_mb), queue


@pytest.mark.asyncio
async def test_fetch_returns_sanitized_media(tmp_path):
    svc, _ = make_use_case(tmp_path, FakeExtractor(size=2048))

    media = await svc.fetch("https://video.example/1")

    assert media.size == 2048
    assert media.filename == "media_1.mp4"
    assert os.path.exists(media.path)
    svc.discard(media)
    assert not os.path.exists(media.path)


@pytest.mark.asyncio
async def test_fetch_rejects_and_deletes_oversized_file(tmp_path):
    extractor = FakeExtractor(size=2 * 1024 * 1024)
    svc, _ = make_use_case(tmp_path, extractor, max_mb=1)

    with pytest.raises(FileTooLargeError) as exc_info:
        await svc.fetch("https://video.example/big")

    assert exc_info.value.limit_mb == 1
    assert exc_info.value.size_mb == pytest.approx(2.0)
    assert os.listdir(tmp_path / "dl") == []


@pytest.mark.asyncio
async def test_per_call_limit_overrides_default(tmp_path):
    svc, _ = make_use_case(tmp_path, FakeExtractor(size=4096), max_mb=100)
    with pytest.raises(FileTooLargeError):
        await svc.fetch("https://video.example/1", max_size_mb=0.001)


@pytest.mark.asyncio
async def test_fetch_propagates_extraction_error(tmp_path):
    svc, queue = make_use_case(tmp_path, FakeExtractor(fail_with="403"))
    with pytest.raises(ExtractionError, match="Download failed: 403"):
        await svc.fetch("https://video.example/1")
    assert queue.status().active == 0


@pytest.mark.asyncio
async def test_downloads_share_the_queue(tmp_path):
    extractor = FakeExtractor(delay=0.02)
    svc, queue = make_use_case(tmp_path, extractor, slots=1)

    tasks = [asyncio.create_task(svc.fetch(f"https://video.example/{n}")) for n in range(3)]
    await asyncio.sleep(0)
    status = queue.status()
    assert status.active == 1 and status.waiting == 2

    results = await asyncio.gather(*tasks)
    assert extractor.downloads == [f"https://video.example/{n}" for n in range(3)]
    assert len({m.path for m in results}) == 3


@pytest.mark.asyncio
async def test_describe_is_not_queued(tmp_path):
    svc, queue = make_use_case(tmp_path, FakeExtractor())
    info = await svc.describe("https://video.example/1")
    assert info.webpage_url == "https://video.example/1"
    assert queue.status().active == 0


@pytest.mark.asyncio
async def test_download_is_removed_when_caller_stops_waiting(tmp_path):
    extractor = FakeExtractor(delay=0.05)
    svc, queue = make_use_case(tmp_path, extractor, slots=1)

    task = asyncio.create_task(svc.fetch("https://video.example/1"))
    await asyncio.sleep(0.01)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    await asyncio.sleep(0.2)
    assert extractor.downloads == ["https://video.example/1"]
    assert os.listdir(tmp_path / "dl") == []
    assert queue.status().active == 0
