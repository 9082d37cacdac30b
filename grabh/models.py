from typing import List, Optional, Dict

from pydantic import BaseModel


class MediaFormatModel(BaseModel):
    """A downloadable mp4 rendition"""
    format_id: str
    ext: str
    resolution: str
    filesize: Optional[int] = None
    url: str
    vcodec: str
    acodec: str


class MediaInfoModel(BaseModel):
    """Metadata returned by POST /api/grabh"""
    id: str
    title: str
    description: str = ""
    thumbnail: str = ""
    duration: float = 0
    duration_string: str
    uploader: str
    view_count: int = 0
    webpage_url: str
    extractor: str
    filesize_approx: Optional[int] = None
    formats: List[MediaFormatModel] = []
    best_url: Optional[str] = None


class InfoRequest(BaseModel):
    url: Optional[str] = None


class InfoResponse(BaseModel):
    success: bool = True
    data: MediaInfoModel
    maxFileSizeMB: int


class QueueStatusModel(BaseModel):
    waiting: int
    active: int
    capacity: int


class StatusResponse(BaseModel):
    maxFileSizeMB: int
    queue: QueueStatusModel
    totalDownloads: int


class DownloadCountResponse(BaseModel):
    totalDownloads: int


class HealthResponse(BaseModel):
    status: str = "ok"
    queue: QueueStatusModel


class ErrorResponse(BaseModel):
    error: str


ClientConfig = Dict[str, str]
