"""Domain <-> DTO mappers.

Converts MediaInfo and QueueStatus (domain dataclasses) into the Pydantic
models the HTTP API returns.
"""

from grabh.domain.models import MediaFormat, MediaInfo, QueueStatus
from grabh.models import MediaFormatModel, MediaInfoModel, QueueStatusModel


def format_to_dto(fmt: MediaFormat) -> MediaFormatModel:
    return MediaFormatModel(
        format_id=fmt.format_id,
        ext=fmt.ext,
        resolution=fmt.resolution,
        filesize=fmt.filesize,
        url=fmt.url,
        vcodec=fmt.vcodec,
        acodec=fmt.acodec,
    )


def media_info_to_dto(info: MediaInfo) -> MediaInfoModel:
    """Convert a domain MediaInfo into the API response model, preserving format order."""
    return MediaInfoModel(
        id=info.id,
        title=info.title,
        description=info.description,
        thumbnail=info.thumbnail,
        duration=info.duration,
        duration_string=info.duration_string,
        uploader=info.uploader,
        view_count=info.view_count,
        webpage_url=info.webpage_url,
        extractor=info.extractor,
        filesize_approx=info.filesize_approx,
        formats=[format_to_dto(f) for f in info.formats],
        best_url=info.best_url,
    )


def queue_status_to_dto(status: QueueStatus) -> QueueStatusModel:
    return QueueStatusModel(waiting=status.waiting, active=status.active, capacity=status.capacity)
