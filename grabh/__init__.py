"""GRABH: media URL in, video file out, behind a bounded download queue."""

__version__ = "0.1.0"
