"""In-process adapters: download queue, progress logging, user stores."""

from .bounded_queue import BoundedJobQueue

__all__ = ["BoundedJobQueue"]
