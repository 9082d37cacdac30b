"""Exception types shared by the dispatcher, extractor and front ends."""


class GrabhError(Exception):
    """Base class for errors reported to HTTP and bot callers."""


class ExtractionError(GrabhError):
    """The external extraction tool failed or produced unusable output."""


class FileTooLargeError(GrabhError):
    def __init__(self, size_mb: float, limit_mb: float):
        self.size_mb = size_mb
        self.limit_mb = limit_mb
        super().__init__(f"File too large ({size_mb:.1f}MB). Max allowed: {limit_mb:g}MB")


class InvariantViolation(AssertionError):
    """Internal dispatcher bookkeeping is corrupt. Never caught."""
