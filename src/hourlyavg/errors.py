from __future__ import annotations


class HourlyAvgError(Exception):
    """Base class for every failure surfaced by the fetch-and-aggregate run."""


class InvalidTimeRangeError(HourlyAvgError, ValueError):
    """Raised when the requested time range cannot be used."""


class FetchError(HourlyAvgError):
    """Raised when the data endpoint cannot be queried."""


class FetchTimeoutError(FetchError):
    """Raised when the request does not complete within the request timeout."""


class UnexpectedStatusError(FetchError):
    def __init__(self, status: int):
        super().__init__(f"unexpected status code: {status}")
        self.status = status


class UnexpectedContentTypeError(FetchError):
    def __init__(self, content_type: str | None):
        super().__init__(f"unexpected Content-Type: {content_type or '(missing)'}")
        self.content_type = content_type


class MalformedRecordError(HourlyAvgError):
    """Raised when a payload chunk violates the fixed-width record layout."""

    def __init__(self, message: str, chunk: bytes):
        super().__init__(f"{message}: {chunk!r}")
        self.chunk = chunk


class DeadlineExceededError(HourlyAvgError):
    """Raised when the process-wide deadline trips mid-aggregation."""

    def __init__(self, timeout: float):
        super().__init__(
            f"timeout reached ({timeout:g} seconds). please extend the timeout"
        )
        self.timeout = timeout
