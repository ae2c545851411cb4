from __future__ import annotations

import io
import logging
import time
from abc import ABC, abstractmethod
from contextlib import ExitStack
from http.client import HTTPException
from typing import Dict, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from hourlyavg.domain.record import TimeRange
from hourlyavg.config.settings import Settings
from hourlyavg.errors import (
    DeadlineExceededError,
    FetchError,
    FetchTimeoutError,
    UnexpectedContentTypeError,
    UnexpectedStatusError,
)
from hourlyavg.pipeline.deadline import Clock, Deadline
from hourlyavg.utils.time import format_rfc3339

logger = logging.getLogger(__name__)

EXPECTED_CONTENT_TYPE = "text/plain"


class ByteStream(ABC):
    """Readable payload handed to the aggregator, buffered or live."""

    @abstractmethod
    def read(self, size: int = -1) -> bytes:
        pass

    def close(self) -> None:
        return None


class BufferedByteStream(ByteStream):
    """Payload fully held in memory; no network resource behind it."""

    def __init__(self, data: bytes):
        self._buffer = io.BytesIO(data)
        self.size = len(data)

    def read(self, size: int = -1) -> bytes:
        return self._buffer.read(size)

    def close(self) -> None:
        self._buffer.close()


class LiveByteStream(ByteStream):
    """Payload read straight off the open HTTP response."""

    def __init__(self, response):
        self._response = response

    def read(self, size: int = -1) -> bytes:
        return self._response.read(size)

    def close(self) -> None:
        self._response.close()


class FetchResult:
    """A fetched payload plus whatever must be released once it is drained.

    Use as a context manager; leaving the block releases the live response
    when the body was streamed.
    """

    def __init__(
        self,
        stream: ByteStream,
        *,
        content_length: Optional[int] = None,
        resources: Optional[ExitStack] = None,
    ):
        self.stream = stream
        self.content_length = content_length
        self._resources = resources or ExitStack()

    @property
    def is_streamed(self) -> bool:
        return isinstance(self.stream, LiveByteStream)

    def close(self) -> None:
        self._resources.close()

    def __enter__(self) -> "FetchResult":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def _header(response, name: str) -> Optional[str]:
    headers = getattr(response, "headers", None)
    if headers is None:
        return None
    return headers.get(name)


def _content_length(response) -> Optional[int]:
    raw = _header(response, "Content-Length")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _is_timeout(exc: BaseException) -> bool:
    if isinstance(exc, TimeoutError):
        return True
    return isinstance(exc, URLError) and isinstance(exc.reason, TimeoutError)


class HttpTransport:
    """One-shot GET against the data endpoint with a bounded request time."""

    def __init__(
        self,
        endpoint: str,
        *,
        timeout: float,
        stream_threshold: int,
        headers: Optional[Dict[str, str]] = None,
        chunk_size: int = 64 * 1024,
        clock: Clock = time.monotonic,
    ):
        self.endpoint = endpoint
        self.timeout = timeout
        self.stream_threshold = stream_threshold
        self.headers = dict(headers or {})
        self.chunk_size = chunk_size
        self.clock = clock

    def url_for(self, time_range: TimeRange) -> str:
        query = urlencode(
            {
                "begin": format_rfc3339(time_range.start),
                "end": format_rfc3339(time_range.end),
            },
            safe=":",
        )
        sep = "&" if "?" in self.endpoint else "?"
        return f"{self.endpoint}{sep}{query}"

    def _should_stream(self, response, length: Optional[int]) -> bool:
        encoding = (_header(response, "Transfer-Encoding") or "").lower()
        if "chunked" in encoding:
            return True
        return length is not None and length > self.stream_threshold

    def _read_body(
        self,
        response,
        request_deadline: Deadline,
        deadline: Optional[Deadline] = None,
    ) -> bytes:
        parts: list[bytes] = []
        while True:
            if deadline is not None:
                deadline.check()
            if request_deadline.is_expired():
                raise FetchTimeoutError(
                    f"request did not complete within {self.timeout:g} seconds"
                )
            chunk = response.read(self.chunk_size)
            if not chunk:
                break
            parts.append(chunk)
        return b"".join(parts)

    def _socket_timeout(self, deadline: Optional[Deadline]) -> float:
        if deadline is None:
            return self.timeout
        remaining = deadline.remaining()
        if remaining <= 0:
            raise DeadlineExceededError(deadline.timeout)
        return min(self.timeout, remaining)

    def fetch(
        self,
        time_range: TimeRange,
        *,
        deadline: Optional[Deadline] = None,
        debug: bool = False,
    ) -> FetchResult:
        """GET ``time_range`` from the endpoint.

        The request is bounded by ``timeout`` and, when given, by the
        process-wide ``deadline``, whichever ends first.
        """
        url = self.url_for(time_range)
        socket_timeout = self._socket_timeout(deadline)
        request_deadline = Deadline(self.timeout, clock=self.clock)
        req = Request(url, headers=self.headers, method="GET")
        logger.debug("GET %s", url)

        with ExitStack() as stack:
            try:
                response = urlopen(req, timeout=socket_timeout)
            except HTTPError as e:
                e.close()
                raise UnexpectedStatusError(e.code) from e
            except (URLError, TimeoutError) as e:
                if _is_timeout(e):
                    raise FetchTimeoutError(f"failed to fetch data: {e}") from e
                raise FetchError(f"failed to fetch data: {e}") from e
            stack.callback(response.close)

            status = getattr(response, "status", None)
            if status != 200:
                raise UnexpectedStatusError(status)

            content_type = _header(response, "Content-Type")
            if not content_type or not content_type.startswith(EXPECTED_CONTENT_TYPE):
                raise UnexpectedContentTypeError(content_type)

            length = _content_length(response)
            if debug:
                logger.info("Content-Length: %d KB", (length or 0) // 1024)

            if self._should_stream(response, length):
                if debug:
                    logger.info("body stream enabled")
                # ownership of the open response moves to the caller
                return FetchResult(
                    LiveByteStream(response),
                    content_length=length,
                    resources=stack.pop_all(),
                )

            try:
                data = self._read_body(response, request_deadline, deadline)
            except TimeoutError as e:
                raise FetchTimeoutError(f"failed to read response body: {e}") from e
            except (OSError, HTTPException) as e:
                raise FetchError(f"failed to read response body: {e}") from e
            if debug:
                logger.info("Data size: %d KB", len(data) // 1024)
            return FetchResult(BufferedByteStream(data), content_length=len(data))


def fetch(
    time_range: TimeRange,
    *,
    settings: Settings,
    deadline: Optional[Deadline] = None,
    debug: bool = False,
) -> FetchResult:
    transport = HttpTransport(
        settings.endpoint,
        timeout=settings.request_timeout,
        stream_threshold=settings.stream_threshold_bytes,
    )
    return transport.fetch(time_range, deadline=deadline, debug=debug)
