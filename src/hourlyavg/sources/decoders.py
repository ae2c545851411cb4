from __future__ import annotations

from http.client import HTTPException
from typing import Iterator

from hourlyavg.domain.record import RawRecord
from hourlyavg.errors import FetchError, FetchTimeoutError
from hourlyavg.pipeline.deadline import Deadline
from hourlyavg.sources.transports import ByteStream


def _read_chunk(stream: ByteStream, size: int) -> bytes:
    """Read up to ``size`` bytes, retrying short reads until EOF."""
    buf = bytearray()
    while len(buf) < size:
        try:
            part = stream.read(size - len(buf))
        except TimeoutError as e:
            raise FetchTimeoutError(f"read timed out: {e}") from e
        except (OSError, HTTPException) as e:
            raise FetchError(f"read error: {e}") from e
        if not part:
            break
        buf += part
    return bytes(buf)


def read_record_chunks(
    stream: ByteStream,
    deadline: Deadline,
    *,
    size: int = RawRecord.SIZE,
) -> Iterator[bytes]:
    """Yield record-sized chunks, polling ``deadline`` before every read.

    A trailing short chunk is yielded as-is so the record parser can reject it.
    """
    while True:
        deadline.check()
        chunk = _read_chunk(stream, size)
        if not chunk:
            return
        yield chunk


class FixedWidthDecoder:
    """Turn a byte stream into ``RawRecord`` values, one fixed-width line each."""

    def __init__(self, *, record_size: int = RawRecord.SIZE):
        self.record_size = record_size
        self.records_read = 0

    def decode(self, stream: ByteStream, deadline: Deadline) -> Iterator[RawRecord]:
        for chunk in read_record_chunks(stream, deadline, size=self.record_size):
            record = RawRecord.parse(chunk)
            self.records_read += 1
            yield record