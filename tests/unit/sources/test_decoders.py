from __future__ import annotations

import pytest

from hourlyavg.errors import FetchError, FetchTimeoutError, MalformedRecordError
from hourlyavg.pipeline.deadline import Deadline
from hourlyavg.sources.decoders import FixedWidthDecoder, read_record_chunks
from tests.unit.helpers import TrickleStream, payload


class _FailingStream:
    def __init__(self, error: BaseException):
        self.error = error

    def read(self, size: int = -1) -> bytes:
        raise self.error


def test_chunks_are_record_sized():
    data = payload(("2024-01-01T00", 1.0), ("2024-01-01T00", 2.0))

    chunks = list(read_record_chunks(TrickleStream(data, step=11), Deadline(60)))

    assert [len(c) for c in chunks] == [30, 30]
    assert b"".join(chunks) == data


def test_trailing_partial_chunk_is_passed_through():
    data = payload(("2024-01-01T00", 1.0)) + b"2024-01-01T00"

    chunks = list(read_record_chunks(TrickleStream(data, step=30), Deadline(60)))

    assert chunks[-1] == b"2024-01-01T00"


def test_decoder_counts_parsed_records():
    data = payload(*[("2024-01-01T00", float(i)) for i in range(4)])
    decoder = FixedWidthDecoder()

    values = [r.value for r in decoder.decode(TrickleStream(data, step=64), Deadline(60))]

    assert values == [0.0, 1.0, 2.0, 3.0]
    assert decoder.records_read == 4


def test_decoder_rejects_partial_trailing_record():
    data = payload(("2024-01-01T00", 1.0)) + b"2024-01-01T01:00:00Z   2.0000"
    decoder = FixedWidthDecoder()

    with pytest.raises(MalformedRecordError):
        list(decoder.decode(TrickleStream(data, step=30), Deadline(60)))
    assert decoder.records_read == 1


def test_read_timeout_is_reported_as_fetch_timeout():
    stream = _FailingStream(TimeoutError("timed out"))

    with pytest.raises(FetchTimeoutError):
        list(read_record_chunks(stream, Deadline(60)))


def test_connection_reset_is_reported_as_read_error():
    stream = _FailingStream(ConnectionResetError("reset"))

    with pytest.raises(FetchError, match="read error"):
        list(read_record_chunks(stream, Deadline(60)))
