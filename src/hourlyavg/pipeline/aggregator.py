from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from hourlyavg.domain.record import AggregateLine, Bucket, RawRecord
from hourlyavg.io.formatters import AggregateLineFormatter
from hourlyavg.io.sinks import BufferedTextSink
from hourlyavg.pipeline.deadline import Deadline
from hourlyavg.sources.decoders import FixedWidthDecoder
from hourlyavg.sources.transports import ByteStream

logger = logging.getLogger(__name__)


def iter_hourly_averages(records: Iterable[RawRecord]) -> Iterator[AggregateLine]:
    """Average each maximal run of records that share a bucket key.

    Precondition: input is sorted by bucket key. A key that shows up again
    after a different one starts a new bucket; nothing is regrouped.

    Only the open bucket is held in memory. The last bucket is emitted when
    the input is exhausted, even if it holds a single record.
    """
    current: Optional[Bucket] = None
    for record in records:
        if current is None:
            current = Bucket(record.key)
        elif record.key != current.key:
            yield current.close()
            current = Bucket(record.key)
        current.add(record.value)
    if current is not None:
        yield current.close()


@dataclass(frozen=True)
class TallySummary:
    records: int
    buckets: int


def tally(
    stream: ByteStream,
    deadline: Deadline,
    sink: Optional[BufferedTextSink] = None,
) -> TallySummary:
    """Drain ``stream`` and write one averaged line per hour bucket to ``sink``.

    The sink is flushed once, after the last bucket, on success only. Lines
    the sink already passed to its target before a failure stay written.
    """
    sink = sink or BufferedTextSink()
    decoder = FixedWidthDecoder()
    fmt = AggregateLineFormatter()
    buckets = 0
    for line in iter_hourly_averages(decoder.decode(stream, deadline)):
        sink.write_text(fmt(line))
        buckets += 1
    sink.flush()
    logger.debug("tallied %d records into %d buckets", decoder.records_read, buckets)
    return TallySummary(records=decoder.records_read, buckets=buckets)
