from __future__ import annotations

import logging
from contextlib import ExitStack
from typing import Optional

from tqdm import tqdm

from hourlyavg.config.settings import Settings
from hourlyavg.domain.record import TimeRange
from hourlyavg.errors import DeadlineExceededError, HourlyAvgError
from hourlyavg.io.sinks import BufferedTextSink
from hourlyavg.pipeline.aggregator import TallySummary, tally
from hourlyavg.pipeline.deadline import Deadline
from hourlyavg.sources.transports import fetch

logger = logging.getLogger(__name__)


def run_pipeline(
    time_range: TimeRange,
    *,
    settings: Settings,
    deadline: Deadline,
    sink: Optional[BufferedTextSink] = None,
    debug: bool = False,
) -> TallySummary:
    """Fetch the range and print its hourly averages.

    When the scan fails (deadline or malformed data), lines already produced
    are flushed as a tentative result before the error propagates.
    """
    sink = sink or BufferedTextSink()
    with ExitStack() as stack:
        result = stack.enter_context(
            fetch(time_range, settings=settings, deadline=deadline, debug=debug)
        )
        stream = result.stream
        if debug:
            stream = stack.enter_context(
                tqdm.wrapattr(
                    stream,
                    "read",
                    total=result.content_length,
                    desc="tally",
                    leave=False,
                )
            )
        try:
            summary = tally(stream, deadline, sink)
        except DeadlineExceededError:
            logger.warning("deadline reached; printing tentative result")
            sink.flush()
            raise
        except HourlyAvgError:
            sink.flush()
            raise
    logger.info("%d records, %d hourly buckets", summary.records, summary.buckets)
    return summary
