from __future__ import annotations

import re
import struct
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import ClassVar

from hourlyavg.errors import InvalidTimeRangeError, MalformedRecordError


@dataclass(frozen=True)
class TimeRange:
    """Inclusive request window; both ends timezone-aware and ordered."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise InvalidTimeRangeError("start and end must be timezone-aware")
        if self.start > self.end:
            raise InvalidTimeRangeError(
                f"start time is after end time: {self.start.isoformat()}, {self.end.isoformat()}"
            )
        object.__setattr__(self, "start", self.start.astimezone(timezone.utc))
        object.__setattr__(self, "end", self.end.astimezone(timezone.utc))


# plain decimal or exponent notation, or the inf/nan words; no digit separators
_DECIMAL = re.compile(
    r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)


def _to_float32(value: float) -> float:
    return struct.unpack("<f", struct.pack("<f", value))[0]


@dataclass(frozen=True)
class RawRecord:
    """One fixed-width payload line: ``YYYY-MM-DDTHH:MM:SSZ NNN.NNNN\\n``.

    Byte layout::

        [0:13]   bucket key (``YYYY-MM-DDTHH``)
        [13:21]  minutes, seconds, zone and separator (not parsed)
        [21:29]  value, ASCII, optionally space padded
        [29]     newline
    """

    SIZE: ClassVar[int] = 30
    KEY: ClassVar[slice] = slice(0, 13)
    FILLER: ClassVar[slice] = slice(13, 21)
    VALUE: ClassVar[slice] = slice(21, 29)
    TERMINATOR: ClassVar[int] = 29

    key: str
    value: float

    @classmethod
    def parse(cls, chunk: bytes) -> "RawRecord":
        if not chunk or chunk[-1:] != b"\n":
            raise MalformedRecordError(
                "record does not end with a newline; invalid data format", chunk
            )
        if len(chunk) != cls.SIZE:
            raise MalformedRecordError(
                f"record must be {cls.SIZE} bytes, got {len(chunk)}", chunk
            )
        try:
            key = chunk[cls.KEY].decode("ascii")
            text = chunk[cls.VALUE].decode("ascii").strip()
            if not _DECIMAL.fullmatch(text):
                raise ValueError(f"invalid number {text!r}")
            value = _to_float32(float(text))
        except (UnicodeDecodeError, ValueError, OverflowError) as exc:
            raise MalformedRecordError(f"parse error ({exc})", chunk) from exc
        return cls(key=key, value=value)


@dataclass(frozen=True)
class AggregateLine:
    key: str
    average: float


@dataclass
class Bucket:
    """Running sum/count for one contiguous run of equal bucket keys."""

    key: str
    total: float = 0.0
    count: int = 0

    def add(self, value: float) -> None:
        self.total += value
        self.count += 1

    def average(self) -> float:
        return self.total / self.count

    def close(self) -> AggregateLine:
        return AggregateLine(key=self.key, average=self.average())
