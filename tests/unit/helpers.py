from __future__ import annotations

import io
from http.client import HTTPMessage


def record_line(hour_key: str, value: float, minute: int = 0) -> str:
    """Render one 30-byte payload line, e.g. ``2024-01-01T00:00:00Z  10.0000``."""
    return f"{hour_key}:{minute:02d}:00Z {value:8.4f}\n"


def payload(*rows: tuple[str, float]) -> bytes:
    return "".join(
        record_line(hour_key, value, minute=idx % 60)
        for idx, (hour_key, value) in enumerate(rows)
    ).encode("ascii")


class FakeResponse:
    """Minimal stand-in for the object returned by ``urlopen``."""

    def __init__(self, body: bytes = b"", *, status: int = 200, headers: dict | None = None):
        self._body = io.BytesIO(body)
        self.status = status
        self.headers = HTTPMessage()
        for name, value in (headers or {}).items():
            self.headers[name] = value
        self.closed = False

    def read(self, size: int = -1) -> bytes:
        return self._body.read(size)

    def close(self) -> None:
        self.closed = True


class CountingText(io.StringIO):
    """StringIO that records how often it was flushed."""

    def __init__(self):
        super().__init__()
        self.flushes = 0

    def flush(self) -> None:
        self.flushes += 1
        super().flush()


class TrickleStream:
    """Byte stream that hands out at most ``step`` bytes per read."""

    def __init__(self, data: bytes, step: int):
        self._buf = io.BytesIO(data)
        self.step = step
        self.reads = 0

    def read(self, size: int = -1) -> bytes:
        self.reads += 1
        if size < 0:
            size = self.step
        return self._buf.read(min(size, self.step))


class FakeClock:
    """Monotonic clock that advances by ``step`` seconds on every call."""

    def __init__(self, start: float = 0.0, step: float = 1.0):
        self.now = start
        self.step = step

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value
