from __future__ import annotations

import sys
from typing import Optional, TextIO


class BufferedTextSink:
    """Collect text in memory and hand it to ``target`` in large writes.

    Pending text is written through once it reaches ``buffer_size``; the
    target itself is only flushed by an explicit ``flush()``.
    """

    def __init__(self, target: Optional[TextIO] = None, *, buffer_size: int = 4096):
        self._target = target
        self.buffer_size = buffer_size
        self._pending: list[str] = []
        self._pending_size = 0

    @property
    def target(self) -> TextIO:
        # resolved lazily so pytest's capsys sees the swapped stdout
        return self._target if self._target is not None else sys.stdout

    def write_text(self, s: str) -> None:
        self._pending.append(s)
        self._pending_size += len(s)
        if self._pending_size >= self.buffer_size:
            self._drain()

    def _drain(self) -> None:
        if not self._pending:
            return
        self.target.write("".join(self._pending))
        self._pending.clear()
        self._pending_size = 0

    def flush(self) -> None:
        self._drain()
        self.target.flush()
