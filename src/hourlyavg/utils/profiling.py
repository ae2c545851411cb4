from __future__ import annotations

import gc
import logging
import tracemalloc
from pathlib import Path

logger = logging.getLogger(__name__)

HEAP_PROFILE_PATH = Path("mem.prof")


def start_heap_tracking() -> None:
    if not tracemalloc.is_tracing():
        tracemalloc.start()


def write_heap_profile(path: Path = HEAP_PROFILE_PATH) -> Path:
    """Dump a tracemalloc snapshot; load it back with ``tracemalloc.Snapshot.load``."""
    if not tracemalloc.is_tracing():
        raise RuntimeError("heap tracking was not started")
    gc.collect()
    snapshot = tracemalloc.take_snapshot()
    snapshot.dump(str(path))
    current, peak = tracemalloc.get_traced_memory()
    logger.info("heap profile written to %s (current %d KB, peak %d KB)", path, current // 1024, peak // 1024)
    return path
