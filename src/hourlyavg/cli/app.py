import argparse
import logging
import sys
from pathlib import Path
from typing import NoReturn, Optional, Sequence

from pydantic import ValidationError

from hourlyavg.config.resolution import resolve_log_level
from hourlyavg.config.settings import SettingsContext, load_settings
from hourlyavg.domain.record import TimeRange
from hourlyavg.errors import HourlyAvgError, InvalidTimeRangeError
from hourlyavg.pipeline.deadline import Deadline
from hourlyavg.pipeline.runner import run_pipeline
from hourlyavg.utils.profiling import start_heap_tracking, write_heap_profile
from hourlyavg.utils.time import format_rfc3339, parse_rfc3339

DEBUG_MODE = "debug"


def _fail(err: object) -> NoReturn:
    print("Error:", err)
    raise SystemExit(1)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hourlyavg",
        description="Print hourly averages of a fixed-width time-series feed.",
    )
    parser.add_argument("start", help="range start, RFC3339 (e.g. 2024-01-01T00:00:00Z)")
    parser.add_argument("end", help="range end, RFC3339")
    parser.add_argument(
        "mode",
        nargs="?",
        help="pass the literal 'debug' for diagnostics and a heap profile",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="set logging level (default: WARNING, DEBUG in debug mode)",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help="path to hourlyavg.yaml (default: search upward from cwd)",
    )
    return parser


def validate_command_args(start: str, end: str) -> TimeRange:
    try:
        st = parse_rfc3339(start)
    except ValueError as e:
        raise InvalidTimeRangeError(f"invalid start time: {start}, err: {e}") from e
    try:
        ed = parse_rfc3339(end)
    except ValueError as e:
        raise InvalidTimeRangeError(f"invalid end time: {end}, err: {e}") from e
    return TimeRange(start=st, end=ed)


def _configure_logging(level: int, debug: bool) -> None:
    if not debug:
        logging.basicConfig(level=level, format="%(message)s")
        return
    from rich.console import Console
    from rich.logging import RichHandler

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )
    logging.basicConfig(level=level, format="%(message)s", handlers=[handler])


def _load_settings(config_path: Optional[Path]) -> SettingsContext:
    try:
        return load_settings(config_path)
    except (ValidationError, ValueError, TypeError, FileNotFoundError) as e:
        _fail(f"invalid configuration: {e}")


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _build_parser().parse_args(argv)
    debug = args.mode == DEBUG_MODE

    ctx = _load_settings(args.config)
    settings = ctx.settings
    deadline = Deadline(settings.process_timeout)

    level = resolve_log_level(
        args.log_level,
        settings.log_level,
        "DEBUG" if debug else None,
    )
    _configure_logging(level.value, debug)
    logger = logging.getLogger("hourlyavg.cli")
    if ctx.file_path is not None:
        logger.debug("settings loaded from %s", ctx.file_path)

    try:
        time_range = validate_command_args(args.start, args.end)
    except InvalidTimeRangeError as e:
        _fail(e)

    if debug:
        print(
            f"Start time: {format_rfc3339(time_range.start)}, "
            f"End time: {format_rfc3339(time_range.end)}"
        )
        start_heap_tracking()

    try:
        run_pipeline(time_range, settings=settings, deadline=deadline, debug=debug)
    except HourlyAvgError as e:
        _fail(e)

    if debug:
        try:
            write_heap_profile()
        except OSError as e:
            _fail(e)


if __name__ == "__main__":
    sys.exit(main())
