# palette_dither/utils.py
from __future__ import annotations

"""
Shared utilities for palette_dither.

Includes time formatting, row partitioning for threaded passes, a colour usage
report, and tidy logging.
"""

import io
import sys
import threading
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, List, Tuple

import numpy as np

from .core_types import U8Image, rgb_to_hex


#  Time formatting


def format_seconds_compact(seconds: float) -> str:
    """Human-friendly seconds: '<ms>ms', '<s>s', or 'Mm Ss'."""
    if seconds < 1.0:
        return f"{seconds * 1000.0:.1f}ms"
    if seconds < 60.0:
        return f"{seconds:.3f}s"
    minutes = int(seconds // 60)
    return f"{minutes}m {seconds - 60 * minutes:.1f}s"


# Row partitioning


def split_rows_into_parts(height: int, parts: int) -> List[Tuple[int, int]]:
    """Partition range [0, height) into ~parts contiguous [start, end) row spans."""
    parts = max(1, int(parts))
    step = max(1, (height + parts - 1) // parts)
    return [(start, min(start + step, height)) for start in range(0, height, step)]


# Reports


def colour_usage_report(pixels: U8Image) -> List[Tuple[str, int]]:
    """
    Count each RGB colour in a [H,W,3|4] image.

    Returns a list of (hex, count) sorted by count descending, then hex.
    """
    flat = np.asarray(pixels)[..., :3].reshape(-1, 3)
    if flat.shape[0] == 0:
        return []
    uniques, counts = np.unique(flat, axis=0, return_counts=True)
    report = [(rgb_to_hex(row), int(n)) for row, n in zip(uniques, counts)]
    report.sort(key=lambda item: (-item[1], item[0]))
    return report


#  CLI / progress logging


def enable_line_buffered_stdout() -> None:
    """Flush stdout at every newline so per-file progress shows up live."""
    if isinstance(sys.stdout, io.TextIOWrapper):
        sys.stdout.reconfigure(line_buffering=True)


# Pretty logging

_capture = threading.local()


def _stdout():
    return getattr(_capture, "stream", None) or sys.stdout


@contextmanager
def captured_output() -> Iterator[io.StringIO]:
    """
    Collect this thread's log lines in a StringIO instead of stdout.
    Other threads keep printing normally.
    """
    buf = io.StringIO()
    previous = getattr(_capture, "stream", None)
    _capture.stream = buf
    try:
        yield buf
    finally:
        _capture.stream = previous


def key_value_pairs_to_string(pairs: Iterable[Tuple[str, Any]]) -> str:
    """'Name: value' blocks joined by two spaces; ints get thousands separators."""
    return "  ".join(
        f"{name}: {value:,}" if isinstance(value, int) else f"{name}: {value}"
        for name, value in pairs
    )


def print_config_line(
    section: str, pairs: Iterable[Tuple[str, Any]], debug: bool = False
) -> None:
    """One '[section] Name: value ...' line, e.g. '[run] Size: 640x480  Workers: 4'."""
    line = f"[{section}] {key_value_pairs_to_string(pairs)}"
    (debug_log if debug else log)(line)


def print_banner(title: str) -> None:
    """Section banner."""
    print(f"\n=== {title} ===", file=_stdout(), flush=True)


def log(message: str) -> None:
    """Plain log line."""
    print(message, file=_stdout(), flush=True)


def debug_log(message: str) -> None:
    """Debug log line."""
    print(f"[debug] {message}", file=_stdout(), flush=True)


def warn(message: str) -> None:
    """Warning log line."""
    print(f"[warn] {message}", file=_stdout(), flush=True)


def error(message: str) -> None:
    """Error log line to stderr."""
    print(f"[error] {message}", file=sys.stderr, flush=True)


__all__ = [
    "format_seconds_compact",
    "split_rows_into_parts",
    "colour_usage_report",
    "enable_line_buffered_stdout",
    "key_value_pairs_to_string",
    "print_config_line",
    "print_banner",
    "captured_output",
    "log",
    "debug_log",
    "warn",
    "error",
]
