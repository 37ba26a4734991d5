"""
Shared utilities for sweep metrics: human-readable sizes, durations and throughput.
"""

from configuration import (
    BYTES_PER_KB,
    BYTES_PER_MB,
    MILLISECONDS_PER_SECOND,
)

BINARY_UNITS = ("B", "KiB", "MiB", "GiB", "TiB", "PiB", "EiB", "ZiB", "YiB")


def format_bytes(size_bytes: float, precision: int = 4) -> str:
    """
    Format a byte count with binary units, e.g. 2097152 -> '2MiB', 1572864 -> '1.5MiB'.

    The value is divided by 1024 until it drops below 1024 (or the largest
    unit is reached) and printed with `precision` significant digits.

    Args:
        size_bytes: Size in bytes
        precision: Number of significant digits (default: 4)

    Returns:
        Human-readable size string without a space between value and unit
    """
    size = float(size_bytes)
    unit_index = 0
    while size >= BYTES_PER_KB and unit_index < len(BINARY_UNITS) - 1:
        size /= BYTES_PER_KB
        unit_index += 1
    return f"{size:.{precision}g}{BINARY_UNITS[unit_index]}"


def elapsed_milliseconds(start: float, end: float) -> int:
    """
    Convert a pair of perf_counter() readings to whole milliseconds.

    Truncates like a duration's millisecond count, so 1.9 ms reports as 1.
    """
    return int((end - start) * MILLISECONDS_PER_SECOND)


def calculate_throughput_mib_per_second(total_bytes: float, duration_ms: float) -> float:
    """
    Calculate throughput in MiB per second from bytes and a millisecond duration.

    Args:
        total_bytes: Total bytes transferred
        duration_ms: Duration in milliseconds

    Returns:
        Throughput in MiB/s, 0.0 for non-positive durations
    """
    if duration_ms <= 0:
        return 0.0
    seconds = duration_ms / MILLISECONDS_PER_SECOND
    return total_bytes / BYTES_PER_MB / seconds
