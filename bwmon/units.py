"""Unit scaling for rates, byte totals and chart axis labels."""

from __future__ import annotations

RATE_UNITS = [("B/s", 1), ("KB/s", 1024), ("MB/s", 1024**2), ("GB/s", 1024**3)]
SIZE_UNITS = [("B", 1), ("KB", 1024), ("MB", 1024**2), ("GB", 1024**3), ("TB", 1024**4)]

LABEL_WIDTH = 7


def pick_unit(max_val: float, units: list[tuple[str, int]] | None = None) -> tuple[str, int]:
    """Choose the best unit so the peak value is readable."""
    if units is None:
        units = RATE_UNITS
    for name, divisor in reversed(units):
        if max_val >= divisor:
            return name, divisor
    return units[0]


def format_rate(bps: float, units: list[tuple[str, int]] | None = None) -> str:
    """Format a value into a human-readable string with auto-scaled units."""
    name, divisor = pick_unit(bps, units)
    return f"{bps / divisor:.2f} {name}"


def format_size(nbytes: float) -> str:
    return format_rate(nbytes, SIZE_UNITS)


def format_axis_label(value: float) -> str:
    """Fixed-width chart label: 1.5M, 12.0K or 999.9."""
    if value >= 1_000_000:
        return f"{value / 1_000_000:>{LABEL_WIDTH - 1}.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:>{LABEL_WIDTH - 1}.1f}K"
    return f"{value:>{LABEL_WIDTH}.1f}"
