"""ChartRenderer — rasterizes a rate series into terminal rows.

Modes:
    gradient  bar chart with sub-row block glyphs and max/mid/min labels
    block     bar chart of solid blocks, no labels
    braille   plotext braille line chart
"""

from __future__ import annotations

import math
from typing import Sequence

import plotext as plt

from bwmon.units import LABEL_WIDTH, format_axis_label

MODES = ("gradient", "block", "braille")

# 9 density levels, empty to full
BLOCKS = " ▁▂▃▄▅▆▇█"
FULL = BLOCKS[-1]
EMPTY = " "
# Fractions at or below this leave the row above the bar blank.
PARTIAL_THRESHOLD = 0.1


def _position(value: float, min_val: float, max_val: float) -> float:
    """Where `value` sits in [min_val, max_val], 0.0 to 1.0."""
    value_range = max_val - min_val
    if value_range == 0:
        # flat series: scale against a range of 1
        return value - min_val
    if not math.isfinite(value_range):
        # range overflowed, halve everything first
        return (value / 2 - min_val / 2) / (max_val / 2 - min_val / 2)
    return (value - min_val) / value_range


def _finite_range(values: Sequence[float]) -> tuple[float, float] | None:
    finite = [v for v in values if math.isfinite(v)]
    if not finite:
        return None
    return min(finite), max(finite)


class ChartRenderer:
    """Pure function of (series, height, width, mode) to rows of text."""

    def __init__(self, mode: str = "gradient"):
        if mode not in MODES:
            raise ValueError(f"Unknown chart mode: {mode}. Choose from {', '.join(MODES)}")
        self.mode = mode

    @staticmethod
    def window(series: Sequence[float], width: int) -> list[float]:
        """The last `width` values, or all of them when fewer."""
        if width <= 0:
            return []
        return list(series[-width:])

    def rasterize(self, series: Sequence[float], height: int, width: int) -> list[list[str]]:
        """Character grid, row 0 at the top. Empty input gives []."""
        data = self.window(series, width)
        if not data or height <= 0:
            return []

        grid = [[EMPTY] * len(data) for _ in range(height)]
        bounds = _finite_range(data)
        if bounds is None:
            return grid
        min_val, max_val = bounds

        gradient = self.mode == "gradient"
        for x, value in enumerate(data):
            if not math.isfinite(value):
                continue
            y = min(max((1.0 - _position(value, min_val, max_val)) * height, 0.0), float(height))
            top = min(int(math.floor(y)), height - 1)
            for row in range(top, height):
                grid[row][x] = FULL

            frac = y - math.floor(y)
            if gradient and top > 0 and frac > PARTIAL_THRESHOLD:
                idx = min(int((1.0 - frac) * 8), 8)
                grid[top - 1][x] = BLOCKS[idx]
        return grid

    def render(self, series: Sequence[float], height: int, width: int) -> list[str]:
        """Text rows ready to print. Empty input gives []."""
        if self.mode == "braille":
            return self._render_braille(series, height, width)

        grid = self.rasterize(series, height, width)
        if not grid:
            return []
        if self.mode == "block":
            return ["".join(row) for row in grid]

        data = self.window(series, width)
        min_val, max_val = _finite_range(data) or (0.0, 0.0)
        labels = {
            height // 2: format_axis_label(max_val / 2 + min_val / 2),
            height - 1: format_axis_label(min_val),
            0: format_axis_label(max_val),
        }
        pad = " " * LABEL_WIDTH
        return [f"{labels.get(i, pad)} |{''.join(row)}" for i, row in enumerate(grid)]

    @staticmethod
    def _render_braille(series: Sequence[float], height: int, width: int) -> list[str]:
        data = ChartRenderer.window(series, width)
        if not data or height <= 0:
            return []
        # non-finite points are left out, not drawn as zero
        points = [(x, v) for x, v in enumerate(data) if math.isfinite(v)]
        if not points:
            return [" " * len(data)] * height
        xs = [x for x, _ in points]
        ys = [v for _, v in points]
        y_min, y_max = min(ys), max(ys)
        if y_max == y_min:
            y_max = y_min + 1.0

        plt.clf()
        plt.theme("clear")
        plt.plotsize(width, height)
        plt.plot(xs, ys, marker="braille")
        plt.frame(False)
        plt.xticks([])
        plt.yticks([])
        plt.ylim(y_min, y_max)
        plt.xlim(0, max(1, len(data) - 1))
        plt.grid(False, False)
        return plt.build().rstrip("\n").split("\n")
