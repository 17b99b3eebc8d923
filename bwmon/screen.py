"""Text layout for the live screen, static mode and the exit summary."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from bwmon.chart import ChartRenderer
from bwmon.sampler import RateSample
from bwmon.sources import InterfaceCounters
from bwmon.stats import SessionStats, StatisticsTracker
from bwmon.units import format_rate, format_size

QUIT_HINT = "Press 'q' (then Enter) or Ctrl+C to quit"


@dataclass(frozen=True)
class Directions:
    download: bool = True
    upload: bool = True

    @classmethod
    def from_flags(cls, download_only: bool, upload_only: bool) -> Directions:
        return cls(download=not upload_only, upload=not download_only)


def header_line(interface: str) -> str:
    return f"═══ Bandwidth Monitor ({interface}) ═══"


def rate_line(rate: RateSample, directions: Directions) -> str:
    parts = []
    if directions.download:
        parts.append(f"Download: {format_rate(rate.download_bps):>12}")
    if directions.upload:
        parts.append(f"Upload: {format_rate(rate.upload_bps):>12}")
    return "  │  ".join(parts) + "  " + QUIT_HINT


def _tracker_line(label: str, t: StatisticsTracker) -> str:
    return (f"  {label:<9} Min={format_rate(t.minimum())} | Avg={format_rate(t.mean())}"
            f" | Max={format_rate(t.peak())} | StdDev={format_rate(t.stddev())}")


def summary_lines(stats: SessionStats, directions: Directions, now: float | None = None) -> list[str]:
    lines = ["Statistics:", f"  Samples: {stats.samples}   Runtime: {stats.runtime(now):.1f}s"]
    if directions.download:
        lines.append(_tracker_line("Download:", stats.download))
    if directions.upload:
        lines.append(_tracker_line("Upload:", stats.upload))
    lines.append(f"  Total RX: {format_size(stats.total_rx)}  │  Total TX: {format_size(stats.total_tx)}")
    return lines


def chart_block(title: str, series: Sequence[float], renderer: ChartRenderer,
                height: int, width: int) -> list[str]:
    rows = renderer.render(series, height, width)
    if not rows:
        return []
    return [f"{title} History:", *rows]


def build_frame(*, interface: str, rate: RateSample, stats: SessionStats,
                download: Sequence[float], upload: Sequence[float],
                renderer: ChartRenderer, directions: Directions,
                height: int, width: int, show_summary: bool,
                now: float | None = None) -> list[str]:
    """All lines of one full-screen redraw."""
    lines = [header_line(interface), rate_line(rate, directions)]
    if show_summary:
        lines.extend(summary_lines(stats, directions, now))
    lines.append("")

    blocks = []
    if directions.download:
        blocks.append(chart_block("Download", download, renderer, height, width))
    if directions.upload:
        blocks.append(chart_block("Upload", upload, renderer, height, width))
    blocks = [b for b in blocks if b]
    for i, block in enumerate(blocks):
        if i:
            lines.append("")
        lines.extend(block)
    return lines


def static_line(stats: SessionStats, rate: RateSample, directions: Directions,
                show_summary: bool) -> str:
    parts = [f"sample={stats.samples}"]
    if directions.download:
        parts.append(f"↓ {format_rate(rate.download_bps)}")
    if directions.upload:
        parts.append(f"↑ {format_rate(rate.upload_bps)}")
    if show_summary and stats.samples:
        avgs = []
        if directions.download:
            avgs.append(f"↓{format_rate(stats.download.mean())}")
        if directions.upload:
            avgs.append(f"↑{format_rate(stats.upload.mean())}")
        parts.append(f"(avg: {' '.join(avgs)})")
    return " ".join(parts)


def final_summary(stats: SessionStats, directions: Directions, now: float | None = None) -> list[str]:
    lines = [
        "Final Statistics:",
        f"  Total Samples: {stats.samples}",
        f"  Runtime: {stats.runtime(now):.1f}s",
        f"  Total Data: Downloaded = {format_size(stats.total_rx)}, "
        f"Uploaded = {format_size(stats.total_tx)}",
    ]
    if directions.download and stats.download.count:
        lines.append(_tracker_line("Download:", stats.download))
    if directions.upload and stats.upload.count:
        lines.append(_tracker_line("Upload:", stats.upload))
    return lines


def interface_listing(interfaces: Sequence[InterfaceCounters]) -> list[str]:
    lines = ["Available Network Interfaces:", "─" * 60]
    if not interfaces:
        lines.append("  (none)")
    for idx, iface in enumerate(interfaces, 1):
        lines.append(f"  {idx}. {iface.name:<16s} RX: {format_size(iface.rx_bytes):>12}"
                     f"  TX: {format_size(iface.tx_bytes):>12}")
    lines += [
        "",
        "Tip: use -i with an interface name or pattern",
        "     - Partial match: -i eth   (shortest matching name wins)",
        "     - Wildcards:     -i 'wl*' or -i 'eth?'",
    ]
    return lines
