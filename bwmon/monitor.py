"""BandwidthMonitor — the sampling/render loop and the `bwmon` command.

Handles: argparse, deadline-based tick loop, SIGWINCH redraw, ANSI
cursor-home double-buffering, quit key listener, final summary.
Cancellation is a threading.Event shared by the loop, the signal
handlers and the key listener.
"""

from __future__ import annotations

import logging
import shutil
import signal
import sys
import threading
import time
from argparse import ArgumentParser, Namespace
from dataclasses import dataclass
from typing import Callable, TextIO

from bwmon import ALIASES, REGISTRY, __version__
from bwmon.chart import MODES, ChartRenderer
from bwmon.errors import InterfaceNotFound, InterfaceVanished, InvalidPattern
from bwmon.resolver import resolve
from bwmon.sampler import ZERO, RateSample, RateSampler
from bwmon.screen import (
    Directions,
    build_frame,
    final_summary,
    interface_listing,
    static_line,
)
from bwmon.sources import CounterSource, InterfaceCounters, select_source
from bwmon.stats import DEFAULT_HISTORY, HistoryBuffer, SessionStats

logger = logging.getLogger(__name__)

DEFAULT_HEIGHT = 10
DEFAULT_INTERVAL = 0.5
MIN_INTERVAL = 0.1
# auto width = terminal columns minus label gutter and margin
WIDTH_MARGIN = 15
MIN_CHART_WIDTH = 20


@dataclass(frozen=True)
class MonitorConfig:
    interface: str | None = None
    height: int = DEFAULT_HEIGHT
    width: int = 0
    interval: float = DEFAULT_INTERVAL
    history: int = DEFAULT_HISTORY
    download_only: bool = False
    upload_only: bool = False
    show_summary: bool = False
    list_only: bool = False
    static: bool = False
    chart_only: bool = False
    mode: str = "gradient"
    source: str | None = None
    loopback: bool = False
    max_failures: int = 0

    @classmethod
    def from_args(cls, args: Namespace) -> MonitorConfig:
        return cls(
            interface=args.interface or None,
            height=args.height,
            width=args.width,
            interval=max(MIN_INTERVAL, args.interval),
            history=args.history,
            download_only=args.download_only,
            upload_only=args.upload_only,
            show_summary=args.summary and not args.chart_only,
            list_only=args.list,
            static=args.static,
            chart_only=args.chart_only,
            mode=args.mode,
            source=args.source,
            loopback=args.loopback,
            max_failures=args.max_failures,
        )

    @property
    def directions(self) -> Directions:
        return Directions.from_flags(self.download_only, self.upload_only)


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog="bwmon",
        description="Real-time network bandwidth monitor with ASCII charts.",
    )
    parser.add_argument("-i", "--interface", default=None,
                        help="Interface name or pattern: exact, substring, or wildcard "
                             "like 'wl*' (default: busiest interface)")
    parser.add_argument("-H", "--height", type=int, default=DEFAULT_HEIGHT,
                        help=f"Chart height in rows (default: {DEFAULT_HEIGHT})")
    parser.add_argument("-W", "--width", type=int, default=0,
                        help="Chart width in columns (default: 0 = fit terminal)")
    parser.add_argument("-t", "--interval", type=float, default=DEFAULT_INTERVAL,
                        help=f"Update interval in seconds (default: {DEFAULT_INTERVAL})")
    parser.add_argument("--history", type=int, default=DEFAULT_HISTORY,
                        help=f"Samples kept for the chart (default: {DEFAULT_HISTORY})")
    direction = parser.add_mutually_exclusive_group()
    direction.add_argument("-d", "--download-only", action="store_true",
                           help="Show download only")
    direction.add_argument("-u", "--upload-only", action="store_true",
                           help="Show upload only")
    parser.add_argument("-s", "--summary", action="store_true",
                        help="Show summary statistics")
    parser.add_argument("-l", "--list", action="store_true",
                        help="List available network interfaces and exit")
    parser.add_argument("--static", action="store_true",
                        help="One text line per sample, no chart")
    parser.add_argument("-c", "--chart-only", action="store_true",
                        help="Only the status line and charts")
    parser.add_argument("--mode", choices=MODES, default="gradient",
                        help="Chart style (default: gradient)")
    parser.add_argument("--source", choices=sorted(set(REGISTRY) | set(ALIASES)), default=None,
                        help="Counter backend (default: auto-detect)")
    parser.add_argument("--loopback", action="store_true",
                        help="Include loopback interfaces")
    parser.add_argument("--max-failures", type=int, default=0,
                        help="Give up after N consecutive failed reads (default: 0 = never)")
    parser.add_argument("--log-file", default=None,
                        help="Write log messages to this file")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Log level for --log-file (default: INFO)")
    parser.add_argument("-V", "--version", action="version",
                        version=f"%(prog)s {__version__}")
    return parser


def listen_for_quit(cancel: threading.Event, stream: TextIO | None = None) -> threading.Thread:
    """Set `cancel` when a line reading 'q' arrives on `stream` (stdin)."""
    if stream is None:
        stream = sys.stdin

    def _listen() -> None:
        for line in stream:
            if cancel.is_set():
                return
            if line.strip().lower() == "q":
                cancel.set()
                return

    thread = threading.Thread(target=_listen, name="bwmon-quit-key", daemon=True)
    thread.start()
    return thread


class BandwidthMonitor:
    """One monitoring session on a resolved interface.

    Lifecycle:
        1. run() takes the baseline reading (InterfaceVanished is fatal here)
        2. every interval tick() samples, records and draw() redraws
        3. a failed read skips the tick; --max-failures in a row is fatal
        4. cleanup and the final summary always run on the way out
    """

    def __init__(self, config: MonitorConfig, source: CounterSource, interface: str,
                 out: TextIO | None = None, cancel: threading.Event | None = None,
                 clock: Callable[[], float] = time.monotonic):
        self.config = config
        self.interface = interface
        self.out = out if out is not None else sys.stdout
        self.cancel = cancel if cancel is not None else threading.Event()
        self._clock = clock

        self.sampler = RateSampler(source, interface, clock)
        self.download = HistoryBuffer(config.history)
        self.upload = HistoryBuffer(config.history)
        self.stats = SessionStats(started_at=clock())
        self.renderer = ChartRenderer(config.mode)
        self.directions = config.directions

        self.last_rate: RateSample = ZERO
        self.failures = 0
        self._last_draw = 0.0

    # ---- per tick ----

    def chart_width(self) -> int:
        if self.config.width > 0:
            return self.config.width
        cols, _ = shutil.get_terminal_size()
        return max(MIN_CHART_WIDTH, cols - WIDTH_MARGIN)

    def tick(self) -> RateSample | None:
        """Sample once. Returns None when the tick was skipped."""
        try:
            rate = self.sampler.tick()
        except InterfaceVanished as e:
            self.failures += 1
            logger.warning("skipping tick (%d in a row): %s", self.failures, e)
            if self.config.max_failures and self.failures >= self.config.max_failures:
                raise
            return None
        self.failures = 0
        if rate.degenerate:
            return None

        self.last_rate = rate
        self.stats.record(rate)
        if self.directions.download:
            self.download.push(rate.download_bps)
        if self.directions.upload:
            self.upload.push(rate.upload_bps)
        return rate

    # ---- rendering ----

    def frame(self) -> list[str]:
        return build_frame(
            interface=self.interface,
            rate=self.last_rate,
            stats=self.stats,
            download=self.download.snapshot(),
            upload=self.upload.snapshot(),
            renderer=self.renderer,
            directions=self.directions,
            height=self.config.height,
            width=self.chart_width(),
            show_summary=self.config.show_summary,
            now=self._clock(),
        )

    def draw(self) -> None:
        if self.config.static:
            self.out.write(static_line(self.stats, self.last_rate, self.directions,
                                       self.config.show_summary) + "\n")
        else:
            body = "\n".join(line + "\033[K" for line in self.frame())
            self.out.write("\033[H" + body + "\033[J")
        self.out.flush()
        self._last_draw = time.monotonic()

    # ---- main loop ----

    def _install_signals(self) -> dict[int, object]:
        if threading.current_thread() is not threading.main_thread():
            return {}

        def on_stop(signum, frame):
            self.cancel.set()

        def on_resize(signum, frame):
            # rate-limit resize storms
            if time.monotonic() - self._last_draw >= 0.05:
                self.draw()

        previous = {}
        wanted = [(signal.SIGINT, on_stop), (signal.SIGTERM, on_stop)]
        if hasattr(signal, "SIGWINCH") and not self.config.static:
            wanted.append((signal.SIGWINCH, on_resize))
        for signum, handler in wanted:
            previous[signum] = signal.signal(signum, handler)
        return previous

    def run(self) -> int:
        """Blocking main loop. Returns the process exit status."""
        self.sampler.prime()
        previous = self._install_signals()

        if self.config.static:
            self.out.write(f"Monitoring {self.interface} ...\n")
        else:
            self.out.write("\033[2J\033[H\033[?25l")  # clear, home, hide cursor
        self.out.flush()

        next_tick = self._clock()
        try:
            while not self.cancel.is_set():
                next_tick += self.config.interval
                if self.cancel.wait(max(0.0, next_tick - self._clock())):
                    break
                if self.tick() is not None:
                    self.draw()
        finally:
            for signum, handler in previous.items():
                if handler is not None:
                    signal.signal(signum, handler)
            self.cleanup()
        return 0

    def cleanup(self) -> None:
        if not self.config.static:
            self.out.write("\033[?25h")  # show cursor
        self.out.write("\nStopped.\n\n")
        self.out.write("\n".join(final_summary(self.stats, self.directions, self._clock())) + "\n")
        self.out.flush()


def configure_logging(log_file: str | None, level: str) -> None:
    # the screen owns stdout/stderr while running, so only log to a file
    if log_file:
        logging.basicConfig(
            filename=log_file,
            level=level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.height < 1:
        parser.error("--height must be at least 1")
    if args.history < 1:
        parser.error("--history must be at least 1")
    if args.width < 0:
        parser.error("--width must not be negative")
    if args.max_failures < 0:
        parser.error("--max-failures must not be negative")

    configure_logging(args.log_file, args.log_level)
    config = MonitorConfig.from_args(args)

    try:
        source = select_source(config.source, include_loopback=config.loopback)
        interfaces = source.list_interfaces()
    except (ValueError, RuntimeError, OSError, ImportError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if config.list_only:
        print("\n".join(interface_listing(interfaces)))
        return 0

    try:
        interface = resolve(config.interface, interfaces)
    except (InterfaceNotFound, InvalidPattern) as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Use -l or --list to see available interfaces", file=sys.stderr)
        return 1
    logger.info("monitoring %s every %.2fs", interface, config.interval)

    monitor = BandwidthMonitor(config, source, interface)
    if sys.stdin is not None and sys.stdin.isatty():
        listen_for_quit(monitor.cancel)

    try:
        return monitor.run()
    except InterfaceVanished as e:
        available = ", ".join(i.name for i in _safe_list(source)) or "(none)"
        print(f"Error: {e}. Available: {available}", file=sys.stderr)
        return 1


def _safe_list(source: CounterSource) -> list[InterfaceCounters]:
    try:
        return source.list_interfaces()
    except OSError:
        return []


if __name__ == "__main__":
    sys.exit(main())
