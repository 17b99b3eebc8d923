from __future__ import annotations

import io
import threading

import pytest

import bwmon.monitor as monitor_mod
from bwmon.errors import InterfaceVanished
from bwmon.monitor import (
    BandwidthMonitor,
    MonitorConfig,
    build_parser,
    listen_for_quit,
    main,
)
from bwmon.sources import InterfaceCounters

from conftest import FakeClock, FakeSource


def test_parser_defaults() -> None:
    config = MonitorConfig.from_args(build_parser().parse_args([]))
    assert config.interface is None
    assert config.height == 10
    assert config.width == 0
    assert config.interval == 0.5
    assert config.history == 120
    assert config.mode == "gradient"
    assert config.directions.download and config.directions.upload


def test_parser_flags() -> None:
    args = build_parser().parse_args(
        ["-i", "wl*", "-H", "15", "-W", "60", "-t", "0.01", "-u", "-s", "--mode", "block"]
    )
    config = MonitorConfig.from_args(args)
    assert config.interface == "wl*"
    assert (config.height, config.width) == (15, 60)
    assert config.interval == 0.1
    assert not config.directions.download
    assert config.show_summary


def test_chart_only_hides_summary() -> None:
    config = MonitorConfig.from_args(build_parser().parse_args(["-s", "-c"]))
    assert not config.show_summary


def test_direction_flags_are_exclusive() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["-d", "-u"])


def _monitor(source: FakeSource, clock: FakeClock, **kw) -> BandwidthMonitor:
    config = MonitorConfig(width=20, history=3, **kw)
    return BandwidthMonitor(config, source, "eth0", out=io.StringIO(), clock=clock)


def test_tick_records_history_and_stats() -> None:
    source = FakeSource([], readings=[(0, 0), (100, 10), (300, 30)])
    mon = _monitor(source, FakeClock(0.0, 0.0, 1.0, 2.0))
    mon.sampler.prime()
    mon.tick()
    mon.tick()
    assert mon.download.snapshot() == [100.0, 200.0]
    assert mon.upload.snapshot() == [10.0, 20.0]
    assert mon.stats.samples == 2
    assert mon.stats.total_rx == 300
    assert mon.last_rate.download_bps == 200.0


def test_tick_respects_direction_filter() -> None:
    source = FakeSource([], readings=[(0, 0), (100, 10)])
    mon = _monitor(source, FakeClock(0.0, 0.0, 1.0), download_only=True)
    mon.sampler.prime()
    mon.tick()
    assert mon.download.snapshot() == [100.0]
    assert mon.upload.snapshot() == []


def test_vanished_tick_is_skipped() -> None:
    source = FakeSource([], readings=[(0, 0), InterfaceVanished("eth0"), (200, 20)])
    mon = _monitor(source, FakeClock(0.0, 0.0, 1.0, 2.0))
    mon.sampler.prime()
    assert mon.tick() is None
    assert mon.failures == 1
    rate = mon.tick()
    assert rate is not None
    assert rate.download_bps == 200.0
    assert mon.failures == 0


def test_too_many_failures_is_fatal() -> None:
    source = FakeSource([], readings=[(0, 0), InterfaceVanished("eth0"), InterfaceVanished("eth0")])
    mon = _monitor(source, FakeClock(0.0), max_failures=2)
    mon.sampler.prime()
    assert mon.tick() is None
    with pytest.raises(InterfaceVanished):
        mon.tick()


def test_draw_full_screen() -> None:
    source = FakeSource([], readings=[(0, 0), (100, 10)])
    mon = _monitor(source, FakeClock(0.0, 0.0, 1.0), show_summary=True)
    mon.sampler.prime()
    mon.tick()
    mon.draw()
    out = mon.out.getvalue()
    assert out.startswith("\033[H")
    assert out.endswith("\033[J")
    assert "Bandwidth Monitor (eth0)" in out
    assert "Download History:" in out


def test_run_until_cancelled() -> None:
    cancel = threading.Event()

    def stop_after_three(reads: int) -> None:
        if reads >= 3:
            cancel.set()

    source = FakeSource([], readings=[(0, 0), (100, 10), (300, 30)], on_read=stop_after_three)
    config = MonitorConfig(static=True, interval=0.1)
    out = io.StringIO()
    mon = BandwidthMonitor(config, source, "eth0", out=out, cancel=cancel)
    assert mon.run() == 0
    text = out.getvalue()
    assert text.startswith("Monitoring eth0 ...")
    assert "sample=1" in text
    assert "sample=2" in text
    assert "Stopped." in text
    assert "Final Statistics:" in text
    assert mon.stats.total_rx == 300


def test_cleanup_runs_when_the_loop_fails() -> None:
    source = FakeSource([], readings=[(0, 0), InterfaceVanished("eth0")])
    config = MonitorConfig(interval=0.1, max_failures=1)
    out = io.StringIO()
    mon = BandwidthMonitor(config, source, "eth0", out=out)
    with pytest.raises(InterfaceVanished):
        mon.run()
    assert "\033[?25h" in out.getvalue()
    assert "Final Statistics:" in out.getvalue()


def test_quit_key_sets_cancel() -> None:
    cancel = threading.Event()
    thread = listen_for_quit(cancel, io.StringIO("x\n  Q \n"))
    thread.join(timeout=2)
    assert cancel.is_set()


def test_other_keys_do_not_cancel() -> None:
    cancel = threading.Event()
    listen_for_quit(cancel, io.StringIO("x\nquit\n")).join(timeout=2)
    assert not cancel.is_set()


@pytest.fixture
def fake_source(monkeypatch, interfaces):
    source = FakeSource(interfaces)
    monkeypatch.setattr(monitor_mod, "select_source", lambda name=None, include_loopback=False: source)
    return source


def test_main_lists_interfaces(fake_source, capsys) -> None:
    assert main(["--list"]) == 0
    out = capsys.readouterr().out
    for name in ("eth0", "eth1", "wlan0"):
        assert name in out


def test_main_unknown_interface(fake_source, capsys) -> None:
    assert main(["-i", "zzz"]) == 1
    err = capsys.readouterr().err
    assert "eth0, eth1, wlan0" in err
    assert "--list" in err


def test_main_invalid_pattern(fake_source, capsys) -> None:
    assert main(["-i", "eth[0*"]) == 1
    assert "Invalid pattern" in capsys.readouterr().err


def test_main_interface_gone_at_start(monkeypatch, capsys) -> None:
    source = FakeSource([InterfaceCounters("eth0", 1, 1)], readings=[InterfaceVanished("eth0")])
    monkeypatch.setattr(monitor_mod, "select_source", lambda name=None, include_loopback=False: source)
    assert main(["-i", "eth0"]) == 1
    assert "Available: eth0" in capsys.readouterr().err


def test_main_rejects_bad_height(fake_source) -> None:
    with pytest.raises(SystemExit):
        main(["-H", "0"])
