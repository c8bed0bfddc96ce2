# tests/test_prober.py
import stat
import subprocess
import sys

import pytest

from astrace.errors import ProbeLaunchError
from astrace.prober.base import parse_raw_line
from astrace.prober.fake import FakeProber
from astrace.prober.mtr import MtrProber
from astrace.schemas import HostEvent, LatencyEvent

posix_only = pytest.mark.skipif(sys.platform.startswith("win"), reason="uses a shell script as mtr")


def fake_mtr(tmp_path, body):
    """Write an executable stand-in for mtr that runs the given shell body."""
    path = tmp_path / "mtr"
    path.write_text("#!/bin/sh\n" + body + "\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(path)


@pytest.mark.parametrize("line,expected", [
    ("h 0 192.168.1.1\n", HostEvent(1, "192.168.1.1")),
    ("h 4 2001:db8::1", HostEvent(5, "2001:db8::1")),
    ("p 2 15321 7", LatencyEvent(3, 15321)),
    ("d 1 router.example.net", None),
    ("x 0 3", None),
    ("", None),
    ("h", None),
    ("h x 1.1.1.1", None),
    ("p 0 fast 1", None),
    ("h -1 1.1.1.1", None),
])
def test_parse_raw_line(line, expected):
    assert parse_raw_line(line) == expected


def test_fake_prober_replays_lines_and_events():
    fake = FakeProber(script=["h 0 10.0.0.1", "garbage", LatencyEvent(1, 5)])
    assert list(fake.events("1.1.1.1")) == [HostEvent(1, "10.0.0.1"), LatencyEvent(1, 5)]
    assert fake.targets == ["1.1.1.1"]


def test_missing_binary_is_fatal(tmp_path):
    with pytest.raises(ProbeLaunchError):
        MtrProber(mtr_bin=str(tmp_path / "no-such-mtr"))


def test_build_cmd(tmp_path):
    p = MtrProber(mtr_bin=fake_mtr(tmp_path, "exit 0"), rounds=3, max_hops=20)
    cmd = p._build_cmd("8.8.8.8")
    assert cmd[1:] == ["--raw", "-n", "-c", "3", "-m", "20", "8.8.8.8"]

    p.use_sudo = True
    assert p._build_cmd("8.8.8.8")[:3] == ["sudo", "-n", p.mtr]


@posix_only
def test_events_stream_from_subprocess(tmp_path):
    script = "printf 'h 0 10.0.0.1\\np 0 1200 0\\nd 0 gw.lan\\nh 1 8.8.8.8\\n'"
    p = MtrProber(mtr_bin=fake_mtr(tmp_path, script))
    assert list(p.events("8.8.8.8")) == [
        HostEvent(1, "10.0.0.1"),
        LatencyEvent(1, 1200),
        HostEvent(2, "8.8.8.8"),
    ]


@posix_only
def test_failed_run_without_output_is_fatal(tmp_path):
    p = MtrProber(mtr_bin=fake_mtr(tmp_path, "echo 'mtr: unable to get raw sockets' >&2; exit 1"))
    with pytest.raises(ProbeLaunchError, match="raw sockets"):
        list(p.events("8.8.8.8"))


@pytest.fixture
def started(monkeypatch):
    """Record every process MtrProber starts."""
    procs = []
    real_popen = subprocess.Popen

    def capture(*args, **kwargs):
        proc = real_popen(*args, **kwargs)
        procs.append(proc)
        return proc

    monkeypatch.setattr(subprocess, "Popen", capture)
    return procs


@posix_only
def test_closing_early_terminates_process(tmp_path, started):
    script = "printf 'h 0 10.0.0.1\\n'; sleep 30"
    p = MtrProber(mtr_bin=fake_mtr(tmp_path, script))
    events = p.events("8.8.8.8")
    assert next(events) == HostEvent(1, "10.0.0.1")
    assert started[0].poll() is None
    events.close()
    assert started[0].poll() is not None


@posix_only
def test_process_starts_before_iteration(tmp_path, started):
    """events() launches mtr immediately; reading comes later."""
    p = MtrProber(mtr_bin=fake_mtr(tmp_path, "printf 'h 0 10.0.0.1\\n'"))
    events = p.events("8.8.8.8")
    assert len(started) == 1
    assert list(events) == [HostEvent(1, "10.0.0.1")]


def test_launch_error_raises_from_events_call(tmp_path, monkeypatch):
    p = MtrProber(mtr_bin=fake_mtr(tmp_path, "exit 0"))

    def refuse(*args, **kwargs):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr(subprocess, "Popen", refuse)
    with pytest.raises(ProbeLaunchError, match="Permission denied"):
        p.events("8.8.8.8")


@posix_only
def test_large_stderr_does_not_block(tmp_path):
    """mtr writing more than a pipe buffer to stderr still finishes and is reported."""
    script = "yes e | head -c 200000 >&2; echo 'mtr: failure' >&2; exit 1"
    p = MtrProber(mtr_bin=fake_mtr(tmp_path, script))
    with pytest.raises(ProbeLaunchError, match="mtr: failure"):
        list(p.events("8.8.8.8"))
