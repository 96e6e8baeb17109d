from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest

from ipsweep.config import SweepConfig
from ipsweep.errors import ProbeError
from ipsweep.models import ScanStatus
from ipsweep.scanner import icmp
from ipsweep.scanner.icmp import IcmpProber, ProbeSettings, echo, summarize_replies


def _pair(sent_at: float, rtt: float):
    return SimpleNamespace(sent_time=sent_at, time=sent_at), SimpleNamespace(time=sent_at + rtt)


def test_settings_from_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SWEEP_PROBE_COUNT", "2")
    monkeypatch.setenv("SWEEP_PROBE_TIMEOUT", "3.5")
    settings = ProbeSettings.from_config(SweepConfig())
    assert settings == ProbeSettings(count=2, interval=0.1, timeout=3.5)


def test_summarize_replies_averages_rtt() -> None:
    answered = [_pair(1.0, 0.010), _pair(1.1, 0.030)]
    assert summarize_replies(answered, 4) == (2, 20)
    assert summarize_replies([], 4) == (0, 0)


def test_echo_sends_count_requests_and_counts_replies(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = {}

    def fake_sr(requests, inter, timeout, verbose):
        captured.update(n=len(requests), inter=inter, timeout=timeout)
        return [_pair(0.0, 0.002) for _ in requests], []

    monkeypatch.setattr(icmp, "sr", fake_sr)
    result = echo("192.0.2.10", ProbeSettings())
    assert captured == {"n": 4, "inter": 0.1, "timeout": 1.0}
    assert (result.sent, result.received, result.avg_rtt_ms) == (4, 4, 2)
    assert result.status is ScanStatus.UP


def test_partial_replies_mean_down(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(icmp, "sr", lambda requests, **kw: ([_pair(0.0, 0.001)], requests[1:]))
    result = echo("192.0.2.11", ProbeSettings())
    assert result.received == 1
    assert result.status is ScanStatus.DOWN


def test_socket_errors_become_probe_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    def denied(*args, **kwargs):
        raise PermissionError("Operation not permitted")

    monkeypatch.setattr(icmp, "sr", denied)
    with pytest.raises(ProbeError) as exc:
        echo("192.0.2.12", ProbeSettings())
    assert exc.value.address == "192.0.2.12"


def test_build_failures_become_probe_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    def bad_ip(**kwargs):
        raise ValueError("bad destination")

    monkeypatch.setattr(icmp, "IP", bad_ip)
    with pytest.raises(ProbeError):
        icmp.build_echo_requests("192.0.2.13", 4)


def test_prober_runs_echo_off_the_event_loop(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(icmp, "sr", lambda requests, **kw: ([], requests))
    result = asyncio.run(IcmpProber(ProbeSettings(count=2))("192.0.2.14"))
    assert (result.sent, result.received) == (2, 0)
