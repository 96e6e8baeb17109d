from __future__ import annotations

import logging

import pytest

from ipsweep.config import load_config
from ipsweep.logging_setup import resolve_level
from ipsweep.otel import init_otel


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("SWEEP_PARALLELISM", "SWEEP_QUEUE_SIZE", "RENDER_RANGE", "RENDER_UNKNOWN_COLOR", "OTEL_ENABLED"):
        monkeypatch.delenv(name, raising=False)
    cfg = load_config()
    assert cfg.sweep.parallelism == 128
    assert cfg.sweep.queue_size_for() == 128
    assert cfg.sweep.queue_size_for(4) == 4
    assert (cfg.sweep.probe_count, cfg.sweep.probe_interval, cfg.sweep.probe_timeout) == (4, 0.1, 1.0)
    assert cfg.render.range == "193.5.16.0/22"
    assert cfg.render.unknown_color is None
    assert cfg.otel.enabled is False


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SWEEP_PARALLELISM", "16")
    monkeypatch.setenv("SWEEP_QUEUE_SIZE", "64")
    monkeypatch.setenv("RENDER_UP_COLOR", "#ffffff")
    monkeypatch.setenv("OTEL_ENABLED", "yes")
    cfg = load_config()
    assert cfg.sweep.parallelism == 16
    assert cfg.sweep.queue_size_for(4) == 64
    assert cfg.render.up_color == "#ffffff"
    assert cfg.otel.enabled is True


def test_malformed_numbers_fall_back(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SWEEP_PARALLELISM", "lots")
    monkeypatch.setenv("SWEEP_PROBE_TIMEOUT", "soon")
    cfg = load_config()
    assert cfg.sweep.parallelism == 128
    assert cfg.sweep.probe_timeout == 1.0


def test_disabled_telemetry_installs_nothing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OTEL_ENABLED", "0")
    assert init_otel(load_config().otel, "scan") is None


@pytest.mark.parametrize(
    "level,expected",
    [("debug", logging.DEBUG), ("WARNING", logging.WARNING), ("bogus", logging.INFO), (logging.ERROR, logging.ERROR)],
)
def test_resolve_level(level, expected) -> None:
    assert resolve_level(level) == expected
