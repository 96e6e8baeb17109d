from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    return v if v is not None else default


def _getint(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _getfloat(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _getbool(name: str, default: bool = False) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.lower() in ("1", "true", "yes", "y", "on")


@dataclass
class SweepConfig:
    parallelism: int = field(default_factory=lambda: _getint("SWEEP_PARALLELISM", 128))
    # 0 means "same as parallelism"
    queue_size: int = field(default_factory=lambda: _getint("SWEEP_QUEUE_SIZE", 0))
    probe_count: int = field(default_factory=lambda: _getint("SWEEP_PROBE_COUNT", 4))
    probe_interval: float = field(default_factory=lambda: _getfloat("SWEEP_PROBE_INTERVAL", 0.1))
    probe_timeout: float = field(default_factory=lambda: _getfloat("SWEEP_PROBE_TIMEOUT", 1.0))

    def queue_size_for(self, parallelism: Optional[int] = None) -> int:
        if self.queue_size > 0:
            return self.queue_size
        return parallelism or self.parallelism


@dataclass
class RenderConfig:
    range: str = field(default_factory=lambda: _getenv("RENDER_RANGE", "193.5.16.0/22") or "193.5.16.0/22")
    up_color: str = field(default_factory=lambda: _getenv("RENDER_UP_COLOR", "#32c832") or "#32c832")
    down_color: str = field(default_factory=lambda: _getenv("RENDER_DOWN_COLOR", "#323232") or "#323232")
    unknown_color: Optional[str] = field(default_factory=lambda: _getenv("RENDER_UNKNOWN_COLOR"))


@dataclass
class OTelConfig:
    enabled: bool = field(default_factory=lambda: _getbool("OTEL_ENABLED", False))
    endpoint: str = field(
        default_factory=lambda: _getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317") or "http://localhost:4317"
    )
    service_name: str = field(default_factory=lambda: _getenv("OTEL_SERVICE_NAME", "ipsweep") or "ipsweep")


@dataclass
class AppConfig:
    sweep: SweepConfig = field(default_factory=SweepConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    otel: OTelConfig = field(default_factory=OTelConfig)
    log_level: str = field(default_factory=lambda: _getenv("LOG_LEVEL", "INFO") or "INFO")


def load_config() -> AppConfig:
    return AppConfig()
