from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from ipaddress import IPv4Address


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScanStatus(enum.Enum):
    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class ScanRecord:
    status: ScanStatus
    protocol: str
    port: int
    address: IPv4Address
    timestamp: datetime

    @property
    def is_up(self) -> bool:
        return self.status is ScanStatus.UP


@dataclass(frozen=True)
class ProbeResult:
    address: str
    sent: int
    received: int
    avg_rtt_ms: int
    finished_at: datetime = field(default_factory=utcnow)

    @property
    def status(self) -> ScanStatus:
        return ScanStatus.UP if self.sent == self.received else ScanStatus.DOWN


@dataclass(frozen=True)
class ProbeFailure:
    address: str
    error: str


@dataclass
class SweepSummary:
    dispatched: int = 0
    up: int = 0
    down: int = 0
    failed: int = 0
    # admission ended early on the stop event
    interrupted: bool = False

    @property
    def completed(self) -> int:
        return self.up + self.down + self.failed
