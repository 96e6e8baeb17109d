from __future__ import annotations

import asyncio
import random
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import List, Optional, Tuple

from scapy.error import Scapy_Exception
from scapy.layers.inet import ICMP, IP
from scapy.sendrecv import sr

from ipsweep.config import SweepConfig
from ipsweep.errors import ProbeError
from ipsweep.logging_setup import get_logger
from ipsweep.models import ProbeResult, utcnow

log = get_logger(__name__)


@dataclass(frozen=True)
class ProbeSettings:
    count: int = 4
    interval: float = 0.1
    timeout: float = 1.0

    @classmethod
    def from_config(cls, cfg: SweepConfig) -> "ProbeSettings":
        return cls(count=cfg.probe_count, interval=cfg.probe_interval, timeout=cfg.probe_timeout)


def build_echo_requests(address: str, count: int) -> List:
    ident = random.randint(0, 0xFFFF)
    try:
        return [IP(dst=address) / ICMP(id=ident, seq=seq) for seq in range(count)]
    except (Scapy_Exception, ValueError, TypeError, OSError) as e:
        raise ProbeError(address, f"failed to build echo requests: {e}") from e


def summarize_replies(answered, count: int) -> Tuple[int, int]:
    """Return (received, average rtt in whole ms) for ``sr`` answers."""
    rtts: List[float] = []
    for request, reply in answered:
        sent_time = getattr(request, "sent_time", None) or request.time
        rtts.append(max(0.0, float(reply.time) - float(sent_time)))
    received = min(len(rtts), count)
    avg_ms = int(sum(rtts) / len(rtts) * 1000) if rtts else 0
    return received, avg_ms


def echo(address: str, settings: ProbeSettings) -> ProbeResult:
    """Blocking echo run. Needs root or CAP_NET_RAW for the raw socket."""
    requests = build_echo_requests(address, settings.count)
    try:
        answered, _unanswered = sr(requests, inter=settings.interval, timeout=settings.timeout, verbose=0)
    except (Scapy_Exception, OSError) as e:
        raise ProbeError(address, f"echo failed: {e}") from e
    received, avg_ms = summarize_replies(answered, settings.count)
    return ProbeResult(
        address=address,
        sent=len(requests),
        received=received,
        avg_rtt_ms=avg_ms,
        finished_at=utcnow(),
    )


class IcmpProber:
    """Async front for :func:`echo`, running each probe on ``executor``."""

    def __init__(self, settings: ProbeSettings, executor: Optional[Executor] = None):
        self.settings = settings
        self.executor = executor

    async def __call__(self, address: str) -> ProbeResult:
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(self.executor, echo, address, self.settings)
        log.debug("echo_done", ip=address, sent=result.sent, received=result.received, avg_rtt_ms=result.avg_rtt_ms)
        return result
