from __future__ import annotations

import asyncio
import ipaddress
from typing import Awaitable, Callable, Iterable, List, Optional, TextIO, Union

from opentelemetry import trace, metrics

from ipsweep.errors import ConfigurationError, ProbeError
from ipsweep.logging_setup import get_logger
from ipsweep.models import ProbeFailure, ProbeResult, ScanRecord, SweepSummary
from ipsweep.parser import COMMENT_CHAR, format_record, schema_header

log = get_logger(__name__)
tracer = trace.get_tracer(__name__)
meter = metrics.get_meter(__name__)

metric_probed = meter.create_counter("ipsweep_hosts_probed_total")
metric_errors = meter.create_counter("ipsweep_probe_errors_total")

PROBE_PROTOCOL = "icmp"

Prober = Callable[[str], Awaitable[ProbeResult]]
Outcome = Union[ProbeResult, ProbeFailure]
Target = Union[str, ipaddress.IPv4Address]

# end-of-stream marker for the writer
_DONE = object()


def record_from_probe(result: ProbeResult) -> ScanRecord:
    return ScanRecord(
        status=result.status,
        protocol=PROBE_PROTOCOL,
        port=0,
        address=ipaddress.IPv4Address(result.address),
        timestamp=result.finished_at.replace(microsecond=0),
    )


def format_stats(result: ProbeResult) -> str:
    return f"{COMMENT_CHAR}stats {result.address} {result.sent} {result.received} {result.avg_rtt_ms}"


class Sweeper:
    """One sweep run: admission semaphore, result queue, writer and sink.

    At most ``parallelism`` probes are in flight. Workers never touch the
    sink; they hand outcomes to a single writer through a bounded queue.
    ``run`` returns only after every dispatched probe finished and the
    writer flushed, so the caller may close the sink right after.
    """

    def __init__(
        self,
        prober: Prober,
        sink: TextIO,
        parallelism: int = 128,
        queue_size: Optional[int] = None,
        stop: Optional[asyncio.Event] = None,
    ):
        if parallelism < 1:
            raise ConfigurationError(f"parallelism must be at least 1, got {parallelism}")
        self.prober = prober
        self.sink = sink
        self.parallelism = parallelism
        self.queue_size = queue_size if queue_size and queue_size > 0 else parallelism
        self.stop = stop
        self.summary = SweepSummary()
        self._sink_error: Optional[Exception] = None

    async def run(self, targets: Iterable[Target]) -> SweepSummary:
        sem = asyncio.Semaphore(self.parallelism)
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        tasks: List[asyncio.Task] = []

        with tracer.start_as_current_span("sweep"):
            log.info("sweep_start", parallelism=self.parallelism, queue_size=self.queue_size)
            writer = asyncio.create_task(self._write(queue))
            try:
                for address in targets:
                    if self._should_stop():
                        break
                    # blocks while all slots are taken
                    await sem.acquire()
                    if self._should_stop():
                        sem.release()
                        break
                    tasks.append(asyncio.create_task(self._probe(str(address), sem, queue)))
                    self.summary.dispatched += 1
                log.info("dispatch_finished", dispatched=self.summary.dispatched)
            finally:
                results = await asyncio.gather(*tasks, return_exceptions=True)
                await queue.put(_DONE)
                await writer

        errors = [r for r in results if isinstance(r, BaseException)]
        if errors:
            raise errors[0]
        if self._sink_error is not None:
            raise self._sink_error

        s = self.summary
        log.info(
            "sweep_complete",
            dispatched=s.dispatched,
            up=s.up,
            down=s.down,
            failed=s.failed,
            interrupted=s.interrupted,
        )
        return s

    def _should_stop(self) -> bool:
        if self._sink_error is not None:
            log.warning("sweep_admission_stopped", reason="sink_error", dispatched=self.summary.dispatched)
            return True
        if self.stop is not None and self.stop.is_set():
            self.summary.interrupted = True
            log.warning("sweep_admission_stopped", reason="stop_requested", dispatched=self.summary.dispatched)
            return True
        return False

    async def _probe(self, address: str, sem: asyncio.Semaphore, queue: asyncio.Queue) -> None:
        try:
            try:
                outcome: Outcome = await self.prober(address)
            except ProbeError as e:
                outcome = ProbeFailure(address=address, error=e.reason)
            await queue.put(outcome)
        finally:
            sem.release()

    async def _write(self, queue: asyncio.Queue) -> None:
        self._emit(schema_header())
        while True:
            outcome = await queue.get()
            try:
                if outcome is _DONE:
                    break
                self._collect(outcome)
            finally:
                queue.task_done()
        if self._sink_error is None:
            try:
                self.sink.flush()
            except (OSError, ValueError) as e:
                self._sink_error = e

    def _collect(self, outcome: Outcome) -> None:
        if isinstance(outcome, ProbeFailure):
            self.summary.failed += 1
            metric_errors.add(1)
            log.warning("probe_failed", ip=outcome.address, error=outcome.error)
            return

        record = record_from_probe(outcome)
        if record.is_up:
            self.summary.up += 1
        else:
            self.summary.down += 1
        metric_probed.add(1, {"status": record.status.value})
        self._emit(format_record(record), format_stats(outcome))
        log.info(
            "host_probed",
            ip=outcome.address,
            status=record.status.value,
            sent=outcome.sent,
            received=outcome.received,
            avg_rtt_ms=outcome.avg_rtt_ms,
        )

    def _emit(self, *lines: str) -> None:
        # after a failed write keep draining the queue so workers never block
        if self._sink_error is not None:
            return
        try:
            for line in lines:
                self.sink.write(line + "\n")
        except (OSError, ValueError) as e:
            # ValueError: write to a closed file
            self._sink_error = e
            log.error("sink_write_failed", error=str(e))
