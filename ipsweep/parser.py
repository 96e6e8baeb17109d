"""Reading the interchange stream.

Schema v1 is one record per line::

    status protocol port address timestamp

separated by single spaces. Lines starting with ``#`` are comments. The
legacy ``address,status,sent,recv,avg_rtt_ms`` layout is only read through
:func:`parse_legacy_line`, never guessed.
"""
from __future__ import annotations

import ipaddress
import re
from datetime import datetime, timezone
from typing import Iterable, Iterator, Optional

from opentelemetry import metrics

from ipsweep.errors import ParseError
from ipsweep.logging_setup import get_logger
from ipsweep.models import ScanRecord, ScanStatus

log = get_logger(__name__)
meter = metrics.get_meter(__name__)

metric_skipped = meter.create_counter("ipsweep_records_skipped_total")

SCHEMA_VERSION = 1
SCHEMA_FIELDS = ("status", "protocol", "port", "address", "timestamp")
COMMENT_CHAR = "#"
FIELD_SEP = " "
UP_KEYWORD = "up"
LEGACY_FIELD_SEP = ","
LEGACY_PROTOCOL = "icmp"

_PORT_RE = re.compile(r"[0-9]+")
_TIMESTAMP_RE = re.compile(r"-?[0-9]+")
EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


def _status(token: str) -> ScanStatus:
    # anything that is not exactly the up keyword counts as down
    return ScanStatus.UP if token == UP_KEYWORD else ScanStatus.DOWN


def _address(token: str, line: str) -> ipaddress.IPv4Address:
    try:
        return ipaddress.IPv4Address(token)
    except ValueError as e:
        raise ParseError("address", str(e), line) from e


def parse_line(line: str) -> ScanRecord:
    line = line.rstrip("\r\n")
    fields = line.split(FIELD_SEP)
    if len(fields) != len(SCHEMA_FIELDS):
        raise ParseError("fields", f"expected {len(SCHEMA_FIELDS)} fields, got {len(fields)}", line)
    status, protocol, port_s, address_s, ts_s = fields

    if not _PORT_RE.fullmatch(port_s) or int(port_s) > 0xFFFF:
        raise ParseError("port", f"not an unsigned 16-bit integer: {port_s!r}", line)

    address = _address(address_s, line)

    if not _TIMESTAMP_RE.fullmatch(ts_s):
        raise ParseError("timestamp", f"not an integer: {ts_s!r}", line)
    try:
        timestamp = datetime.fromtimestamp(int(ts_s), tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as e:
        raise ParseError("timestamp", str(e), line) from e

    return ScanRecord(
        status=_status(status),
        protocol=protocol,
        port=int(port_s),
        address=address,
        timestamp=timestamp,
    )


def parse_legacy_line(line: str, observed_at: datetime = EPOCH) -> ScanRecord:
    """Migrate one ``address,status,sent,recv,avg_rtt_ms`` line.

    The legacy layout carries no protocol, port or time, so the record is
    stamped ``icmp`` port 0 at ``observed_at``.
    """
    line = line.rstrip("\r\n")
    fields = line.split(LEGACY_FIELD_SEP)
    if len(fields) != 5:
        raise ParseError("fields", f"expected 5 legacy fields, got {len(fields)}", line)
    address_s, status, sent, recv, rtt = fields
    address = _address(address_s, line)
    for name, value in (("sent", sent), ("recv", recv), ("avg_rtt_ms", rtt)):
        if not _PORT_RE.fullmatch(value):
            raise ParseError(name, f"not an unsigned integer: {value!r}", line)
    return ScanRecord(
        status=_status(status),
        protocol=LEGACY_PROTOCOL,
        port=0,
        address=address,
        timestamp=observed_at,
    )


def format_record(record: ScanRecord) -> str:
    return FIELD_SEP.join(
        [
            record.status.value,
            record.protocol,
            str(record.port),
            str(record.address),
            str(int(record.timestamp.timestamp())),
        ]
    )


def schema_header() -> str:
    return f"{COMMENT_CHAR} ipsweep interchange v{SCHEMA_VERSION}: {FIELD_SEP.join(SCHEMA_FIELDS)}"


def iter_records(
    lines: Iterable[str],
    legacy: bool = False,
    observed_at: Optional[datetime] = None,
) -> Iterator[ScanRecord]:
    """Yield parsed records, skipping comments, blank lines and bad lines."""
    for lineno, raw in enumerate(lines, start=1):
        line = raw.rstrip("\r\n")
        if not line or line.startswith(COMMENT_CHAR):
            continue
        try:
            if legacy:
                yield parse_legacy_line(line, observed_at or EPOCH)
            else:
                yield parse_line(line)
        except ParseError as e:
            metric_skipped.add(1, {"reason": "parse"})
            log.warning("parse_failed", lineno=lineno, field=e.field, error=e.reason, line=line)
