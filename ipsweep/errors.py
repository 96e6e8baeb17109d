from __future__ import annotations


class IpsweepError(Exception):
    """Base class for every error raised by ipsweep."""


class ConfigurationError(IpsweepError):
    """Bad CLI, CIDR, color or grid input. Fatal at startup."""


class MappingError(IpsweepError):
    """An offset or coordinate fell outside the Hilbert grid.

    Callers filter records by range membership before mapping, so this
    signals a broken invariant rather than bad input.
    """


class ParseError(IpsweepError):
    def __init__(self, field: str, reason: str, line: str = ""):
        self.field = field
        self.reason = reason
        self.line = line
        super().__init__(f"{field}: {reason}")


class ProbeError(IpsweepError):
    def __init__(self, address: str, reason: str):
        self.address = address
        self.reason = reason
        super().__init__(f"{address}: {reason}")
