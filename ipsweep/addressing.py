from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import Union

from ipsweep.errors import ConfigurationError

IPV4_BITS = 32

AddressLike = Union[str, int, ipaddress.IPv4Address]


def _to_int(address: AddressLike) -> int:
    if isinstance(address, ipaddress.IPv4Address):
        return int(address)
    if isinstance(address, int):
        return address
    return int(ipaddress.IPv4Address(address))


def _parse_network(spec: str) -> ipaddress.IPv4Network:
    try:
        net = ipaddress.ip_network(spec.strip(), strict=False)
    except ValueError as e:
        raise ConfigurationError(f"invalid prefix {spec!r}: {e}") from e
    if not isinstance(net, ipaddress.IPv4Network):
        raise ConfigurationError(f"IPv6 is not supported: {spec}")
    return net


@dataclass(frozen=True)
class AddressRange:
    """An IPv4 prefix with an even length, imaged as a square grid.

    ``base`` is always the masked network address.
    """

    base: int
    length: int

    def __post_init__(self):
        if not 0 <= self.length <= IPV4_BITS:
            raise ConfigurationError(f"prefix length out of range: {self.length}")
        if self.length % 2 != 0:
            raise ConfigurationError(
                f"the prefix length must be even (e.g. /8, /10, /24, /30), got /{self.length}"
            )
        if not 0 <= self.base < 2**IPV4_BITS:
            raise ConfigurationError(f"base address out of range: {self.base}")
        mask = (0xFFFFFFFF << (IPV4_BITS - self.length)) & 0xFFFFFFFF
        object.__setattr__(self, "base", self.base & mask)

    @classmethod
    def parse(cls, prefix: str) -> "AddressRange":
        net = _parse_network(prefix)
        return cls(base=int(net.network_address), length=net.prefixlen)

    @property
    def size(self) -> int:
        return 1 << (IPV4_BITS - self.length)

    @property
    def side(self) -> int:
        return 1 << ((IPV4_BITS - self.length) // 2)

    @property
    def network(self) -> ipaddress.IPv4Network:
        return ipaddress.IPv4Network((self.base, self.length))

    def contains(self, address: AddressLike) -> bool:
        value = _to_int(address)
        return self.base <= value < self.base + self.size

    def offset(self, address: AddressLike) -> int:
        value = _to_int(address)
        if not self.contains(value):
            raise ValueError(f"{ipaddress.IPv4Address(value)} is not in {self}")
        return value - self.base

    def __str__(self) -> str:
        return str(self.network)


def parse_target_network(spec: str) -> ipaddress.IPv4Network:
    """Parse a sweep target; unlike AddressRange any prefix length is fine."""
    return _parse_network(spec)


def network_from_octets(a: int, b: int) -> ipaddress.IPv4Network:
    for name, octet in (("a", a), ("b", b)):
        if not 0 <= octet <= 255:
            raise ConfigurationError(f"octet {name} must be within 0-255, got {octet}")
    return ipaddress.IPv4Network(f"{a}.{b}.0.0/16")
