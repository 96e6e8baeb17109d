from __future__ import annotations

import ipaddress
import math

import pytest

from ipsweep.addressing import AddressRange, network_from_octets, parse_target_network
from ipsweep.errors import ConfigurationError


@pytest.mark.parametrize("length", range(0, 33, 2))
def test_even_prefix_has_integer_side(length: int) -> None:
    rng = AddressRange(base=0, length=length)
    assert rng.size == 2 ** (32 - length)
    assert rng.side * rng.side == rng.size
    assert rng.side == math.isqrt(rng.size)


@pytest.mark.parametrize("length", range(1, 33, 2))
def test_odd_prefix_is_rejected(length: int) -> None:
    with pytest.raises(ConfigurationError):
        AddressRange(base=0, length=length)


def test_parse_masks_base_address() -> None:
    rng = AddressRange.parse("193.5.16.1/22")
    assert str(rng) == "193.5.16.0/22"
    assert rng.base == int(ipaddress.IPv4Address("193.5.16.0"))
    assert rng.size == 1024
    assert rng.side == 32


def test_parse_rejects_ipv6_and_garbage() -> None:
    with pytest.raises(ConfigurationError):
        AddressRange.parse("2001:db8::/32")
    with pytest.raises(ConfigurationError):
        AddressRange.parse("not-a-prefix")
    with pytest.raises(ConfigurationError):
        AddressRange.parse("10.0.0.0/23")


def test_contains_and_offset() -> None:
    rng = AddressRange.parse("193.5.16.0/22")
    assert rng.contains("193.5.16.0")
    assert rng.contains(ipaddress.IPv4Address("193.5.19.255"))
    assert not rng.contains("193.5.20.0")
    assert not rng.contains("193.5.15.255")
    assert rng.offset("193.5.17.1") == 257
    with pytest.raises(ValueError):
        rng.offset("10.0.0.1")


def test_range_is_immutable() -> None:
    rng = AddressRange.parse("10.0.0.0/8")
    with pytest.raises(AttributeError):
        rng.length = 10  # type: ignore[misc]


def test_sweep_targets() -> None:
    assert parse_target_network("10.1.2.3/23") == ipaddress.IPv4Network("10.1.2.0/23")
    assert network_from_octets(147, 52) == ipaddress.IPv4Network("147.52.0.0/16")
    with pytest.raises(ConfigurationError):
        network_from_octets(256, 0)
    with pytest.raises(ConfigurationError):
        parse_target_network("::1/128")
