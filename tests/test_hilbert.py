from __future__ import annotations

import pytest

from ipsweep.errors import ConfigurationError, MappingError
from ipsweep.hilbert import HilbertMapper


@pytest.mark.parametrize("side", [1, 2, 4, 8, 32, 64])
def test_map_is_a_bijection_onto_the_grid(side: int) -> None:
    mapper = HilbertMapper(side)
    seen = set()
    for offset in range(side * side):
        x, y = mapper.map(offset)
        assert 0 <= x < side and 0 <= y < side
        seen.add((x, y))
    assert len(seen) == side * side


@pytest.mark.parametrize("side", [2, 16, 64])
def test_consecutive_offsets_are_adjacent(side: int) -> None:
    mapper = HilbertMapper(side)
    prev = mapper.map(0)
    for offset in range(1, side * side):
        cur = mapper.map(offset)
        assert abs(cur[0] - prev[0]) + abs(cur[1] - prev[1]) == 1
        prev = cur


@pytest.mark.parametrize("side", [1, 4, 32])
def test_unmap_inverts_map(side: int) -> None:
    mapper = HilbertMapper(side)
    for offset in range(side * side):
        assert mapper.unmap(*mapper.map(offset)) == offset


def test_curve_orientation() -> None:
    mapper = HilbertMapper(2)
    assert [mapper.map(i) for i in range(4)] == [(0, 0), (0, 1), (1, 1), (1, 0)]
    assert HilbertMapper(32).map(32 * 32 - 1) == (31, 0)


@pytest.mark.parametrize("side", [0, -4, 3, 12, 2.0, True])
def test_side_must_be_power_of_two(side) -> None:
    with pytest.raises(ConfigurationError):
        HilbertMapper(side)


def test_out_of_domain_is_a_mapping_error() -> None:
    mapper = HilbertMapper(4)
    with pytest.raises(MappingError):
        mapper.map(16)
    with pytest.raises(MappingError):
        mapper.map(-1)
    with pytest.raises(MappingError):
        mapper.unmap(4, 0)
