from __future__ import annotations

from typing import Tuple

from ipsweep.errors import ConfigurationError, MappingError


def _rotate(n: int, x: int, y: int, rx: int, ry: int) -> Tuple[int, int]:
    if ry == 0:
        if rx == 1:
            x = n - 1 - x
            y = n - 1 - y
        x, y = y, x
    return x, y


class HilbertMapper:
    """Map linear offsets onto a ``side`` x ``side`` Hilbert curve.

    Offset 0 sits at (0, 0) and the last offset at (side - 1, 0); every
    step along the curve moves exactly one cell.
    """

    def __init__(self, side: int):
        if isinstance(side, bool) or not isinstance(side, int) or side <= 0 or side & (side - 1):
            raise ConfigurationError(f"grid side must be a positive power of two, got {side!r}")
        self.side = side

    @property
    def cells(self) -> int:
        return self.side * self.side

    def map(self, offset: int) -> Tuple[int, int]:
        if not 0 <= offset < self.cells:
            raise MappingError(f"offset {offset} outside curve domain [0, {self.cells})")
        x = y = 0
        t = offset
        s = 1
        while s < self.side:
            rx = 1 & (t // 2)
            ry = 1 & (t ^ rx)
            x, y = _rotate(s, x, y, rx, ry)
            x += s * rx
            y += s * ry
            t //= 4
            s *= 2
        return x, y

    def unmap(self, x: int, y: int) -> int:
        if not (0 <= x < self.side and 0 <= y < self.side):
            raise MappingError(f"coordinate ({x}, {y}) outside {self.side}x{self.side} grid")
        d = 0
        s = self.side // 2
        while s > 0:
            rx = 1 if x & s else 0
            ry = 1 if y & s else 0
            d += s * s * ((3 * rx) ^ ry)
            x, y = _rotate(self.side, x, y, rx, ry)
            s //= 2
        return d
