from __future__ import annotations

import re
from pathlib import Path
from typing import BinaryIO, Iterable, Optional, Tuple, Union

from opentelemetry import trace, metrics
from PIL import Image, ImageDraw, ImageFont

from ipsweep.addressing import AddressRange
from ipsweep.errors import ConfigurationError
from ipsweep.hilbert import HilbertMapper
from ipsweep.logging_setup import get_logger
from ipsweep.models import ScanRecord

log = get_logger(__name__)
tracer = trace.get_tracer(__name__)
meter = metrics.get_meter(__name__)

metric_skipped = meter.create_counter("ipsweep_records_skipped_total")

RGBA = Tuple[int, int, int, int]

# fixed-width label metrics, in pixels
FONT_HEIGHT = 13
FONT_WIDTH = 7
LABEL_PADDING = 5

LABEL_POSITIONS = ("top-left", "top-right", "bottom-left", "bottom-right")

_COLOR_RE = re.compile(r"#([0-9a-fA-F]{2})([0-9a-fA-F]{2})([0-9a-fA-F]{2})")


def parse_color(spec: str) -> RGBA:
    m = _COLOR_RE.fullmatch(spec.strip())
    if not m:
        raise ConfigurationError(f"failed to parse color {spec!r}, expected #RRGGBB")
    r, g, b = (int(part, 16) for part in m.groups())
    return r, g, b, 255


def text_point(position: str, text: str, size: int) -> Tuple[int, int]:
    """Top-left corner for a label placed in one corner of a square image."""
    parts = position.split("-")
    if len(parts) != 2:
        raise ConfigurationError(f"failed to parse label position {position!r}: incorrect format")
    vertical, horizontal = parts
    if vertical not in ("top", "bottom"):
        raise ConfigurationError(f"failed to parse label position {position!r}: pick either top or bottom")
    if horizontal not in ("left", "right"):
        raise ConfigurationError(f"failed to parse label position {position!r}: pick either left or right")

    y = LABEL_PADDING if vertical == "top" else size - FONT_HEIGHT - LABEL_PADDING
    x = LABEL_PADDING if horizontal == "left" else size - LABEL_PADDING - FONT_WIDTH * len(text)
    return x, y


class Renderer:
    def __init__(
        self,
        address_range: AddressRange,
        mapper: HilbertMapper,
        up_color: RGBA,
        down_color: RGBA,
        unknown_color: Optional[RGBA] = None,
    ):
        if mapper.side != address_range.side:
            raise ConfigurationError(
                f"curve side {mapper.side} does not match range {address_range} (side {address_range.side})"
            )
        self.range = address_range
        self.mapper = mapper
        self.up_color = up_color
        self.down_color = down_color
        # without it, probed-down and never-probed cells look the same
        self.unknown_color = unknown_color

    @property
    def background(self) -> RGBA:
        return self.unknown_color if self.unknown_color is not None else self.down_color

    def render(
        self,
        records: Iterable[ScanRecord],
        label: Optional[str] = None,
        label_position: str = "bottom-right",
    ) -> Image.Image:
        side = self.range.side
        with tracer.start_as_current_span("render"):
            log.info("render_start", range=str(self.range), size=self.range.size, grid=side)
            canvas = Image.new("RGBA", (side, side), self.background)
            pixels = canvas.load()

            painted = skipped = 0
            for rec in records:
                if not self.range.contains(rec.address):
                    skipped += 1
                    metric_skipped.add(1, {"reason": "out_of_range"})
                    log.debug("record_out_of_range", ip=str(rec.address))
                    continue
                # MappingError here means the range gate is broken; let it propagate
                x, y = self.mapper.map(self.range.offset(rec.address))
                if rec.is_up:
                    pixels[x, y] = self.up_color
                    painted += 1
                elif self.unknown_color is not None:
                    pixels[x, y] = self.down_color

            if label:
                self._draw_label(canvas, label, label_position)

            log.info("render_done", painted_up=painted, skipped=skipped)
            return canvas

    def _draw_label(self, canvas: Image.Image, label: str, position: str) -> None:
        point = text_point(position, label, canvas.width)
        draw = ImageDraw.Draw(canvas)
        draw.text(point, label, fill=self.up_color, font=ImageFont.load_default())


def save_png(image: Image.Image, destination: Union[str, Path, BinaryIO]) -> None:
    log.info("writing_png", destination=str(destination) if isinstance(destination, (str, Path)) else "<stream>")
    image.save(destination, format="PNG")
