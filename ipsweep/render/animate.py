from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Iterable, List, TextIO, Union

from opentelemetry import trace
from PIL import Image, UnidentifiedImageError

from ipsweep.errors import ConfigurationError
from ipsweep.logging_setup import get_logger

log = get_logger(__name__)
tracer = trace.get_tracer(__name__)


def read_frame_list(stream: TextIO) -> List[str]:
    return [line.strip() for line in stream if line.strip()]


def _load_frame(path: str) -> Image.Image:
    with Image.open(path) as im:
        if im.format != "PNG":
            raise UnidentifiedImageError(f"not a PNG: {im.format}")
        # web palette so every frame shares the same colors
        return im.convert("RGB").convert("P", palette=Image.Palette.WEB)


def build_animation(frame_paths: Iterable[str], destination: Union[str, Path, BinaryIO]) -> int:
    """Write the readable PNG frames as one looping GIF; returns the frame count."""
    frames: List[Image.Image] = []
    with tracer.start_as_current_span("animate"):
        for path in frame_paths:
            try:
                frames.append(_load_frame(path))
            except FileNotFoundError as e:
                log.warning("frame_open_failed", path=path, error=str(e))
                continue
            except (UnidentifiedImageError, OSError) as e:
                log.warning("frame_decode_failed", path=path, error=str(e))
                continue
            log.info("frame_converted", path=path)

        if not frames:
            raise ConfigurationError("no readable PNG frames to animate")

        log.info("writing_gif", frames=len(frames))
        first, rest = frames[0], frames[1:]
        first.save(destination, format="GIF", save_all=True, append_images=rest, duration=0, loop=0)
    return len(frames)
