from __future__ import annotations

import argparse
import contextlib
import sys
from typing import BinaryIO, Iterator, List, Optional, TextIO

from ipsweep.addressing import AddressRange
from ipsweep.config import AppConfig, load_config
from ipsweep.errors import ConfigurationError, MappingError
from ipsweep.hilbert import HilbertMapper
from ipsweep.logging_setup import setup_logging, get_logger
from ipsweep.otel import init_otel, shutdown_otel
from ipsweep.parser import iter_records
from ipsweep.render.image import LABEL_POSITIONS, Renderer, parse_color, save_png

log = get_logger("render")

STDIO = "-"


@contextlib.contextmanager
def open_input(path: str) -> Iterator[TextIO]:
    # undecodable bytes become U+FFFD and fail that line's parse only
    if path == STDIO:
        sys.stdin.reconfigure(errors="replace")
        yield sys.stdin
        return
    with open(path, "r", encoding="utf-8", errors="replace") as fh:
        yield fh


@contextlib.contextmanager
def open_output(path: str) -> Iterator[BinaryIO]:
    if path == STDIO:
        yield sys.stdout.buffer
        return
    with open(path, "wb") as fh:
        yield fh


def run(args: argparse.Namespace, cfg: AppConfig) -> None:
    # validate everything before touching the filesystem
    address_range = AddressRange.parse(args.range or cfg.render.range)
    up = parse_color(args.up_color or cfg.render.up_color)
    down = parse_color(args.down_color or cfg.render.down_color)
    unknown_spec = args.unknown_color or cfg.render.unknown_color
    unknown = parse_color(unknown_spec) if unknown_spec else None
    log.info(
        "prefix_parsed",
        base=str(address_range.network.network_address),
        length=address_range.length,
        size=address_range.size,
        grid=address_range.side,
    )

    renderer = Renderer(address_range, HilbertMapper(address_range.side), up, down, unknown)

    log.info("loading_file", name=args.input)
    with open_input(args.input) as src:
        image = renderer.render(
            iter_records(src, legacy=args.legacy_csv),
            label=args.label,
            label_position=args.label_position,
        )

    with open_output(args.output) as dst:
        save_png(image, dst)
    log.info("done", output=args.output)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Render sweep results as a Hilbert-curve PNG")
    p.add_argument("-i", "--input", default=STDIO, help="Input results file ('-' for stdin)")
    p.add_argument("-o", "--output", default=STDIO, help="Output PNG file ('-' for stdout)")
    p.add_argument("-r", "--range", default=None, help="Range to image, CIDR length must be even (default 193.5.16.0/22)")
    p.add_argument("-u", "--up-color", default=None, help="Color used for hosts that are up (default #32c832)")
    p.add_argument("-d", "--down-color", default=None, help="Color used for hosts that are down (default #323232)")
    p.add_argument("--unknown-color", default=None, help="Color for addresses with no record; unset keeps them at the down color")
    p.add_argument("--label", default=None, help="Text drawn in one corner of the image")
    p.add_argument("--label-position", default="bottom-right", help=f"One of {', '.join(LABEL_POSITIONS)}")
    p.add_argument("--legacy-csv", action="store_true", help="Migrate legacy address,status,sent,recv,rtt input")
    p.add_argument("--log-level", default=None, choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Log verbosity level")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    cfg = load_config()
    setup_logging(args.log_level or cfg.log_level, component="render")
    providers = init_otel(cfg.otel, "render")
    try:
        run(args, cfg)
    except ConfigurationError as e:
        log.error("configuration_error", error=str(e))
        sys.exit(1)
    except MappingError as e:
        log.error("hilbert_mapping_failed", error=str(e))
        sys.exit(1)
    except OSError as e:
        log.error("io_error", error=str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        log.warning("interrupted")
        sys.exit(130)
    finally:
        shutdown_otel(providers)


if __name__ == "__main__":
    main()
