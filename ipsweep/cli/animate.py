from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from ipsweep.config import load_config
from ipsweep.errors import ConfigurationError
from ipsweep.logging_setup import setup_logging, get_logger
from ipsweep.otel import init_otel, shutdown_otel
from ipsweep.render.animate import build_animation, read_frame_list

log = get_logger("animate")


def run(args: argparse.Namespace) -> int:
    log.info("reading_frame_list", source=args.source)
    if args.source == "-":
        names = read_frame_list(sys.stdin)
    else:
        with open(args.source, "r", encoding="utf-8") as fh:
            names = read_frame_list(fh)
    log.info("frames_listed", count=len(names))
    count = build_animation(names, args.output)
    log.info("write_successful", output=args.output, frames=count)
    return count


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Combine rendered PNGs into one animated GIF")
    p.add_argument("-s", "--source", default="-", help="File listing PNG names, one per line ('-' for stdin)")
    p.add_argument("-o", "--output", default="animated.gif", help="Output GIF name")
    p.add_argument("--log-level", default=None, choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Log verbosity level")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    cfg = load_config()
    setup_logging(args.log_level or cfg.log_level, component="animate")
    providers = init_otel(cfg.otel, "animate")
    try:
        run(args)
    except ConfigurationError as e:
        log.error("configuration_error", error=str(e))
        sys.exit(1)
    except OSError as e:
        log.error("io_error", error=str(e))
        sys.exit(1)
    finally:
        shutdown_otel(providers)


if __name__ == "__main__":
    main()
