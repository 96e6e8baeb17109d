from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from ipaddress import IPv4Network
from pathlib import Path
from typing import List, Optional

from ipsweep.addressing import network_from_octets, parse_target_network
from ipsweep.config import AppConfig, load_config
from ipsweep.errors import ConfigurationError
from ipsweep.logging_setup import setup_logging, get_logger
from ipsweep.models import SweepSummary
from ipsweep.otel import init_otel, shutdown_otel
from ipsweep.scanner.icmp import IcmpProber, ProbeSettings
from ipsweep.scanner.sweep import Sweeper

log = get_logger("scan")


def default_output_name(target: IPv4Network, now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    if target.prefixlen == 16:
        first, second = str(target.network_address).split(".")[:2]
        label = f"{first}.{second}"
    else:
        label = str(target).replace("/", "_")
    return f"pings-{label}-{now:%Y-%m-%d-%H-%M}.txt"


def resolve_target(args: argparse.Namespace) -> IPv4Network:
    if args.prefix:
        return parse_target_network(args.prefix)
    return network_from_octets(args.a, args.b)


async def main_async(args: argparse.Namespace, cfg: AppConfig) -> SweepSummary:
    target = resolve_target(args)
    parallelism = args.parallelism or cfg.sweep.parallelism
    output = Path(args.output or default_output_name(target))

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError):
            # not available on some platforms
            pass

    log.info("target", network=str(target), hosts=target.num_addresses, parallelism=parallelism, output=str(output))
    settings = ProbeSettings.from_config(cfg.sweep)
    with open(output, "w", encoding="utf-8") as sink, ThreadPoolExecutor(max_workers=parallelism) as executor:
        sweeper = Sweeper(
            IcmpProber(settings, executor),
            sink,
            parallelism=parallelism,
            queue_size=cfg.sweep.queue_size_for(parallelism),
            stop=stop,
        )
        summary = await sweeper.run(target)
    log.info("output_closed", output=str(output))
    return summary


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Ping every address of an IPv4 block and record liveness (needs raw sockets)")
    p.add_argument("-a", type=int, default=147, help="The /8 part of the network (first octet)")
    p.add_argument("-b", type=int, default=52, help="The /16 part of the network (second octet)")
    p.add_argument("--prefix", default=None, help="Sweep this IPv4 CIDR instead of a.b.0.0/16")
    p.add_argument("-g", "--parallelism", type=int, default=None, help="Number of parallel pings (default SWEEP_PARALLELISM or 128)")
    p.add_argument("-o", "--output", default=None, help="Output file (default pings-<target>-<date>.txt)")
    p.add_argument("--log-level", default=None, choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Log verbosity level")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    cfg = load_config()
    setup_logging(args.log_level or cfg.log_level, component="scan")
    providers = init_otel(cfg.otel, "scan")
    try:
        summary = asyncio.run(main_async(args, cfg))
        if summary.interrupted:
            log.warning("interrupted", dispatched=summary.dispatched, completed=summary.completed)
            sys.exit(130)
    except ConfigurationError as e:
        log.error("configuration_error", error=str(e))
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
