"""Entry point for the health-check aggregator — `healthagg` console script."""

from __future__ import annotations

import argparse
import logging
import sys

import uvicorn
from rich.console import Console
from rich.panel import Panel

from healthagg import __version__
from healthagg.api.server import create_app
from healthagg.checks.registry import ConfigError, Configuration, load_config
from healthagg.config import settings

DEFAULT_CONFIG_PATH = "config.yml"

console = Console(stderr=True)
logger = logging.getLogger("healthagg")


def parse_listen_address(address: str) -> tuple[str, int]:
    """Split ``":9001"``, ``"host:9001"`` or ``"[::1]:9001"`` into (host, port)."""
    host, sep, port_text = address.rpartition(":")
    if not sep or not port_text.isdigit():
        raise ValueError(f"invalid listen address {address!r}: expected [host]:port")
    port = int(port_text)
    if port > 65535:
        raise ValueError(f"invalid listen address {address!r}: port out of range")

    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    elif ":" in host:
        raise ValueError(f"invalid listen address {address!r}: IPv6 hosts must be bracketed")
    return host or "0.0.0.0", port


def resolve_config_path(config_flag: str, positional: str | None) -> str:
    """A positional path only wins when --config was left at its default."""
    if config_flag == DEFAULT_CONFIG_PATH and positional:
        return positional
    return config_flag


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="healthagg",
        description="Composite health-check aggregator",
    )
    parser.add_argument(
        "--config", default=DEFAULT_CONFIG_PATH, help="path to config file (default: %(default)s)",
    )
    parser.add_argument("--version", action="store_true", help="print version and exit")
    parser.add_argument("path", nargs="?", help="config file, used when --config is not given")
    return parser


def log_loaded(config: Configuration, path: str) -> None:
    for name, probes in config.checks.items():
        logger.info("Loaded %d checks for %s", len(probes), name)
    logger.info("Loaded total %d checks from %s", config.total_probes(), path)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.version:
        print(__version__)
        return 0

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    config_path = resolve_config_path(args.config, args.path)
    try:
        config = load_config(config_path)
    except ConfigError as e:
        logger.critical("Failed to load config: %s", e)
        return 1

    log_loaded(config, config_path)

    try:
        host, port = parse_listen_address(config.listen_address)
    except ValueError as e:
        logger.critical("Failed to start server: %s", e)
        return 1

    console.print(
        Panel.fit(
            f"[bold]Health Check Aggregator[/bold] {__version__}\n"
            f"Config: {config_path}\n"
            f"Groups: {len(config.checks)}  Checks: {config.total_probes()}\n"
            f"Listen: {config.listen_address}",
            title="healthagg",
            border_style="green",
        )
    )

    logger.info("Health aggregator listening on %s", config.listen_address)
    # uvicorn exits the process with status 1 if it cannot bind
    uvicorn.run(
        create_app(config),
        host=host,
        port=port,
        log_level=settings.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
