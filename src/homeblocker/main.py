from __future__ import annotations

import argparse
import logging
from typing import List

from .blocking import BlockRegistry, DecisionEngine
from .config.config_parser import load_config
from .config.logging_config import init_logging
from .servers.server import DNSServer


def main(argv: List[str] | None = None) -> int:
    """
    Main entry point for the DNS server.
    Loads configuration, builds the block registry and serves queries.

    Args:
        argv: Command-line arguments.

    Returns:
        An exit code: 0 on clean shutdown (or a successful --check), 1 when
        the configuration or a schedule is invalid or the listener cannot bind.

    Example use:
        CLI:
            homeblocker --config homeblocker.yml
            homeblocker --config homeblocker.yml --check
    """
    parser = argparse.ArgumentParser(
        description="DNS forwarder that blocks domains on a schedule"
    )
    parser.add_argument(
        "--config", default="homeblocker.yml", help="Path to YAML config"
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Validate the configuration and schedules, then exit",
    )
    args = parser.parse_args(argv)

    try:
        cfg = load_config(args.config)
    except (OSError, ValueError) as exc:
        print(str(exc))
        return 1

    # Initialize logging before any other operations
    init_logging(cfg.logging)
    logger = logging.getLogger("homeblocker.main")
    logger.info("Loaded config from %s", args.config)

    # Any malformed schedule aborts startup before a socket is bound.
    try:
        registry = BlockRegistry.from_config(cfg.blocks)
    except ValueError as exc:
        logger.error("Invalid block configuration: %s", exc)
        return 1
    logger.info("Loaded %d blocks: %s", len(registry), registry.names())

    if args.check:
        logger.info("Configuration OK")
        return 0

    upstream = cfg.upstream.model_dump()
    try:
        server = DNSServer(
            cfg.host,
            cfg.port,
            upstream,
            DecisionEngine(registry),
            timeout_ms=cfg.timeout_ms,
        )
    except OSError as exc:
        logger.error("Failed to set udp listener %s:%d: %s", cfg.host, cfg.port, exc)
        return 1

    logger.info(
        "Listening on %s:%d, upstream %s:%d, timeout: %dms",
        cfg.host,
        cfg.port,
        upstream["host"],
        upstream["port"],
        cfg.timeout_ms,
    )
    server.serve_forever()
    logger.info("Shutting down")
    return 0
