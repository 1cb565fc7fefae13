"""
CLI entry point for ddnsd.

This module provides the command-line interface for starting the daemon.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from typing import TYPE_CHECKING

from ddnsd.config import ConfigValidationError, config_summary, load_config, parse_args
from ddnsd.errors import UnsupportedProviderError
from ddnsd.logging_config import setup_logging
from ddnsd.providers import create_provider
from ddnsd.scheduler import UpdateScheduler
from ddnsd.updater import run_cycle

if TYPE_CHECKING:
    from ddnsd.config import Config
    from ddnsd.providers.base import BaseDNSProvider


logger = logging.getLogger("ddnsd.cli")


async def serve(provider: BaseDNSProvider, config: Config, *, once: bool = False) -> None:
    """
    Run the initial cycle, then keep updating until SIGINT/SIGTERM.

    Parameters
    ----------
    provider : BaseDNSProvider
        The provider adapter.
    config : Config
        Application configuration.
    once : bool, optional
        Return after the initial cycle instead of scheduling more.
    """
    logger.info("Starting initial update...")
    await run_cycle(provider, config)

    if once:
        return

    async def job() -> None:
        await run_cycle(provider, config)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    async with UpdateScheduler(job, config.schedule.interval).lifespan():
        logger.info("DDNS service started successfully. Press Ctrl+C to exit.")
        await stop.wait()

    logger.info("Shutting down DDNS service...")


def main() -> None:
    """
    Start the ddnsd daemon.

    Parse command-line arguments, load configuration, and run the update loop.
    """
    args = parse_args()
    try:
        config = load_config(args)
    except ConfigValidationError as e:
        print(e, file=sys.stderr)  # noqa: T201
        sys.exit(1)

    setup_logging(config.logging)

    try:
        provider = create_provider(config.provider.name, config.provider.credentials())
    except UnsupportedProviderError as e:
        logger.critical("Failed to initialize DNS provider: %s", e)
        sys.exit(1)

    for line in config_summary(config):
        logger.info(line)

    asyncio.run(serve(provider, config, once=args.once))


if __name__ == "__main__":
    main()
