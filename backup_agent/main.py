"""Backup agent entry point."""

import asyncio
import logging
import signal
import sys
from typing import Optional

from backup_agent.config import get_settings
from backup_agent.jobs import run_forever, setup_scheduler, shutdown_scheduler

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

NOISY_LOGGERS = ("boto3", "botocore", "urllib3", "s3transfer")


def configure_logging(level: str) -> None:
    logging.getLogger().setLevel(level.upper())
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


async def setup(stop: Optional[asyncio.Event] = None) -> None:
    """Start the scheduler and keep the process alive until stopped.

    Errors while building or starting the scheduler propagate to the caller.
    """
    settings = get_settings()
    logger.info("Starting database backup agent...")
    logger.info(f"Backup script: {settings.backup_script}")

    scheduler = setup_scheduler(settings)

    stop = stop or asyncio.Event()
    loop = asyncio.get_running_loop()
    handled = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
            handled.append(sig)
        except NotImplementedError:
            # Windows event loops have no signal handler support
            logger.debug(f"Signal handler for {sig.name} not supported")

    try:
        await run_forever(settings.heartbeat_seconds, stop)
    finally:
        logger.info("Shutting down...")
        for sig in handled:
            loop.remove_signal_handler(sig)
        shutdown_scheduler(scheduler)


def main() -> None:
    try:
        configure_logging(get_settings().log_level)
        asyncio.run(setup())
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except Exception as e:
        logger.error(f"Failed to start scheduler: {e}")
        raise SystemExit(1)
    logger.info("Shutdown complete")


if __name__ == "__main__":
    main()
