"""Retention cleanup job."""

import logging

from backup_agent.storage.retention import sweep

logger = logging.getLogger(__name__)


async def run_delete_job() -> int:
    """Remove remote backups older than the retention window.

    Scheduled per CLEAN_CRON (weekly by default).
    """
    deleted = await sweep()
    logger.info(f"Retention cleanup completed: {deleted} backup(s) removed")
    return deleted
