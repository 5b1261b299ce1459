"""Remote retention: delete backups older than the retention window."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from backup_agent.config import get_settings, load_upload_config
from backup_agent.storage.client import RemoteObject, StorageClient, StorageError

logger = logging.getLogger(__name__)


def select_expired(
    objects: Iterable[RemoteObject],
    now: datetime,
    retention: timedelta,
) -> list[str]:
    """Return keys of objects strictly older than ``retention``.

    Objects without a last-modified timestamp are kept.
    """
    expired = []
    for obj in objects:
        if obj.last_modified is None:
            continue
        last_modified = obj.last_modified
        if last_modified.tzinfo is None:
            last_modified = last_modified.replace(tzinfo=timezone.utc)
        if now - last_modified > retention:
            expired.append(obj.key)
    return expired


async def sweep(now: Optional[datetime] = None) -> int:
    """Delete remote backups past the retention window.

    Returns the number of objects deleted.
    """
    config = load_upload_config()
    if config is None:
        return 0

    now = now or datetime.now(timezone.utc)
    retention = timedelta(days=get_settings().retention_days)

    try:
        client = StorageClient(config)
        objects = await client.list_objects(config.namespace)
    except StorageError as e:
        logger.error(f"Failed to list backups under {config.namespace}: {e}")
        return 0

    expired = select_expired(objects, now, retention)
    if not expired:
        logger.info("No old objects found to delete.")
        return 0

    try:
        deleted = await client.delete_objects(expired)
    except StorageError as e:
        logger.error(f"Failed to delete old backups ({e.deleted} deleted before the failure): {e}")
        return e.deleted

    logger.info(f"Deleted {deleted} old files successfully")
    return deleted
