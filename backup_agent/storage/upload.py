"""Upload a finished backup artifact and remove the local copy."""

import asyncio
import logging
from pathlib import Path

from backup_agent.config import load_upload_config
from backup_agent.storage.client import StorageClient, StorageError

logger = logging.getLogger(__name__)


async def upload(file_name: str) -> bool:
    """Upload ``file_name`` to object storage.

    The local file is removed after the attempt whether or not the upload
    succeeded, so failed runs never accumulate on disk. Returns True when
    the object was stored.
    """
    config = load_upload_config()
    if config is None:
        return False

    key = config.object_key(file_name)
    path = Path(file_name)

    try:
        body = await asyncio.to_thread(path.read_bytes)
        client = StorageClient(config)
        await client.put_object(key, body, content_type="application/octet-stream", acl="private")
    except (OSError, StorageError) as e:
        logger.error(f"Error uploading file {file_name}: {e}")
        return False
    finally:
        await remove_local_file(path)

    url = f"{config.cdn_url}/{key}"
    logger.info(f"File uploaded successfully! Accessible at: {url}")
    return True


async def remove_local_file(path: Path) -> None:
    """Delete ``path`` if it exists."""
    try:
        await asyncio.to_thread(path.unlink, missing_ok=True)
    except OSError as e:
        logger.warning(f"Could not delete local file {path}: {e}")
