"""Scheduled backup job."""

import asyncio
import logging

from backup_agent.config import get_settings
from backup_agent.storage.upload import upload

logger = logging.getLogger(__name__)


async def run_backup_script(script_path: str) -> tuple[int, str, str]:
    """Run ``script_path`` through ``sh -c``.

    Returns (returncode, stdout, stderr).
    """
    process = await asyncio.create_subprocess_exec(
        "sh", "-c", script_path,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    stdout, stderr = await process.communicate()
    return (
        process.returncode,
        stdout.decode("utf-8", errors="replace"),
        stderr.decode("utf-8", errors="replace"),
    )


def parse_artifact_name(stdout: str) -> str:
    """Extract the artifact file name from the backup script output.

    The script prints the file name last; earlier lines are progress output.
    A leading ``./`` is dropped.
    """
    lines = [line.strip() for line in stdout.splitlines() if line.strip()]
    if not lines:
        return ""

    name = lines[-1]
    while name.startswith("./"):
        name = name[2:]
    return name.strip()


async def run_job() -> None:
    """Run the backup script once and upload what it produced.

    Scheduled per BACKUP_CRON. Failures are logged; nothing is retried.
    """
    script_path = get_settings().backup_script

    try:
        returncode, stdout, stderr = await run_backup_script(script_path)
    except OSError as e:
        logger.error(f"Failed to run script {script_path}: {e}")
        return

    if returncode != 0:
        logger.error(f"Script error (exit {returncode}): {stderr.strip()}")
        return

    logger.info(f"Script output: {stdout.strip()}")

    file_name = parse_artifact_name(stdout)
    if not file_name:
        logger.error(f"Script {script_path} succeeded but printed no file name")
        return

    await upload(file_name)
