"""
Cleanup Task

Startup sweep that removes upload files left behind by a previous run.

Transfers live in process memory, so after a restart any file still in the
upload directory can never be downloaded. Files younger than the TTL are
left alone in case another process shares the directory.
"""

import logging
import time
from pathlib import Path

# Configure logging
logger = logging.getLogger(__name__)


def cleanup_orphaned_files(upload_dir: str, expiry_minutes: int) -> dict:
    """
    Delete regular files in upload_dir older than expiry_minutes.

    The scan is not recursive. Per-file failures are collected and logged
    without stopping the sweep.

    Args:
        upload_dir: Directory holding uploaded bytes
        expiry_minutes: Transfer TTL in minutes

    Returns:
        dict: Cleanup statistics with counts and errors
    """
    logger.info(f"Starting orphaned file cleanup in {upload_dir}")

    cleanup_stats = {
        "orphaned_files_cleaned": 0,
        "errors": [],
    }

    directory = Path(upload_dir)
    if not directory.is_dir():
        logger.info(f"Upload directory {upload_dir} does not exist, nothing to clean")
        return cleanup_stats

    cutoff = time.time() - expiry_minutes * 60

    try:
        entries = list(directory.iterdir())
    except OSError as e:
        error_msg = f"Error listing {upload_dir}: {e}"
        cleanup_stats["errors"].append(error_msg)
        logger.error(error_msg, exc_info=True)
        return cleanup_stats

    for entry in entries:
        try:
            if not entry.is_file():
                continue
            if entry.stat().st_mtime >= cutoff:
                continue
            entry.unlink()
            cleanup_stats["orphaned_files_cleaned"] += 1
            logger.info(f"Removed orphaned file: {entry.name}")

        except FileNotFoundError:
            continue
        except OSError as e:
            error_msg = f"Error removing {entry.name}: {e}"
            cleanup_stats["errors"].append(error_msg)
            logger.warning(error_msg)

    logger.info(
        f"Cleanup completed - Orphaned: {cleanup_stats['orphaned_files_cleaned']}, "
        f"Errors: {len(cleanup_stats['errors'])}"
    )

    if cleanup_stats["errors"]:
        logger.warning(f"Cleanup errors: {cleanup_stats['errors']}")

    return cleanup_stats
