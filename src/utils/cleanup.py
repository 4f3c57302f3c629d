"""
Cleanup utilities for orphaned temp files.

Jobs delete their own staging files; this sweep catches whatever a
crashed or cancelled job left behind in the relay temp directory.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional, Tuple

from ..core.config import get_settings

logger = logging.getLogger(__name__)

# Default max age for temp files
DEFAULT_MAX_AGE_HOURS = 6


def cleanup_stale_files(
    directory: Path,
    max_age_hours: float = DEFAULT_MAX_AGE_HOURS,
    dry_run: bool = False,
) -> Tuple[int, int, int]:
    """
    Delete files older than max_age_hours in directory.

    Args:
        directory: Directory to sweep
        max_age_hours: Maximum age of files in hours
        dry_run: If True, don't actually delete files

    Returns:
        Tuple of (files_found, files_deleted, bytes_freed)
    """
    if not directory.exists():
        logger.debug(f"Directory does not exist: {directory}")
        return (0, 0, 0)

    cutoff_time = datetime.now() - timedelta(hours=max_age_hours)
    files_found = 0
    files_deleted = 0
    bytes_freed = 0

    try:
        for file_path in directory.iterdir():
            if not file_path.is_file():
                continue

            files_found += 1

            try:
                stat = file_path.stat()
                if datetime.fromtimestamp(stat.st_mtime) >= cutoff_time:
                    continue

                if dry_run:
                    logger.info(
                        f"[DRY RUN] Would delete: {file_path} ({stat.st_size} bytes)"
                    )
                else:
                    file_path.unlink()
                    logger.info(f"Deleted stale file: {file_path} ({stat.st_size} bytes)")

                files_deleted += 1
                bytes_freed += stat.st_size

            except FileNotFoundError:
                # A job finished and removed it between listing and stat.
                continue
            except OSError as e:
                logger.warning(f"Error processing {file_path}: {e}")

    except OSError as e:
        logger.error(f"Error scanning directory {directory}: {e}")

    return (files_found, files_deleted, bytes_freed)


def cleanup_temp_dir(
    max_age_hours: Optional[float] = None,
    dry_run: bool = False,
) -> dict:
    """
    Sweep the configured relay temp directory.

    Returns:
        Dict with cleanup statistics
    """
    settings = get_settings()
    directory = settings.temp_path
    if max_age_hours is None:
        max_age_hours = settings.stale_file_max_age_hours

    found, deleted, bytes_freed = cleanup_stale_files(directory, max_age_hours, dry_run)

    summary = {
        "directory": str(directory),
        "found": found,
        "deleted": deleted,
        "bytes_freed": bytes_freed,
        "dry_run": dry_run,
    }

    logger.info(
        f"Cleanup complete: {deleted}/{found} files deleted, "
        f"{bytes_freed / 1024:.1f} KB freed"
    )

    return summary


async def run_periodic_cleanup(
    interval_hours: float = 1.0,
    max_age_hours: Optional[float] = None,
):
    """
    Run periodic cleanup as a background task.

    Args:
        interval_hours: How often to run cleanup
        max_age_hours: Max age of files to keep (defaults to settings)
    """
    logger.info(f"Starting periodic cleanup: every {interval_hours}h")

    while True:
        try:
            await asyncio.sleep(interval_hours * 3600)
            await asyncio.to_thread(cleanup_temp_dir, max_age_hours)
        except asyncio.CancelledError:
            logger.info("Periodic cleanup task cancelled")
            break
        except Exception as e:
            logger.error(f"Error in periodic cleanup: {e}", exc_info=True)


# CLI entry point for manual cleanup
if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Clean up stale relay temp files")
    parser.add_argument("--max-age", type=float, default=None, help="Max age in hours")
    parser.add_argument(
        "--dry-run", action="store_true", help="Don't delete, just show"
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    result = cleanup_temp_dir(max_age_hours=args.max_age, dry_run=args.dry_run)
    print(
        f"\nSummary: {result['deleted']} files deleted, "
        f"{result['bytes_freed'] / 1024:.1f} KB freed"
    )
