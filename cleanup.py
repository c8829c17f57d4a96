#!/usr/bin/env python3
import asyncio
import os
import sys
import time
from datetime import datetime
from pathlib import Path

from loguru import logger

# Add the project root directory to the Python path
# to allow importing the sibling modules when run by cron.
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

try:
    import db
    import maintenance
    from config import Config, load_config, setup_directories
    from deletion import PictureCleanup, cleanup_pictures, elapsed
    from shares import cleanup_shares
    from trash import prepare_trash, trash_timezone
    from users import cleanup_users, collect_users
except ImportError:
    # This will be printed to the cron log if the modules cannot be found.
    print("Error: Could not import the cleanup modules. Make sure the script is in the project root.")
    sys.exit(1)

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSSSSS(Z)} | {level: <8} | {name}:{function}:{line} - {message}"


def log_file_for(logs_path: Path, now: datetime) -> Path:
    """
    Returns the path of today's log file. A file left there by an earlier run today is renamed
    to the first free `<date>-<n>.cleanup.log` so every run starts its own log.
    """
    day = now.strftime("%Y-%m-%d")
    log_file = logs_path / f"{day}-least.cleanup.log"
    if log_file.exists():
        offset = 1
        while (logs_path / f"{day}-{offset}.cleanup.log").exists():
            offset += 1
        log_file.rename(logs_path / f"{day}-{offset}.cleanup.log")
    return log_file


def setup_logging(config: Config, now: datetime) -> Path:
    """Configure logger to write both to stderr and to a per-run file."""
    config.logs_path.mkdir(parents=True, exist_ok=True)
    log_file = log_file_for(config.logs_path, now)
    logger.remove()
    logger.add(sys.stderr, level=config.log_level, format=LOG_FORMAT)
    logger.add(log_file, level=config.log_level, format=LOG_FORMAT, colorize=False)
    return log_file


async def run_cleanup(config: Config, now: datetime, start: float) -> PictureCleanup:
    """One full pass: trash upkeep, users, pictures and links, then shares."""
    trash_dir = prepare_trash(config.trash_path, now, config.trash_retention_days, config.trash_utc_offset_hours)
    logger.info(f"trash dir ready in {elapsed(start)}")

    db.init_db(config.db_path)
    logger.debug(f"connected in {elapsed(start)}")
    await maintenance.mark(config.mark_url, config.ignore_mark_fail)

    users = db.load_users(config.db_path)
    pictures = db.load_pictures(config.db_path)
    links = db.load_user_pictures(config.db_path)
    permissions = db.load_permissions(config.db_path)
    shares = db.load_shares(config.db_path)
    logger.debug(f"pictures query finished in {elapsed(start)}")

    if config.cleanup_users:
        available_users = await cleanup_users(users, config.db_path, start)
    else:
        available_users = collect_users(users)

    result = await cleanup_pictures(config, available_users, pictures, links, permissions, trash_dir, now, start)
    await cleanup_shares(shares, available_users, result.surviving_link_ids, config.db_path, now, start)

    await maintenance.unmark(config.mark_url, config.ignore_mark_fail)
    logger.info(f"cleanup finished in {elapsed(start)}")
    return result


def main():
    """
    Removes unused pictures, disabled links and stale shares from the database and moves files no
    picture refers to into a dated trash directory.
    This script is intended to be run periodically by a scheduler like cron.
    """
    start = time.perf_counter()
    config = load_config()
    setup_directories(config)
    now = datetime.now(trash_timezone(config.trash_utc_offset_hours))
    setup_logging(config, now)
    logger.info(f"started in {elapsed(start)}")

    try:
        asyncio.run(run_cleanup(config, now, start))
    except Exception:
        # Log critical errors, e.g., if the storage path is not accessible.
        logger.exception("Critical error during cleanup process")
        sys.exit(1)


if __name__ == "__main__":
    main()
