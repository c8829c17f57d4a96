import shutil
from datetime import datetime, timedelta, timezone
from pathlib import Path

from loguru import logger

TRASH_DATE_FORMAT = "%Y-%m-%d"


def trash_timezone(offset_hours: int = 8) -> timezone:
    return timezone(timedelta(hours=offset_hours))


def parse_trash_date(name: str, tz: timezone) -> datetime:
    """Reads a trash directory name as midnight of that day in the given offset."""
    return datetime.strptime(name, TRASH_DATE_FORMAT).replace(tzinfo=tz)


def purge_outdated(trash_root: Path, now: datetime, retention_days: int = 7, offset_hours: int = 8) -> list[str]:
    """
    Removes trash directories dated more than `retention_days` before `now`.
    Entries whose name is not a date are logged and left alone. Returns the removed names.
    """
    tz = trash_timezone(offset_hours)
    limit = now - timedelta(days=retention_days)
    removed = []

    for entry in sorted(trash_root.iterdir()):
        try:
            date = parse_trash_date(entry.name, tz)
        except ValueError:
            logger.error(f"{entry.name} is not parseable")
            continue
        if date < limit:
            logger.info(f"remove outdated trash: {entry.name}")
            if entry.is_dir():
                shutil.rmtree(entry)
            else:
                entry.unlink()
            removed.append(entry.name)

    return removed


def prepare_trash(trash_root: Path, now: datetime, retention_days: int = 7, offset_hours: int = 8) -> Path:
    """Makes sure the trash root exists, purges old days and returns today's trash directory."""
    trash_root.mkdir(parents=True, exist_ok=True)
    purge_outdated(trash_root, now, retention_days, offset_hours)

    today = now.astimezone(trash_timezone(offset_hours)).strftime(TRASH_DATE_FORMAT)
    trash_dir = trash_root / today
    trash_dir.mkdir(parents=True, exist_ok=True)
    return trash_dir
