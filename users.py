from pathlib import Path

from loguru import logger

import db
from deletion import delete_rows, elapsed
from models import User


def collect_users(users: list[User]) -> list[int]:
    """Uids of all users, without duplicates, in the order they were loaded."""
    available: list[int] = []
    for user in users:
        if user.uid not in available:
            available.append(user.uid)
    return available


async def cleanup_users(users: list[User], db_path: Path, start: float) -> list[int]:
    """Deletes disabled users and returns the uids of the ones that remain."""
    disabled = [user for user in users if user.available == 0]
    for user in disabled:
        logger.debug(f"removing user: {user.username}")
    await delete_rows(disabled, db.delete_user, db_path, start, "disabled users removed from database in")

    available = collect_users([user for user in users if user.available != 0])
    logger.info(f"user cleanup finished in {elapsed(start)} ({len(available)} available)")
    return available
