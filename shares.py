from datetime import datetime
from pathlib import Path
from typing import Iterable

from loguru import logger

import db
from deletion import delete_rows
from models import Share


def expired_shares(shares: list[Share], available_users: Iterable[int], link_ids: Iterable[int],
                   now: datetime) -> list[Share]:
    """Shares whose owner is gone, whose link did not survive the cleanup, or that ran out."""
    available_users = set(available_users)
    link_ids = set(link_ids)
    now_ms = int(now.timestamp() * 1000)

    outdated = []
    for share in shares:
        if share.uid not in available_users:
            logger.debug(f"removing share {share.id}: user {share.uid} is not available")
        elif now_ms > share.expiry:
            logger.debug(f"removing share {share.id}: expired")
        elif share.id not in link_ids:
            logger.debug(f"removing share {share.id}: link was removed")
        else:
            continue
        outdated.append(share)
    return outdated


async def cleanup_shares(shares: list[Share], available_users: Iterable[int], link_ids: Iterable[int],
                         db_path: Path, now: datetime, start: float) -> int:
    outdated = expired_shares(shares, available_users, link_ids, now)
    return await delete_rows(outdated, db.delete_share, db_path, start, "share cleanup finished in")
