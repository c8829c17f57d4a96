import asyncio
import os
import shutil
import sqlite3
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, TypeVar

import aiofiles.os
from loguru import logger

import db
from config import Config
from models import PermissionGrant, Picture, UserPictureLink
from quota import resolve_quotas
from reconcile import Reconciliation, reconcile

Row = TypeVar("Row")


def elapsed(start: float) -> str:
    return f"{time.perf_counter() - start:.3f}s"


@dataclass
class PictureCleanup:
    reconciliation: Reconciliation
    surviving_link_ids: list[int] = field(default_factory=list)
    deleted_pictures: int = 0
    deleted_links: int = 0
    trashed_files: list[Path] = field(default_factory=list)
    removed_folders: list[Path] = field(default_factory=list)


# ==================================================================================================
# DATABASE
# ==================================================================================================
def _delete_each(rows: list[Row], delete_one: Callable[[sqlite3.Connection, Row], int], db_path: Path) -> int:
    deleted = 0
    conn = db.connect(db_path)
    try:
        for row in rows:
            try:
                affected = delete_one(conn, row)
            except sqlite3.Error as e:
                logger.error(f"cannot delete {row}: {e}")
                continue
            if affected != 1:
                logger.error(f"deleting {row} affected {affected} rows, expected 1")
                continue
            deleted += 1
    finally:
        conn.close()
    return deleted


async def delete_rows(rows: list[Row], delete_one: Callable[[sqlite3.Connection, Row], int], db_path: Path,
                      start: float, finish_message: str) -> int:
    """
    Deletes rows one at a time on a worker thread. A failing row is logged and skipped,
    the remaining rows are still deleted. Returns how many rows were actually removed.
    """
    loop = asyncio.get_running_loop()
    deleted = await loop.run_in_executor(None, _delete_each, rows, delete_one, db_path)
    logger.info(f"{finish_message} {elapsed(start)} ({deleted}/{len(rows)})")
    return deleted


# ==================================================================================================
# FILESYSTEM
# ==================================================================================================
def _list_files(root: Path) -> list[Path]:
    return sorted(path for path in root.rglob("*") if path.is_file())


def retained_paths(pictures: Iterable[Picture], base_dir: Path) -> set[str]:
    """Normalized paths of every variant of every picture being kept."""
    return {os.path.normpath(base_dir / path) for picture in pictures for path in picture.paths}


async def sweep_files(used: list[Picture], base_dir: Path, pictures_path: Path, trash_dir: Path,
                      start: float) -> list[Path]:
    """
    Moves every file under `pictures_path` that no used picture refers to into `trash_dir`.
    The retained set is built from the kept pictures rather than from the deleted ones, so files
    without any database record are swept too. Any filesystem error propagates.
    """
    loop = asyncio.get_running_loop()
    retained = retained_paths(used, base_dir)
    trashed = []

    for path in await loop.run_in_executor(None, _list_files, pictures_path):
        if os.path.normpath(path) in retained:
            continue
        logger.debug(f"removing file: {path}")
        await loop.run_in_executor(None, shutil.copyfile, path, trash_dir / path.name)
        await aiofiles.os.remove(path)
        trashed.append(path)

    logger.info(f"unused files removed in {elapsed(start)} ({len(trashed)} files)")
    return trashed


async def remove_empty_folders(pictures_path: Path) -> list[Path]:
    """Removes empty immediate subdirectories of the storage root. Only one level per run."""
    removed = []
    for entry in sorted(pictures_path.iterdir()):
        if not entry.is_dir():
            continue
        if await aiofiles.os.listdir(entry):
            continue
        logger.debug(f"removing empty folder: {entry}")
        await aiofiles.os.rmdir(entry)
        removed.append(entry)
    return removed


# ==================================================================================================
# PIPELINE
# ==================================================================================================
async def collect_link_ids(result: Reconciliation, links: list[UserPictureLink]) -> list[int]:
    return result.surviving_link_ids(links)


async def cleanup_pictures(config: Config, available_users: Iterable[int], pictures: list[Picture],
                           links: list[UserPictureLink], permissions: list[PermissionGrant],
                           trash_dir: Path, now: datetime, start: float) -> PictureCleanup:
    """
    Classifies pictures and links, then runs the database deletes, the file sweep and the link id
    collection side by side. Every unit is awaited before empty folders are pruned; the first
    failure among them, if any, is raised only after all of them have finished.
    """
    quotas = resolve_quotas(permissions, now, config.grant_grace_days)
    result = reconcile(pictures, links, quotas, available_users)
    logger.debug(f"unused pictures calculated in {elapsed(start)}")

    outcomes = await asyncio.gather(
        delete_rows(result.unused, db.delete_picture, config.db_path, start,
                    "unused pictures removed from database in"),
        delete_rows(result.disabled, db.delete_user_picture, config.db_path, start,
                    "disabled user pictures removed from database in"),
        sweep_files(result.used, config.base_dir, config.pictures_path, trash_dir, start),
        collect_link_ids(result, links),
        return_exceptions=True,
    )
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            raise outcome
    deleted_pictures, deleted_links, trashed, surviving = outcomes

    removed = await remove_empty_folders(config.pictures_path)
    logger.info(f"picture cleanup finished in {elapsed(start)}")

    return PictureCleanup(
        reconciliation=result,
        surviving_link_ids=surviving,
        deleted_pictures=deleted_pictures,
        deleted_links=deleted_links,
        trashed_files=trashed,
        removed_folders=removed,
    )
