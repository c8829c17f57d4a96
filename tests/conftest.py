from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from loguru import logger

import db
from config import Config

MIB = 1024 * 1024
TZ = timezone(timedelta(hours=8))


@pytest.fixture()
def now() -> datetime:
    return datetime(2026, 10, 19, 10, 0, tzinfo=TZ)


@pytest.fixture()
def config(tmp_path: Path) -> Config:
    cfg = Config(
        base_dir=tmp_path,
        db_path=tmp_path / "storage" / "pictures.db",
        pictures_path=tmp_path / "pictures",
        trash_path=tmp_path / "trash",
        logs_path=tmp_path / "logs",
        log_level="DEBUG",
        mark_url="http://cleanup.test/admin/cleanup",
    )
    cfg.db_path.parent.mkdir(parents=True)
    cfg.pictures_path.mkdir()
    db.init_db(cfg.db_path)
    return cfg


@pytest.fixture()
def log_messages() -> list[str]:
    messages: list[str] = []
    sink_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(sink_id)


def seed(db_path: Path, table: str, rows: list[tuple]) -> None:
    placeholders = ", ".join("?" * len(rows[0]))
    with sqlite3.connect(db_path) as conn:
        conn.executemany(f"INSERT INTO {table} VALUES ({placeholders})", rows)
        conn.commit()
    conn.close()


def count(db_path: Path, table: str) -> int:
    with sqlite3.connect(db_path) as conn:
        (total,) = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()
    conn.close()
    return total


def write_picture_files(base_dir: Path, *relative_paths: str) -> None:
    for relative in relative_paths:
        path = base_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"jpg")
