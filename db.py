import sqlite3
from contextlib import closing
from pathlib import Path

from models import PermissionGrant, Picture, Share, User, UserPictureLink

SCHEMA = """
    CREATE TABLE IF NOT EXISTS user (
        uid INTEGER PRIMARY KEY,
        username TEXT NOT NULL,
        available INTEGER NOT NULL DEFAULT 1
    );
    CREATE TABLE IF NOT EXISTS picture (
        pid TEXT PRIMARY KEY,
        size INTEGER NOT NULL,
        original TEXT NOT NULL,
        thumbnail TEXT NOT NULL,
        watermark TEXT NOT NULL
    );
    CREATE TABLE IF NOT EXISTS user_picture (
        id INTEGER PRIMARY KEY,
        uid INTEGER NOT NULL,
        pid TEXT NOT NULL,
        available INTEGER NOT NULL DEFAULT 1,
        file_name TEXT NOT NULL
    );
    CREATE TABLE IF NOT EXISTS permission (
        id INTEGER PRIMARY KEY,
        uid INTEGER NOT NULL,
        permission TEXT NOT NULL,
        expiry INTEGER NOT NULL DEFAULT 0,
        available INTEGER NOT NULL DEFAULT 1
    );
    CREATE TABLE IF NOT EXISTS share (
        id INTEGER PRIMARY KEY,
        uid INTEGER NOT NULL,
        expiry INTEGER NOT NULL
    );
"""


def connect(db_path: Path) -> sqlite3.Connection:
    # Connections are handed to executor threads by the deletion pipeline
    return sqlite3.connect(db_path, check_same_thread=False)


def init_db(db_path: Path):
    """Initializes the database and creates the tables if they don't exist."""
    with closing(connect(db_path)) as conn:
        conn.executescript(SCHEMA)
        conn.commit()


# --------------------------------------------------------------------------------------------------
# Loaders. Rows come back in table order, which decides quota ownership for shared pictures.
# --------------------------------------------------------------------------------------------------
def load_users(db_path: Path) -> list[User]:
    with closing(connect(db_path)) as conn:
        rows = conn.execute("SELECT uid, username, available FROM user ORDER BY rowid").fetchall()
    return [User(*row) for row in rows]


def load_pictures(db_path: Path) -> list[Picture]:
    with closing(connect(db_path)) as conn:
        rows = conn.execute(
            "SELECT pid, size, original, thumbnail, watermark FROM picture ORDER BY rowid"
        ).fetchall()
    return [Picture(*row) for row in rows]


def load_user_pictures(db_path: Path) -> list[UserPictureLink]:
    with closing(connect(db_path)) as conn:
        rows = conn.execute(
            "SELECT id, uid, pid, available, file_name FROM user_picture ORDER BY rowid"
        ).fetchall()
    return [UserPictureLink(*row) for row in rows]


def load_permissions(db_path: Path) -> list[PermissionGrant]:
    with closing(connect(db_path)) as conn:
        rows = conn.execute(
            "SELECT id, uid, permission, expiry, available FROM permission ORDER BY rowid"
        ).fetchall()
    return [PermissionGrant(*row) for row in rows]


def load_shares(db_path: Path) -> list[Share]:
    with closing(connect(db_path)) as conn:
        rows = conn.execute("SELECT id, uid, expiry FROM share ORDER BY rowid").fetchall()
    return [Share(*row) for row in rows]


# --------------------------------------------------------------------------------------------------
# Single-row deletes. Each returns the number of affected rows, callers expect exactly one.
# --------------------------------------------------------------------------------------------------
def delete_picture(conn: sqlite3.Connection, picture: Picture) -> int:
    cursor = conn.execute("DELETE FROM picture WHERE pid = ?", (picture.pid,))
    conn.commit()
    return cursor.rowcount


def delete_user_picture(conn: sqlite3.Connection, link: UserPictureLink) -> int:
    cursor = conn.execute("DELETE FROM user_picture WHERE id = ?", (link.id,))
    conn.commit()
    return cursor.rowcount


def delete_user(conn: sqlite3.Connection, user: User) -> int:
    cursor = conn.execute("DELETE FROM user WHERE uid = ?", (user.uid,))
    conn.commit()
    return cursor.rowcount


def delete_share(conn: sqlite3.Connection, share: Share) -> int:
    cursor = conn.execute("DELETE FROM share WHERE id = ?", (share.id,))
    conn.commit()
    return cursor.rowcount
