import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from the .env file
# This allows keeping deployment-specific paths and URLs outside of the code
load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_path(base_dir: Path, name: str, default: str) -> Path:
    path = Path(os.getenv(name) or default)
    return path if path.is_absolute() else base_dir / path


@dataclass(frozen=True)
class Config:
    """Settings for one cleanup run. Built once at startup and passed around."""

    # --- Paths ---
    base_dir: Path
    db_path: Path
    # Live storage tree, picture paths in the database are relative to base_dir
    pictures_path: Path
    trash_path: Path
    logs_path: Path

    # --- Logging ---
    log_level: str = "INFO"

    # --- Maintenance window ---
    mark_url: str = "http://127.0.0.1:8102/admin/cleanup"
    ignore_mark_fail: bool = False

    # --- Cleanup behaviour ---
    cleanup_users: bool = True
    trash_retention_days: int = 7
    # Grants that expired less than this many days ago still count for quota
    grant_grace_days: int = 180
    # Trash directory names are dates at midnight in this fixed offset
    trash_utc_offset_hours: int = 8


def load_config() -> Config:
    """Builds the configuration from the environment (and .env, if present)."""
    base_dir = Path(os.getenv("BASE_DIR") or Path(__file__).parent)
    return Config(
        base_dir=base_dir,
        db_path=_env_path(base_dir, "DB_PATH", "storage/pictures.db"),
        pictures_path=_env_path(base_dir, "PICTURES_DIR", "pictures"),
        trash_path=_env_path(base_dir, "TRASH_DIR", "trash"),
        logs_path=_env_path(base_dir, "LOGS_DIR", "logs"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        mark_url=os.getenv("MARK_URL", "http://127.0.0.1:8102/admin/cleanup"),
        ignore_mark_fail=_env_bool("IGNORE_MARK_FAIL", False),
        cleanup_users=_env_bool("CLEANUP_USERS", True),
        trash_retention_days=int(os.getenv("TRASH_RETENTION_DAYS", "7")),
        grant_grace_days=int(os.getenv("GRANT_GRACE_DAYS", "180")),
        trash_utc_offset_hours=int(os.getenv("TRASH_UTC_OFFSET_HOURS", "8")),
    )


def setup_directories(config: Config):
    """Creates all necessary directories on startup."""
    config.logs_path.mkdir(parents=True, exist_ok=True)
    config.db_path.parent.mkdir(parents=True, exist_ok=True)
    config.pictures_path.mkdir(parents=True, exist_ok=True)
    config.trash_path.mkdir(parents=True, exist_ok=True)
