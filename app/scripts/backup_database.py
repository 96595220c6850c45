"""
Backup Database Script
Copies the live SQLite database to <backup_dir>/backup-<timestamp>.db using
SQLite's online backup API, so it is safe while the server is running.

    python -m app.scripts.backup_database
"""

import logging
import os
import sqlite3
import sys
from datetime import datetime, timezone

from app.config import settings
from app.database.sqlite_client import DatabaseClient

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def backup_path(backup_dir: str, now: datetime = None) -> str:
    now = now or datetime.now(timezone.utc)
    timestamp = now.strftime("%Y-%m-%dT%H-%M-%S-%fZ")
    return os.path.join(backup_dir, f"backup-{timestamp}.db")


def backup_database(source_path: str, backup_dir: str) -> str:
    """Copy source_path into backup_dir and return the new file's path"""
    if not source_path or not os.path.exists(source_path):
        raise FileNotFoundError(f"Database file not found: {source_path}")
    os.makedirs(backup_dir, exist_ok=True)
    target_path = backup_path(backup_dir)

    source = sqlite3.connect(source_path)
    target = sqlite3.connect(target_path)
    try:
        with target:
            source.backup(target)
    finally:
        target.close()
        source.close()
    logger.info(f"Backup created: {target_path}")
    return target_path


def main():
    try:
        backup_database(DatabaseClient.database_path(), settings.backup_dir)
    except (OSError, sqlite3.Error) as e:
        logger.error(f"Backup failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
