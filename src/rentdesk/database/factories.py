"""Database factory functions for creating database instances."""

import logging
import os
from pathlib import Path
from typing import Optional

from rentdesk.config import DB_PATH_ENVVAR, DEFAULT_DB_DIR, DEFAULT_DB_FILENAME
from rentdesk.database.sqlalchemy_db import SQLAlchemyDatabase

logger = logging.getLogger(__name__)


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks RENTDESK_DB_PATH
            environment variable, then defaults to ~/.rentdesk/rentdesk.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        # Check environment variable
        database_path = os.environ.get(DB_PATH_ENVVAR)

    if database_path is None:
        # Default to ~/.rentdesk/rentdesk.db
        home = Path.home()
        db_dir = home / DEFAULT_DB_DIR
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / DEFAULT_DB_FILENAME)

    logger.debug("Opening SQLite database at %s", database_path)
    database_url = f"sqlite:///{database_path}"
    return SQLAlchemyDatabase(database_url)
