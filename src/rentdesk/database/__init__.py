"""Database layer for rentdesk application."""

from rentdesk.database.base import Database
from rentdesk.database.factories import create_sqlite_database
from rentdesk.database.memory import InMemoryDatabase

__all__ = ["Database", "InMemoryDatabase", "create_sqlite_database"]
