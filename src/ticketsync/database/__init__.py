"""Database layer for ticketsync."""

from ticketsync.database.base import Database
from ticketsync.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
