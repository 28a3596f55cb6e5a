"""Database layer package.

Public re-exports so callers can write::

    from uniscope.db import get_connection, init_db, SQLiteStore
"""

from uniscope.db.connection import get_connection
from uniscope.db.migrations import init_db
from uniscope.db.store import SQLiteStore

__all__ = ["get_connection", "init_db", "SQLiteStore"]
