"""Database package"""

from propman.db.session import Database, database, get_db
from propman.models.base import Base

__all__ = ["Base", "Database", "database", "get_db"]
