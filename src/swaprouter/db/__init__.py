"""Persistence for protocol fee configuration."""

from swaprouter.db.database import Database, close_db, get_database, get_db, init_db
from swaprouter.db.models import Base, ProtocolFeeRecord

__all__ = [
    "Base",
    "Database",
    "ProtocolFeeRecord",
    "get_database",
    "get_db",
    "init_db",
    "close_db",
]
