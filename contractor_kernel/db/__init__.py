"""Database layer - engine, base classes, types and write-once enforcement."""

from contractor_kernel.db.base import UUID, Base, DecimalType, TrackedBase, UUIDString
from contractor_kernel.db.engine import create_tables, get_engine, get_session, session_scope

__all__ = [
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "Base",
    "TrackedBase",
    "DecimalType",
    "UUIDString",
    "UUID",
]
