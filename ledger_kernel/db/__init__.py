"""Database layer - engine, declarative base and append-only guards."""

from ledger_kernel.db.base import Base, UUIDString
from ledger_kernel.db.engine import create_tables, get_engine, get_session, session_scope

__all__ = [
    "Base",
    "UUIDString",
    "create_tables",
    "get_engine",
    "get_session",
    "session_scope",
]
