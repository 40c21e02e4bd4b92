"""
Module: ledger_kernel.db.base
Responsibility: Declarative base for the notification journal's ORM models.
    Provides the UUID primary key convention and a type annotation map so
    every column of a given Python type maps to the same SQL type.
Architecture position: Kernel > DB.  The lowest-level import target for
    persistence.  MUST NOT import from models/, services/ or domain/.

Invariants enforced:
    - UUID primary keys: every model inherits a uuid4-generated key stored
      as String(36) for cross-database portability.
    - Timestamps are always timezone-aware columns.
"""

from datetime import datetime
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import BigInteger, DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """
    UUID type stored as String(36).

    Converts between Python UUID objects and their 36-character string
    form on the way in and out of the database.
    """

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return None

    def process_result_value(self, value, dialect):
        if value is not None:
            return PyUUID(value)
        return None


class Base(DeclarativeBase):
    """
    Declarative base for all journal models.

    Guarantees:
        - id is always a uuid4-generated UUID stored as String(36).
        - datetime maps to DateTime(timezone=True).
        - int maps to BigInteger -- safe for monotonic sequences.
    """

    type_annotation_map: ClassVar[dict] = {
        datetime: DateTime(timezone=True),
        PyUUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[PyUUID] = mapped_column(
        UUIDString(),
        primary_key=True,
        default=uuid4,
    )
