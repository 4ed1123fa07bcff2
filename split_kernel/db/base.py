"""
Module: split_kernel.db.base
Responsibility: Declarative base for the SQLAlchemy ORM models. Provides the
    UUID primary key convention and a type annotation map for consistent
    column types.
Architecture position: Kernel > DB. Lowest-level import target within db/.
    MUST NOT import from services/, adapters/ or domain logic.

Invariants enforced:
    - UUID surrogate primary keys on every table; domain ids (transaction
      ids, member ids) are ordinary columns scoped by scope_id.
    - Money is stored as BigInteger minor units. NEVER float.
    - datetime maps to DateTime(timezone=True).
"""

from datetime import datetime
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import BigInteger, DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """
    UUID type stored as String(36) for cross-database portability.

    Guarantees:
        - process_bind_param: UUID -> str on INSERT/UPDATE.
        - process_result_value: str -> UUID on SELECT.
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
    """Declarative base for all split_kernel tables."""

    type_annotation_map: ClassVar[dict] = {
        datetime: DateTime(timezone=True),
        PyUUID: UUIDString(),
        # Minor units; BigInteger keeps large currencies safe
        int: BigInteger,
    }

    id: Mapped[PyUUID] = mapped_column(
        UUIDString(),
        primary_key=True,
        default=uuid4,
    )
