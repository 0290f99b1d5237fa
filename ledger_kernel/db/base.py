"""
ORM base classes for every ledger table.

Column conventions come from ``Base.type_annotation_map``: money is
``Numeric(38, 9)`` (never float), timestamps are timezone-aware, UUIDs are
stored as 36-character strings so the same schema runs on PostgreSQL and
SQLite.  ``TrackedBase`` adds the tenant key and the who/when columns.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import BigInteger, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """``uuid.UUID`` in Python, ``VARCHAR(36)`` in the database."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else PyUUID(value)


class Base(DeclarativeBase):
    """Declarative root; every table gets a uuid4 ``id`` primary key."""

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        PyUUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[PyUUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Tenant-scoped row with creation and update stamps.

    ``updated_at`` and ``updated_by_id`` are bookkeeping, not ledger data:
    the immutability listeners let them change on posted rows.
    """

    __abstract__ = True

    tenant_id: Mapped[PyUUID] = mapped_column(UUIDString(), nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
    created_by_id: Mapped[PyUUID] = mapped_column(nullable=False)
    updated_by_id: Mapped[PyUUID | None] = mapped_column(nullable=True)


# Columns allowed to change on an otherwise frozen row
AUDIT_METADATA_FIELDS = frozenset({"updated_at", "updated_by_id"})

UUID = PyUUID
