"""
Declarative base for every costing table (``contractor_kernel.db.base``).

Lowest layer of the kernel: nothing here imports models, services or
engines.

Column conventions, applied through ``Base.type_annotation_map`` so models
only write ``Mapped[...]``:

    UUID      -> String(36), portable across PostgreSQL and SQLite
    Decimal   -> NUMERIC(38, 9); text on SQLite so rates and hours never
                 pass through float
    datetime  -> timezone-aware DateTime

``TrackedBase`` adds who/when columns.  They may change on write-once
ledger rows: they describe the row, not the money.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID stored as its 36-character string form."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else PyUUID(str(value))


class DecimalType(TypeDecorator):
    """Exact Decimal column on every backend."""

    impl = Numeric(38, 9)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(64))
        return dialect.type_descriptor(Numeric(38, 9, asdecimal=True))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        exact = Decimal(str(value))
        return str(exact) if dialect.name == "sqlite" else exact

    def process_result_value(self, value, dialect):
        return None if value is None else Decimal(str(value))


class Base(DeclarativeBase):
    """Every model gets a uuid4 primary key."""

    type_annotation_map: ClassVar[dict] = {
        Decimal: DecimalType(),
        datetime: DateTime(timezone=True),
        PyUUID: UUIDString(),
    }

    id: Mapped[PyUUID] = mapped_column(primary_key=True, default=uuid4)


class TrackedBase(Base):
    """Adds creation and last-update stamps. ``created_by_id`` is required."""

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(),
    )
    created_by_id: Mapped[PyUUID] = mapped_column()
    updated_by_id: Mapped[PyUUID | None] = mapped_column()


UUID = PyUUID
