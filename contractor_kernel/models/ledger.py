"""
Module: contractor_kernel.models.ledger
Responsibility: ORM persistence for ledger entries: priced time logs and
    expenses.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/ only.

Invariants enforced:
    - Financial fields (rates, hours, cost, billing, margin) are write-once.
      Enforced by db/immutability.py before_update listeners.
    - status moves only through LedgerService's conditional UPDATE, which
      bypasses the ORM unit of work.
    - Expenses are pass-through: client billing equals amount.

Failure modes:
    - ImmutabilityViolationError on flush when a financial field changed.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from contractor_kernel.db.base import TrackedBase, UUIDString
from contractor_kernel.domain.ledger import EntryStatus, ExpenseRecord, TimeLogRecord

TIME_LOG_FINANCIAL_FIELDS: tuple[str, ...] = (
    "hours_regular",
    "hours_ot",
    "sub_base_rate",
    "sub_ot_rate",
    "client_base_rate",
    "client_ot_rate",
    "sub_cost",
    "client_bill",
    "margin_value",
    "margin_pct",
    "currency",
)

EXPENSE_FINANCIAL_FIELDS: tuple[str, ...] = (
    "amount",
    "quantity",
    "unit_rate",
    "currency",
)


class TimeLogModel(TrackedBase):
    """A priced time log.  Pricing is resolved once, at creation."""

    __tablename__ = "time_logs"

    __table_args__ = (
        Index("idx_time_log_project", "project_id", "work_date"),
        Index("idx_time_log_subcontractor", "subcontractor_id"),
        Index("idx_time_log_status", "status"),
    )

    company_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    project_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    client_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    subcontractor_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    pay_rate_card_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("rate_cards.id"), nullable=False,
    )
    bill_rate_card_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("rate_cards.id"), nullable=True,
    )
    work_date: Mapped[date] = mapped_column(nullable=False)
    role_name: Mapped[str] = mapped_column(String(200), nullable=False)
    timeframe_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    shift_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    shift_label: Mapped[str | None] = mapped_column(String(200), nullable=True)
    timeframe_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    hours_regular: Mapped[Decimal] = mapped_column(nullable=False)
    hours_ot: Mapped[Decimal] = mapped_column(nullable=False)
    sub_base_rate: Mapped[Decimal] = mapped_column(nullable=False)
    sub_ot_rate: Mapped[Decimal] = mapped_column(nullable=False)
    client_base_rate: Mapped[Decimal] = mapped_column(nullable=False)
    client_ot_rate: Mapped[Decimal] = mapped_column(nullable=False)
    sub_cost: Mapped[Decimal] = mapped_column(nullable=False)
    client_bill: Mapped[Decimal] = mapped_column(nullable=False)
    margin_value: Mapped[Decimal] = mapped_column(nullable=False)
    margin_pct: Mapped[Decimal] = mapped_column(nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=EntryStatus.DRAFT.value,
    )
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")

    def to_record(self) -> TimeLogRecord:
        return TimeLogRecord(
            id=self.id,
            subcontractor_id=self.subcontractor_id,
            status=self.status,
            project_id=self.project_id,
            work_date=self.work_date,
            role_name=self.role_name,
            timeframe_id=self.timeframe_id,
            shift_type=self.shift_type,
            shift_label=self.shift_label,
            timeframe_name=self.timeframe_name,
            hours_regular=self.hours_regular,
            hours_ot=self.hours_ot,
            sub_cost=self.sub_cost,
            client_bill=self.client_bill,
            margin_value=self.margin_value,
            margin_pct=self.margin_pct,
            currency=self.currency,
        )

    def __repr__(self) -> str:
        return f"<TimeLog {self.id} {self.role_name} {self.work_date} {self.status}>"


class ExpenseModel(TrackedBase):
    """An expense, billed to the client at cost."""

    __tablename__ = "expenses"

    __table_args__ = (
        Index("idx_expense_project", "project_id", "work_date"),
        Index("idx_expense_subcontractor", "subcontractor_id"),
    )

    company_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    project_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    client_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    subcontractor_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    work_date: Mapped[date] = mapped_column(nullable=False)
    category: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    quantity: Mapped[Decimal | None] = mapped_column(nullable=True)
    unit_rate: Mapped[Decimal | None] = mapped_column(nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=EntryStatus.DRAFT.value,
    )

    def to_record(self) -> ExpenseRecord:
        return ExpenseRecord(
            id=self.id,
            subcontractor_id=self.subcontractor_id,
            status=self.status,
            project_id=self.project_id,
            work_date=self.work_date,
            category=self.category,
            amount=self.amount,
            quantity=self.quantity,
            unit_rate=self.unit_rate,
            currency=self.currency,
        )

    def __repr__(self) -> str:
        return f"<Expense {self.id} {self.category} {self.amount} {self.status}>"
