"""
Module: contractor_kernel.models.rate_card
Responsibility: ORM persistence for rate cards, their rate entries and
    expense rates.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/ only.

Invariants enforced:
    - kind is PAY or BILL, stored explicitly.
    - Rates are exact Decimals; rate windows are stored as dates.
    - Entry order is preserved (position) because ties between equally
      recent entries resolve in card order.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from contractor_kernel.db.base import Base, TrackedBase, UUIDString
from contractor_kernel.domain.rate_card import (
    ExpenseRateEntry,
    RateCard,
    RateCardKind,
    RateEntry,
    RateMode,
    UnitType,
)


class RateEntryModel(Base):
    __tablename__ = "rate_card_entries"

    __table_args__ = (
        Index("idx_rate_entry_card", "rate_card_id"),
    )

    rate_card_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("rate_cards.id", ondelete="CASCADE"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(nullable=False, default=0)
    role_name: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False, default="Labour")
    timeframe_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    shift_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    timeframe_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    base_rate: Mapped[Decimal] = mapped_column(nullable=False)
    ot_rate: Mapped[Decimal | None] = mapped_column(nullable=True)
    effective_from: Mapped[date | None] = mapped_column(nullable=True)
    effective_to: Mapped[date | None] = mapped_column(nullable=True)
    rate_mode: Mapped[str] = mapped_column(String(10), nullable=False, default=RateMode.HOURLY.value)
    min_hours: Mapped[Decimal | None] = mapped_column(nullable=True)

    rate_card: Mapped["RateCardModel"] = relationship(back_populates="rates")

    def to_dto(self) -> RateEntry:
        return RateEntry(
            role_name=self.role_name,
            base_rate=self.base_rate,
            timeframe_id=self.timeframe_id,
            shift_type=self.shift_type,
            timeframe_name=self.timeframe_name,
            category=self.category,
            ot_rate=self.ot_rate,
            effective_from=self.effective_from,
            effective_to=self.effective_to,
            rate_mode=RateMode(self.rate_mode),
            min_hours=self.min_hours,
        )

    @classmethod
    def from_dto(cls, entry: RateEntry, position: int) -> "RateEntryModel":
        return cls(
            position=position,
            role_name=entry.role_name,
            category=entry.category,
            timeframe_id=entry.timeframe_id,
            shift_type=entry.shift_type,
            timeframe_name=entry.timeframe_name,
            base_rate=entry.base_rate,
            ot_rate=entry.ot_rate,
            effective_from=entry.effective_from,
            effective_to=entry.effective_to,
            rate_mode=entry.rate_mode.value,
            min_hours=entry.min_hours,
        )


class ExpenseRateModel(Base):
    __tablename__ = "rate_card_expense_rates"

    rate_card_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("rate_cards.id", ondelete="CASCADE"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(nullable=False, default=0)
    category_id: Mapped[str] = mapped_column(String(100), nullable=False)
    category_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    rate: Mapped[Decimal] = mapped_column(nullable=False)
    unit_type: Mapped[str] = mapped_column(String(20), nullable=False, default=UnitType.PER_UNIT.value)

    rate_card: Mapped["RateCardModel"] = relationship(back_populates="expenses")

    def to_dto(self) -> ExpenseRateEntry:
        return ExpenseRateEntry(
            category_id=self.category_id,
            rate=self.rate,
            unit_type=UnitType(self.unit_type),
            category_name=self.category_name,
        )

    @classmethod
    def from_dto(cls, entry: ExpenseRateEntry, position: int) -> "ExpenseRateModel":
        return cls(
            position=position,
            category_id=entry.category_id,
            category_name=entry.category_name,
            rate=entry.rate,
            unit_type=entry.unit_type.value,
        )


class RateCardModel(TrackedBase):
    """
    A PAY or BILL rate card.

    Guarantees:
        - Entries and expense rates load eagerly in position order.
        - template_name and timeframe names are denormalized copies,
          refreshed only by template sync.
    """

    __tablename__ = "rate_cards"

    __table_args__ = (
        Index("idx_rate_card_company", "company_id"),
        Index("idx_rate_card_template", "template_id"),
    )

    company_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    kind: Mapped[str] = mapped_column(String(10), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="GBP")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    template_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("rate_card_templates.id"),
        nullable=True,
    )
    template_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    rates: Mapped[list[RateEntryModel]] = relationship(
        back_populates="rate_card",
        order_by=RateEntryModel.position,
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    expenses: Mapped[list[ExpenseRateModel]] = relationship(
        back_populates="rate_card",
        order_by=ExpenseRateModel.position,
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def to_dto(self) -> RateCard:
        """Convert ORM model to frozen domain DTO."""
        return RateCard(
            id=self.id,
            company_id=self.company_id,
            kind=RateCardKind(self.kind),
            name=self.name,
            currency=self.currency,
            description=self.description,
            template_id=self.template_id,
            template_name=self.template_name,
            rates=tuple(r.to_dto() for r in self.rates),
            expenses=tuple(e.to_dto() for e in self.expenses),
            active=self.active,
        )

    def __repr__(self) -> str:
        return f"<RateCard {self.kind} {self.name} ({self.id})>"
