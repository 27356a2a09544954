"""
Module: contractor_kernel.models.rate_card_template
Responsibility: ORM persistence for rate card templates, their timeframe
    definitions and expense categories, and the per-company defaults record.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/ only.

Invariants enforced:
    - Timeframe keys and expense-category keys are unique within a template
      (uq_template_timeframe_key, uq_template_category_key).  The keys are
      the stable join ids referenced by rate entries.
    - At most one default template per company: the default is a column of
      the one company_defaults row (uq_company_defaults_company), never a
      flag scanned across templates.

Failure modes:
    - IntegrityError on duplicate keys or a second defaults row.
"""

from uuid import UUID

from sqlalchemy import JSON, Boolean, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from contractor_kernel.db.base import Base, TrackedBase, UUIDString
from contractor_kernel.domain.templates import (
    DEFAULT_RESOURCE_CATEGORIES,
    ExpenseCategory,
    RateCardTemplate,
    TimeframeDefinition,
)


class TemplateTimeframeModel(Base):
    """One timeframe (shift window) of a template."""

    __tablename__ = "template_timeframes"

    __table_args__ = (
        UniqueConstraint("template_id", "timeframe_key", name="uq_template_timeframe_key"),
    )

    template_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("rate_card_templates.id", ondelete="CASCADE"),
        nullable=False,
    )
    timeframe_key: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    start_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    end_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    position: Mapped[int] = mapped_column(nullable=False, default=0)

    template: Mapped["RateCardTemplateModel"] = relationship(back_populates="timeframes")

    def to_dto(self) -> TimeframeDefinition:
        return TimeframeDefinition(
            id=self.timeframe_key,
            name=self.name,
            start_time=self.start_time,
            end_time=self.end_time,
        )


class TemplateExpenseCategoryModel(Base):
    """One expense category of a template."""

    __tablename__ = "template_expense_categories"

    __table_args__ = (
        UniqueConstraint("template_id", "category_key", name="uq_template_category_key"),
    )

    template_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("rate_card_templates.id", ondelete="CASCADE"),
        nullable=False,
    )
    category_key: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    position: Mapped[int] = mapped_column(nullable=False, default=0)

    template: Mapped["RateCardTemplateModel"] = relationship(back_populates="expense_categories")

    def to_dto(self) -> ExpenseCategory:
        return ExpenseCategory(id=self.category_key, name=self.name)


class RateCardTemplateModel(TrackedBase):
    """
    Company-scoped vocabulary shared by rate cards.

    Guarantees:
        - Child timeframes and categories load eagerly in position order.
        - Deleting a template deletes its children.
    """

    __tablename__ = "rate_card_templates"

    __table_args__ = (
        Index("idx_template_company", "company_id"),
    )

    company_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    resource_categories: Mapped[list] = mapped_column(
        JSON,
        nullable=False,
        default=lambda: list(DEFAULT_RESOURCE_CATEGORIES),
    )
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    timeframes: Mapped[list[TemplateTimeframeModel]] = relationship(
        back_populates="template",
        order_by=TemplateTimeframeModel.position,
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    expense_categories: Mapped[list[TemplateExpenseCategoryModel]] = relationship(
        back_populates="template",
        order_by=TemplateExpenseCategoryModel.position,
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def to_dto(self, is_default: bool = False) -> RateCardTemplate:
        """Convert ORM model to frozen domain DTO."""
        return RateCardTemplate(
            id=self.id,
            company_id=self.company_id,
            name=self.name,
            description=self.description,
            timeframe_definitions=tuple(tf.to_dto() for tf in self.timeframes),
            expense_categories=tuple(cat.to_dto() for cat in self.expense_categories),
            resource_categories=tuple(self.resource_categories or ()),
            is_default=is_default,
            active=self.active,
        )

    def __repr__(self) -> str:
        return f"<RateCardTemplate {self.name} ({self.id})>"


class CompanyDefaultsModel(TrackedBase):
    """Per-company settings; holds the default rate card template."""

    __tablename__ = "company_defaults"

    __table_args__ = (
        UniqueConstraint("company_id", name="uq_company_defaults_company"),
    )

    company_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    default_template_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("rate_card_templates.id"),
        nullable=True,
    )
