"""
Module: contractor_kernel.models.rate_assignment
Responsibility: ORM persistence for the binding of a (subcontractor, client)
    pair to a PAY card and an optional BILL card.

Invariants enforced:
    - At most one assignment per (company, subcontractor, client):
      uq_rate_assignment_pair.  Supersession replaces the row inside the
      caller's transaction.
"""

from uuid import UUID

from sqlalchemy import ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from contractor_kernel.db.base import TrackedBase, UUIDString
from contractor_kernel.domain.rate_card import RateAssignment


class RateAssignmentModel(TrackedBase):
    __tablename__ = "rate_assignments"

    __table_args__ = (
        UniqueConstraint(
            "company_id", "subcontractor_id", "client_id",
            name="uq_rate_assignment_pair",
        ),
    )

    company_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    subcontractor_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    client_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    pay_rate_card_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("rate_cards.id"),
        nullable=False,
    )
    bill_rate_card_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("rate_cards.id"),
        nullable=True,
    )

    def to_dto(self) -> RateAssignment:
        return RateAssignment(
            id=self.id,
            company_id=self.company_id,
            subcontractor_id=self.subcontractor_id,
            client_id=self.client_id,
            pay_rate_card_id=self.pay_rate_card_id,
            bill_rate_card_id=self.bill_rate_card_id,
        )
