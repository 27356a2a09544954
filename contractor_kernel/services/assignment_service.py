"""
AssignmentService -- binds a (subcontractor, client) pair to rate cards.

Invariants enforced:
    - At most one live assignment per (company, subcontractor, client).
      Supersession runs in the caller's transaction: lock the existing row,
      delete it, insert the replacement.  The unique constraint catches a
      concurrent insert that slipped past the lock.
    - The pay card is a PAY card; the bill card, when given, a BILL card.

Failure modes:
    - DuplicateAssignmentError: pair already assigned and ``supersede`` is
      False, or a concurrent insert won the race.
    - RateCardKindMismatchError, RateCardNotFoundError,
      AssignmentNotFoundError.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from contractor_kernel.domain.rate_card import RateAssignment, RateCardKind
from contractor_kernel.exceptions import (
    AssignmentNotFoundError,
    DuplicateAssignmentError,
    RateCardKindMismatchError,
    RateCardNotFoundError,
)
from contractor_kernel.logging_config import get_logger
from contractor_kernel.models.rate_assignment import RateAssignmentModel
from contractor_kernel.models.rate_card import RateCardModel
from contractor_kernel.services.base import BaseService

logger = get_logger("services.assignment")


class AssignmentService(BaseService[RateAssignmentModel]):

    def _pair_stmt(self, company_id: UUID, subcontractor_id: UUID, client_id: UUID):
        return select(RateAssignmentModel).where(
            RateAssignmentModel.company_id == company_id,
            RateAssignmentModel.subcontractor_id == subcontractor_id,
            RateAssignmentModel.client_id == client_id,
        )

    def _check_card(self, rate_card_id: UUID, expected: RateCardKind) -> None:
        card = self.session.get(RateCardModel, rate_card_id)
        if card is None:
            raise RateCardNotFoundError(str(rate_card_id))
        if card.kind != expected.value:
            raise RateCardKindMismatchError(
                rate_card_id=str(rate_card_id),
                expected_kind=expected.value,
                actual_kind=card.kind,
            )

    def find_assignment(
        self,
        company_id: UUID,
        subcontractor_id: UUID,
        client_id: UUID,
    ) -> RateAssignment | None:
        model = self.session.execute(
            self._pair_stmt(company_id, subcontractor_id, client_id)
        ).scalar_one_or_none()
        return model.to_dto() if model else None

    def get_assignment(
        self,
        company_id: UUID,
        subcontractor_id: UUID,
        client_id: UUID,
    ) -> RateAssignment:
        """
        Raises:
            AssignmentNotFoundError: If the pair has no assignment.
        """
        assignment = self.find_assignment(company_id, subcontractor_id, client_id)
        if assignment is None:
            raise AssignmentNotFoundError(str(subcontractor_id), str(client_id))
        return assignment

    def assign(
        self,
        company_id: UUID,
        subcontractor_id: UUID,
        client_id: UUID,
        pay_rate_card_id: UUID,
        actor_id: UUID,
        bill_rate_card_id: UUID | None = None,
        supersede: bool = True,
    ) -> RateAssignment:
        """
        Assign pay and bill cards to a (subcontractor, client) pair.

        Args:
            supersede: Replace an existing assignment for the pair.  When
                False an existing assignment is an error.

        Returns:
            The new RateAssignment.
        """
        self._check_card(pay_rate_card_id, RateCardKind.PAY)
        if bill_rate_card_id is not None:
            self._check_card(bill_rate_card_id, RateCardKind.BILL)

        # INVARIANT: row lock held until the caller's transaction ends.
        existing = self.session.execute(
            self._pair_stmt(company_id, subcontractor_id, client_id).with_for_update()
        ).scalar_one_or_none()

        superseded_id = None
        if existing is not None:
            if not supersede:
                raise DuplicateAssignmentError(str(subcontractor_id), str(client_id))
            superseded_id = existing.id
            self.session.delete(existing)
            self.session.flush()

        model = RateAssignmentModel(
            company_id=company_id,
            subcontractor_id=subcontractor_id,
            client_id=client_id,
            pay_rate_card_id=pay_rate_card_id,
            bill_rate_card_id=bill_rate_card_id,
            created_by_id=actor_id,
        )
        try:
            with self.session.begin_nested():
                self.session.add(model)
                self.session.flush()
        except IntegrityError as exc:
            raise DuplicateAssignmentError(str(subcontractor_id), str(client_id)) from exc

        logger.info(
            "rate_assignment_saved",
            extra={
                "assignment_id": str(model.id),
                "subcontractor_id": str(subcontractor_id),
                "client_id": str(client_id),
                "superseded_id": str(superseded_id) if superseded_id else None,
            },
        )
        return model.to_dto()

    def remove_assignment(
        self,
        company_id: UUID,
        subcontractor_id: UUID,
        client_id: UUID,
        actor_id: UUID,
    ) -> None:
        """
        Raises:
            AssignmentNotFoundError: If the pair has no assignment.
        """
        model = self.session.execute(
            self._pair_stmt(company_id, subcontractor_id, client_id).with_for_update()
        ).scalar_one_or_none()
        if model is None:
            raise AssignmentNotFoundError(str(subcontractor_id), str(client_id))
        self.session.delete(model)
        self.session.flush()
        logger.info(
            "rate_assignment_removed",
            extra={
                "assignment_id": str(model.id),
                "actor_id": str(actor_id),
            },
        )
