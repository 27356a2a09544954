"""
RateCardService -- persistence boundary for PAY and BILL rate cards.

Responsibility:
    Create and edit rate cards with their save-time checks: rate bounds,
    timeframe ids known to the linked template, overlapping windows.
    Denormalizes template and timeframe names onto the card.

Invariants enforced:
    - Every base, OT and expense rate lies in [0, 10000].
    - A rate entry's timeframe_id exists in the linked template.
    - Overlapping windows for one (role, timeframe) are logged as a warning,
      or refused when ``strict_rate_windows`` is on.

Failure modes:
    - InvalidRateError, UnknownTimeframeError, OverlappingRateError,
      InvalidCurrencyError, TemplateNotFoundError, RateCardNotFoundError.
"""

from __future__ import annotations

from dataclasses import replace
from uuid import UUID

from sqlalchemy import select

from contractor_kernel.domain.currency import validate_currency
from contractor_kernel.domain.rate_card import (
    ExpenseRateEntry,
    RateCard,
    RateCardKind,
    RateEntry,
    find_overlapping_entries,
    validate_rate_entries,
)
from contractor_kernel.domain.templates import RateCardTemplate
from contractor_kernel.exceptions import (
    OverlappingRateError,
    RateCardNotFoundError,
    TemplateNotFoundError,
    UnknownTimeframeError,
)
from contractor_kernel.logging_config import get_logger
from contractor_kernel.models.rate_card import ExpenseRateModel, RateCardModel, RateEntryModel
from contractor_kernel.models.rate_card_template import RateCardTemplateModel
from contractor_kernel.services.base import BaseService

logger = get_logger("services.rate_card")


class RateCardService(BaseService[RateCardModel]):
    """Service for rate cards.  Returns RateCard DTOs."""

    def __init__(self, session, strict_rate_windows: bool = False):
        super().__init__(session)
        self.strict_rate_windows = strict_rate_windows

    def _get_model(self, rate_card_id: UUID) -> RateCardModel:
        card = self.session.get(RateCardModel, rate_card_id)
        if card is None:
            raise RateCardNotFoundError(str(rate_card_id))
        return card

    def _get_template(self, template_id: UUID) -> RateCardTemplate:
        template = self.session.get(RateCardTemplateModel, template_id)
        if template is None:
            raise TemplateNotFoundError(str(template_id))
        return template.to_dto()

    def get_rate_card(self, rate_card_id: UUID) -> RateCard:
        """
        Raises:
            RateCardNotFoundError: If the card doesn't exist.
        """
        return self._get_model(rate_card_id).to_dto()

    def find_rate_card(self, rate_card_id: UUID | None) -> RateCard | None:
        if rate_card_id is None:
            return None
        card = self.session.get(RateCardModel, rate_card_id)
        return card.to_dto() if card else None

    def list_rate_cards(
        self,
        company_id: UUID,
        kind: RateCardKind | None = None,
        active_only: bool = True,
    ) -> list[RateCard]:
        stmt = select(RateCardModel).where(RateCardModel.company_id == company_id)
        if kind is not None:
            stmt = stmt.where(RateCardModel.kind == RateCardKind(kind).value)
        if active_only:
            stmt = stmt.where(RateCardModel.active.is_(True))
        stmt = stmt.order_by(RateCardModel.name, RateCardModel.id)
        return [c.to_dto() for c in self.session.execute(stmt).scalars().all()]

    def list_by_template(self, template_id: UUID) -> list[RateCard]:
        stmt = (
            select(RateCardModel)
            .where(RateCardModel.template_id == template_id)
            .order_by(RateCardModel.name, RateCardModel.id)
        )
        return [c.to_dto() for c in self.session.execute(stmt).scalars().all()]

    # ------------------------------------------------------------------
    # Save-time checks
    # ------------------------------------------------------------------

    def _prepare_entries(
        self,
        rates: tuple[RateEntry, ...],
        expenses: tuple[ExpenseRateEntry, ...],
        template: RateCardTemplate | None,
    ) -> tuple[tuple[RateEntry, ...], tuple[ExpenseRateEntry, ...]]:
        validate_rate_entries(rates, expenses)

        if template is not None:
            names = template.timeframe_names
            for entry in rates:
                if entry.timeframe_id and entry.timeframe_id not in names:
                    raise UnknownTimeframeError(str(template.id), entry.timeframe_id)
            rates = tuple(
                replace(e, timeframe_name=names[e.timeframe_id]) if e.timeframe_id else e
                for e in rates
            )
            category_names = template.expense_category_names
            expenses = tuple(
                replace(x, category_name=category_names[x.category_id])
                if x.category_id in category_names
                else x
                for x in expenses
            )

        for first, second in find_overlapping_entries(rates):
            if self.strict_rate_windows:
                raise OverlappingRateError(
                    role_name=first.role_name,
                    timeframe=str(first.timeframe),
                    first_from=str(first.effective_from),
                    second_from=str(second.effective_from),
                )
            logger.warning(
                "overlapping_rate_windows",
                extra={
                    "role_name": first.role_name,
                    "timeframe": str(first.timeframe),
                    "first_from": first.effective_from,
                    "second_from": second.effective_from,
                },
            )
        return rates, expenses

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_rate_card(
        self,
        company_id: UUID,
        kind: RateCardKind,
        name: str,
        actor_id: UUID,
        currency: str = "GBP",
        description: str = "",
        template_id: UUID | None = None,
        rates: tuple[RateEntry, ...] = (),
        expenses: tuple[ExpenseRateEntry, ...] = (),
    ) -> RateCard:
        """
        Create a PAY or BILL rate card.

        Raises:
            InvalidRateError: A rate is outside [0, 10000].
            UnknownTimeframeError: An entry references a timeframe the
                template does not define.
            OverlappingRateError: Overlapping windows in strict mode.
        """
        kind = RateCardKind(kind)
        currency = validate_currency(currency)
        template = self._get_template(template_id) if template_id else None
        rates, expenses = self._prepare_entries(tuple(rates), tuple(expenses), template)

        card = RateCardModel(
            company_id=company_id,
            kind=kind.value,
            name=name,
            currency=currency,
            description=description,
            template_id=template_id,
            template_name=template.name if template else None,
            created_by_id=actor_id,
        )
        card.rates = [RateEntryModel.from_dto(e, i) for i, e in enumerate(rates)]
        card.expenses = [ExpenseRateModel.from_dto(x, i) for i, x in enumerate(expenses)]
        self.session.add(card)
        self.session.flush()

        logger.info(
            "rate_card_created",
            extra={
                "rate_card_id": str(card.id),
                "kind": kind.value,
                "rate_count": len(rates),
                "template_id": str(template_id) if template_id else None,
            },
        )
        return card.to_dto()

    def replace_rates(
        self,
        rate_card_id: UUID,
        rates: tuple[RateEntry, ...],
        actor_id: UUID,
        expenses: tuple[ExpenseRateEntry, ...] | None = None,
    ) -> RateCard:
        """
        Replace a card's rate entries (and expense rates when given).

        Existing ledger entries are unaffected: they were priced at creation.
        """
        card = self._get_model(rate_card_id)
        template = self._get_template(card.template_id) if card.template_id else None
        current_expenses = tuple(x.to_dto() for x in card.expenses)
        rates, new_expenses = self._prepare_entries(
            tuple(rates),
            tuple(expenses) if expenses is not None else current_expenses,
            template,
        )

        card.rates = [RateEntryModel.from_dto(e, i) for i, e in enumerate(rates)]
        if expenses is not None:
            card.expenses = [ExpenseRateModel.from_dto(x, i) for i, x in enumerate(new_expenses)]
        card.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "rate_card_rates_replaced",
            extra={"rate_card_id": str(rate_card_id), "rate_count": len(rates)},
        )
        return card.to_dto()

    def deactivate(self, rate_card_id: UUID, actor_id: UUID) -> RateCard:
        """Inactive cards no longer price new entries."""
        card = self._get_model(rate_card_id)
        card.active = False
        card.updated_by_id = actor_id
        self.session.flush()
        logger.info("rate_card_deactivated", extra={"rate_card_id": str(rate_card_id)})
        return card.to_dto()
