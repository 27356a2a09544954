"""
Template label sync (``contractor_engines.template_sync``).

Pure half of Template Sync: given a template and one rate card, return the
card with its denormalized display names refreshed from the template.

* Rate entries are matched to timeframes by ``timeframe_id`` only.
  Entries with no id, or an id the template no longer defines, keep their
  current name.
* Expense rates are matched to categories by ``category_id``.
* Numeric fields are never touched.

The per-card transaction handling lives in ``TemplateService``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from contractor_kernel.domain.rate_card import RateCard
from contractor_kernel.domain.templates import RateCardTemplate
from contractor_kernel.exceptions import PartialSyncError


@dataclass(frozen=True)
class SyncFailure:
    rate_card_id: str
    code: str
    message: str


@dataclass(frozen=True)
class TemplateSyncResult:
    """Outcome of syncing every card linked to one template."""
    template_id: str
    rate_cards_updated: int = 0
    errors: tuple[SyncFailure, ...] = ()

    @property
    def success(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        if self.errors:
            raise PartialSyncError(
                template_id=self.template_id,
                rate_cards_updated=self.rate_cards_updated,
                failed_card_ids=[e.rate_card_id for e in self.errors],
            )


def apply_template_labels(template: RateCardTemplate, card: RateCard) -> RateCard:
    """Return ``card`` relabelled from ``template``."""
    if card.template_id != template.id:
        raise ValueError(
            f"Rate card {card.id} is linked to template {card.template_id}, not {template.id}"
        )
    timeframe_names = template.timeframe_names
    category_names = template.expense_category_names

    rates = tuple(
        replace(entry, timeframe_name=timeframe_names[entry.timeframe_id])
        if entry.timeframe_id in timeframe_names
        else entry
        for entry in card.rates
    )
    expenses = tuple(
        replace(exp, category_name=category_names[exp.category_id])
        if exp.category_id in category_names
        else exp
        for exp in card.expenses
    )
    return replace(card, rates=rates, expenses=expenses, template_name=template.name)

