"""
Rate card template value objects (``contractor_kernel.domain.templates``).

Responsibility
--------------
Frozen dataclasses for the company-level vocabulary that rate cards share:
timeframe (shift) definitions, expense categories and resource
categories, plus the save-time structural validation of a template.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects, ZERO I/O.

Invariants enforced
-------------------
* Timeframe ids are stable across edits; they are the join key between a
  template and the rate entries that reference it.
* Timeframe and expense-category ids are unique within a template.
* A template defines at least one timeframe.

Failure modes
-------------
* ``validate_template`` raises ``InvalidTemplateError`` listing every
  problem found (not only the first).
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from contractor_kernel.exceptions import InvalidTemplateError

DEFAULT_RESOURCE_CATEGORIES: tuple[str, ...] = (
    "Labour",
    "Vehicle",
    "Specialist Service",
    "Other",
)


@dataclass(frozen=True)
class TimeframeDefinition:
    """A named shift window, e.g. ``Mon–Fri Day 07:00-17:00``."""
    id: str
    name: str
    start_time: str | None = None  # "HH:MM"
    end_time: str | None = None


@dataclass(frozen=True)
class ExpenseCategory:
    id: str
    name: str


@dataclass(frozen=True)
class RateCardTemplate:
    """Company-scoped catalogue of shift and expense vocabulary.

    ``is_default`` is derived from the company defaults record, never
    written through the template itself.
    """
    id: UUID
    company_id: UUID
    name: str
    description: str = ""
    timeframe_definitions: tuple[TimeframeDefinition, ...] = ()
    expense_categories: tuple[ExpenseCategory, ...] = ()
    resource_categories: tuple[str, ...] = DEFAULT_RESOURCE_CATEGORIES
    is_default: bool = False
    active: bool = True

    def timeframe(self, timeframe_id: str) -> TimeframeDefinition | None:
        for tf in self.timeframe_definitions:
            if tf.id == timeframe_id:
                return tf
        return None

    def expense_category(self, category_id: str) -> ExpenseCategory | None:
        for cat in self.expense_categories:
            if cat.id == category_id:
                return cat
        return None

    @property
    def timeframe_names(self) -> dict[str, str]:
        return {tf.id: tf.name for tf in self.timeframe_definitions}

    @property
    def expense_category_names(self) -> dict[str, str]:
        return {cat.id: cat.name for cat in self.expense_categories}


@dataclass(frozen=True)
class TemplateDraft:
    """Caller-supplied template content for create and update."""
    name: str
    description: str = ""
    timeframe_definitions: tuple[TimeframeDefinition, ...] = ()
    expense_categories: tuple[ExpenseCategory, ...] = ()
    resource_categories: tuple[str, ...] = DEFAULT_RESOURCE_CATEGORIES
    active: bool = True


def _duplicates(ids: list[str]) -> list[str]:
    seen: set[str] = set()
    dupes: list[str] = []
    for item in ids:
        if item in seen and item not in dupes:
            dupes.append(item)
        seen.add(item)
    return dupes


def validate_template(draft: TemplateDraft) -> None:
    """Structural validation run before a template is saved."""
    problems: list[str] = []

    if not draft.name or not draft.name.strip():
        problems.append("name is required")

    if not draft.timeframe_definitions:
        problems.append("at least one timeframe definition is required")

    for tf in draft.timeframe_definitions:
        if not tf.id or not tf.name or not tf.name.strip():
            problems.append(f"timeframe {tf.id or '<no id>'} needs an id and a name")

    for cat in draft.expense_categories:
        if not cat.id or not cat.name or not cat.name.strip():
            problems.append(f"expense category {cat.id or '<no id>'} needs an id and a name")

    for dupe in _duplicates([tf.id for tf in draft.timeframe_definitions]):
        problems.append(f"duplicate timeframe id {dupe}")

    for dupe in _duplicates([cat.id for cat in draft.expense_categories]):
        problems.append(f"duplicate expense category id {dupe}")

    if problems:
        raise InvalidTemplateError(template_name=draft.name, problems=problems)
