"""
Rate card value objects (``contractor_kernel.domain.rate_card``).

Responsibility
--------------
Frozen dataclasses for priced rate cards, their rate and expense-rate
entries, and the (subcontractor, client) rate assignment.  Also the
save-time validation of a card: rate bounds and overlapping windows.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects, ZERO I/O.  Consumed by the
rate resolver engine and the rate card / assignment services.

Invariants enforced
-------------------
* Every card is explicitly tagged PAY or BILL.  A card's kind is never
  guessed from its content.
* Rates use ``Decimal``, never ``float``.
* Rate windows are half-open: ``[effective_from, effective_to)``.
* ``validate_rate_card`` rejects any rate outside [0, 10000] with
  ``InvalidRateError``.  Construction itself does not check bounds so that
  stored legacy data can still be read.

Failure modes
-------------
* ``ValueError`` on construction when an entry has no timeframe reference
  or its window is inverted.
* ``InvalidRateError`` from ``validate_rate_card``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from contractor_kernel.domain.currency import to_decimal, validate_rate
from contractor_kernel.domain.timeframe import TimeframeRef, TimeframeRefKind, normalize_label


class RateCardKind(str, Enum):
    """Which side of an assignment a card prices."""
    PAY = "pay"  # what a subcontractor is owed
    BILL = "bill"  # what a client is charged


class RateMode(str, Enum):
    """How hours are priced against an entry."""
    HOURLY = "hourly"
    SHIFT = "shift"  # hours_regular counts shifts
    DAILY = "daily"  # hours_regular counts days


class UnitType(str, Enum):
    PER_MILE = "per_mile"
    PER_DAY = "per_day"
    PER_UNIT = "per_unit"
    FLAT = "flat"


@dataclass(frozen=True)
class RateEntry:
    """One priced (role, timeframe, window) line of a rate card."""
    role_name: str
    base_rate: Decimal
    timeframe_id: str | None = None
    shift_type: str | None = None  # legacy free-form label
    timeframe_name: str | None = None  # denormalized from the template
    category: str = "Labour"
    ot_rate: Decimal | None = None
    effective_from: date | None = None
    effective_to: date | None = None
    rate_mode: RateMode = RateMode.HOURLY
    min_hours: Decimal | None = None

    def __post_init__(self) -> None:
        if not self.timeframe_id and not self.shift_type:
            raise ValueError(
                f"Rate entry for role '{self.role_name}' needs a timeframe_id or shift_type"
            )
        object.__setattr__(self, "base_rate", to_decimal(self.base_rate))
        if self.ot_rate is not None:
            object.__setattr__(self, "ot_rate", to_decimal(self.ot_rate))
        if self.min_hours is not None:
            object.__setattr__(self, "min_hours", to_decimal(self.min_hours))
        if not isinstance(self.rate_mode, RateMode):
            object.__setattr__(self, "rate_mode", RateMode(self.rate_mode))
        if (
            self.effective_from is not None
            and self.effective_to is not None
            and self.effective_to <= self.effective_from
        ):
            raise ValueError(
                f"effective_to ({self.effective_to}) must be after "
                f"effective_from ({self.effective_from})"
            )

    @property
    def timeframe(self) -> TimeframeRef:
        return TimeframeRef.from_fields(self.timeframe_id, self.shift_type)

    @property
    def label(self) -> str:
        """Display label: template name, else the legacy shift label."""
        return self.timeframe_name or self.shift_type or self.timeframe_id or ""

    def matches_timeframe(self, ref: TimeframeRef) -> bool:
        """Match by template id, or by normalized label for legacy cards."""
        if ref.kind == TimeframeRefKind.BY_ID:
            return self.timeframe_id is not None and self.timeframe_id == ref.value
        for candidate in (self.shift_type, self.timeframe_name):
            if candidate and normalize_label(candidate) == ref.value:
                return True
        return False

    def is_effective(self, as_of: date) -> bool:
        """Check the half-open window ``[effective_from, effective_to)``."""
        if self.effective_from is not None and as_of < self.effective_from:
            return False
        if self.effective_to is not None and as_of >= self.effective_to:
            return False
        return True

    def overlaps(self, other: RateEntry) -> bool:
        """Same role and timeframe with intersecting windows."""
        if self.role_name != other.role_name:
            return False
        if self.timeframe != other.timeframe:
            return False
        start_a = self.effective_from or date.min
        start_b = other.effective_from or date.min
        end_a = self.effective_to or date.max
        end_b = other.effective_to or date.max
        return start_a < end_b and start_b < end_a


@dataclass(frozen=True)
class ExpenseRateEntry:
    category_id: str
    rate: Decimal
    unit_type: UnitType = UnitType.PER_UNIT
    category_name: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "rate", to_decimal(self.rate))
        if not isinstance(self.unit_type, UnitType):
            object.__setattr__(self, "unit_type", UnitType(self.unit_type))


@dataclass(frozen=True)
class RateCard:
    """A priced catalogue for one pay or bill context."""
    id: UUID
    company_id: UUID
    kind: RateCardKind
    name: str
    currency: str = "GBP"
    description: str = ""
    template_id: UUID | None = None
    template_name: str | None = None
    rates: tuple[RateEntry, ...] = ()
    expenses: tuple[ExpenseRateEntry, ...] = ()
    active: bool = True

    def expense_rate(self, category_id: str) -> ExpenseRateEntry | None:
        for entry in self.expenses:
            if entry.category_id == category_id:
                return entry
        return None


@dataclass(frozen=True)
class RateAssignment:
    """Binding of a (subcontractor, client) pair to pay and bill cards."""
    id: UUID
    company_id: UUID
    subcontractor_id: UUID
    client_id: UUID
    pay_rate_card_id: UUID
    bill_rate_card_id: UUID | None = None


# ---------------------------------------------------------------------------
# Save-time validation
# ---------------------------------------------------------------------------


def validate_rate_entries(
    rates: tuple[RateEntry, ...],
    expenses: tuple[ExpenseRateEntry, ...] = (),
) -> None:
    """Reject any rate outside [0, 10000]."""
    for i, entry in enumerate(rates):
        validate_rate(entry.base_rate, f"rates[{i}].base_rate")
        if entry.ot_rate is not None:
            validate_rate(entry.ot_rate, f"rates[{i}].ot_rate")
    for i, exp in enumerate(expenses):
        validate_rate(exp.rate, f"expenses[{i}].rate")


def find_overlapping_entries(
    rates: tuple[RateEntry, ...],
) -> list[tuple[RateEntry, RateEntry]]:
    """Pairs of entries sharing role and timeframe with intersecting windows."""
    overlaps: list[tuple[RateEntry, RateEntry]] = []
    for i, first in enumerate(rates):
        for second in rates[i + 1:]:
            if first.overlaps(second):
                overlaps.append((first, second))
    return overlaps
