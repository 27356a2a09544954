"""
Rate Resolver Engine (``contractor_engines.rate_resolver``).

Responsibility
--------------
Pure pricing of one time log: select the pay and bill rate entries for
(role, timeframe, date) and turn logged hours into subcontractor cost,
client billing and margin.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O, ZERO database,
ZERO clock reads.  May only import from ``contractor_kernel.domain`` and
``contractor_kernel.exceptions``.

Invariants enforced
-------------------
* Role names match exactly; timeframes match through ``TimeframeRef``.
* Among entries effective on the work date, the latest ``effective_from``
  wins.  Ties keep card order.
* No implicit fallback rate: an unmatched pay side raises
  ``RateNotFoundError``.
* Each side's cost is rounded once, at the end, never per term.
* Deterministic: same inputs = same ``ResolvedPricing``.

Failure modes
-------------
* ``RateNotFoundError`` -- pay card absent/inactive, or no pay entry for
  (role, timeframe, date); bill side too when the policy requires it.
* ``RateCardKindMismatchError`` -- a BILL card passed as the pay card or
  vice versa.
* ``CurrencyMismatchError`` -- pay and bill cards in different currencies.
* ``ValueError`` -- negative hours (programming error upstream).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from contractor_engines.tracer import traced_engine
from contractor_kernel.domain.currency import (
    ZERO,
    calculate_margin_percentage,
    calculate_margin_value,
    round_currency,
    to_decimal,
)
from contractor_kernel.domain.rate_card import RateCard, RateCardKind, RateEntry, RateMode
from contractor_kernel.domain.timeframe import TimeframeRef
from contractor_kernel.exceptions import (
    CurrencyMismatchError,
    RateCardKindMismatchError,
    RateNotFoundError,
)


@dataclass(frozen=True)
class ResolutionPolicy:
    """Tunable resolution behaviour, built from configuration."""
    overtime_fallback_multiplier: Decimal = Decimal("1.5")
    require_bill_rate: bool = False


DEFAULT_POLICY = ResolutionPolicy()


@dataclass(frozen=True)
class ResolvedRate:
    """The entry chosen on one card, with its effective OT rate."""
    rate_card_id: str
    label: str
    base_rate: Decimal
    ot_rate: Decimal
    rate_mode: RateMode
    min_hours: Decimal | None = None


@dataclass(frozen=True)
class ResolvedPricing:
    """Financial outcome of resolving one time log."""
    sub_cost: Decimal
    client_bill: Decimal
    margin_value: Decimal
    margin_pct: Decimal
    currency: str
    sub_rate_label: str
    sub_base_rate: Decimal
    sub_ot_rate: Decimal
    client_rate_label: str | None = None
    client_base_rate: Decimal = ZERO
    client_ot_rate: Decimal = ZERO


# ---------------------------------------------------------------------------
# Rate entry selection
# ---------------------------------------------------------------------------


def select_rate_entry(
    card: RateCard,
    role_name: str,
    timeframe: TimeframeRef,
    work_date: date,
) -> RateEntry:
    """Select the entry for (role, timeframe, date) on one card.

    Raises:
        RateNotFoundError: no entry for the role and timeframe, or none
            effective on the date.
    """
    candidates = [e for e in card.rates if e.role_name == role_name]
    candidates = [e for e in candidates if e.matches_timeframe(timeframe)]
    if not candidates:
        raise RateNotFoundError(
            role_name=role_name,
            timeframe=str(timeframe),
            work_date=work_date.isoformat(),
            rate_card_id=str(card.id),
        )

    effective = [e for e in candidates if e.is_effective(work_date)]
    if not effective:
        raise RateNotFoundError(
            role_name=role_name,
            timeframe=str(timeframe),
            work_date=work_date.isoformat(),
            rate_card_id=str(card.id),
            reason="no rate entry effective on this date",
        )

    # Overlapping windows are a data error; the most recent rate wins.
    # max() keeps the first of equal keys, i.e. card order on ties.
    return max(effective, key=lambda e: e.effective_from or date.min)


def resolve_card_rate(
    card: RateCard,
    role_name: str,
    timeframe: TimeframeRef,
    work_date: date,
    policy: ResolutionPolicy = DEFAULT_POLICY,
) -> ResolvedRate:
    """Select an entry and fix its effective base and OT rates."""
    entry = select_rate_entry(card, role_name, timeframe, work_date)
    if entry.rate_mode == RateMode.HOURLY:
        ot_rate = (
            entry.ot_rate
            if entry.ot_rate is not None
            else entry.base_rate * policy.overtime_fallback_multiplier
        )
    else:
        ot_rate = ZERO
    return ResolvedRate(
        rate_card_id=str(card.id),
        label=entry.label,
        base_rate=entry.base_rate,
        ot_rate=ot_rate,
        rate_mode=entry.rate_mode,
        min_hours=entry.min_hours,
    )


def apply_min_hours(
    hours_regular: Decimal,
    hours_ot: Decimal,
    min_hours: Decimal | None,
) -> tuple[Decimal, Decimal]:
    """Pad regular hours so the total reaches ``min_hours``."""
    if not min_hours:
        return hours_regular, hours_ot
    total = hours_regular + hours_ot
    if total >= min_hours:
        return hours_regular, hours_ot
    return hours_regular + (min_hours - total), hours_ot


def price_hours(rate: ResolvedRate, hours_regular: Decimal, hours_ot: Decimal) -> Decimal:
    """Price hours against a resolved rate, rounded once at the end.

    SHIFT and DAILY rates treat ``hours_regular`` as a count of shifts or
    days and carry no overtime.
    """
    if rate.rate_mode in (RateMode.SHIFT, RateMode.DAILY):
        return round_currency(rate.base_rate * hours_regular)
    regular, overtime = apply_min_hours(hours_regular, hours_ot, rate.min_hours)
    return round_currency(regular * rate.base_rate + overtime * rate.ot_rate)


def _check_kind(card: RateCard, expected: RateCardKind) -> None:
    if card.kind != expected:
        raise RateCardKindMismatchError(
            rate_card_id=str(card.id),
            expected_kind=expected.value,
            actual_kind=RateCardKind(card.kind).value,
        )


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


@traced_engine(
    "rate_resolver",
    "1.0",
    fingerprint_fields=("role_name", "timeframe", "work_date", "hours_regular", "hours_ot"),
)
def resolve_rate(
    *,
    role_name: str,
    timeframe: TimeframeRef,
    work_date: date,
    hours_regular: Decimal,
    hours_ot: Decimal = ZERO,
    pay_card: RateCard | None,
    bill_card: RateCard | None,
    policy: ResolutionPolicy = DEFAULT_POLICY,
) -> ResolvedPricing:
    """Resolve cost, billing and margin for one time log.

    Steps:
    1. Select the pay entry (role, timeframe, date) -- required.
    2. Select the bill entry -- optional unless the policy requires it;
       when absent, billing is zero and the margin percentage guard applies.
    3. Price each side, rounding once per side.
    4. Derive margin value and percentage through the currency utility.

    Args:
        role_name: Exact role name, e.g. "Fitter".
        timeframe: Normalized shift reference.
        work_date: Caller-supplied date of the work (no clock reads here).
        hours_regular: Regular hours (or shift/day units).
        hours_ot: Overtime hours.
        pay_card: The subcontractor's PAY card.
        bill_card: The client's BILL card, may be None.
        policy: Resolution policy.

    Returns:
        ResolvedPricing.
    """
    hours_regular = to_decimal(hours_regular)
    hours_ot = to_decimal(hours_ot)
    if hours_regular < ZERO or hours_ot < ZERO:
        raise ValueError(
            f"Hours cannot be negative: regular={hours_regular}, ot={hours_ot}"
        )

    if pay_card is None or not pay_card.active:
        raise RateNotFoundError(
            role_name=role_name,
            timeframe=str(timeframe),
            work_date=work_date.isoformat(),
            rate_card_id=str(pay_card.id) if pay_card is not None else None,
            reason="no active pay rate card",
        )
    _check_kind(pay_card, RateCardKind.PAY)

    sub_rate = resolve_card_rate(pay_card, role_name, timeframe, work_date, policy)
    sub_cost = price_hours(sub_rate, hours_regular, hours_ot)

    client_rate: ResolvedRate | None = None
    currency = pay_card.currency
    usable_bill = bill_card if bill_card is not None and bill_card.active else None
    if usable_bill is not None:
        _check_kind(usable_bill, RateCardKind.BILL)
        if usable_bill.currency != pay_card.currency:
            raise CurrencyMismatchError(
                pay_currency=pay_card.currency,
                bill_currency=usable_bill.currency,
            )
        try:
            client_rate = resolve_card_rate(usable_bill, role_name, timeframe, work_date, policy)
        except RateNotFoundError:
            if policy.require_bill_rate:
                raise
            client_rate = None
        currency = usable_bill.currency
    elif policy.require_bill_rate:
        raise RateNotFoundError(
            role_name=role_name,
            timeframe=str(timeframe),
            work_date=work_date.isoformat(),
            rate_card_id=str(bill_card.id) if bill_card is not None else None,
            reason="no active bill rate card",
        )

    if client_rate is not None:
        client_bill = price_hours(client_rate, hours_regular, hours_ot)
    else:
        client_bill = round_currency(ZERO)

    return ResolvedPricing(
        sub_cost=sub_cost,
        client_bill=client_bill,
        margin_value=calculate_margin_value(client_bill, sub_cost),
        margin_pct=calculate_margin_percentage(client_bill, sub_cost),
        currency=currency,
        sub_rate_label=sub_rate.label,
        sub_base_rate=sub_rate.base_rate,
        sub_ot_rate=sub_rate.ot_rate,
        client_rate_label=client_rate.label if client_rate else None,
        client_base_rate=client_rate.base_rate if client_rate else ZERO,
        client_ot_rate=client_rate.ot_rate if client_rate else ZERO,
    )
