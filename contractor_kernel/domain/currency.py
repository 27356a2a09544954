"""
Currency -- deterministic rounding and margin arithmetic primitives.

Responsibility:
    The single source of monetary rounding for the system.  Every money
    value computed by the resolver passes through ``round_currency`` before
    it is stored or compared.  Margin helpers share one zero-billing guard.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by the rate card domain, the engines and the services.

Invariants enforced:
    - Two decimal places, ROUND_HALF_UP.  No banker's rounding, no
      alternative modes.
    - Decimal-only arithmetic; floats are converted via ``str()`` so that
      0.1 stays 0.1.
    - Non-positive billing never divides (margin percentage is 0).
    - Valid rates lie in [0, 10000].

Failure modes:
    - InvalidRateError from ``validate_rate`` on out-of-range rates.
    - InvalidCurrencyError from ``validate_currency``.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from contractor_kernel.exceptions import InvalidCurrencyError, InvalidRateError

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")

MIN_RATE = Decimal("0")
MAX_RATE = Decimal("10000")


def to_decimal(value: Any) -> Decimal:
    """Coerce a possibly-missing numeric value to Decimal.

    ``None`` and empty strings become zero so that partially-populated
    legacy records still aggregate.  Floats go through ``str()``.
    """
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError(f"Cannot use bool as a monetary amount: {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Invalid numeric value: {value!r}") from e


def round_currency(value: Decimal | int | str | float) -> Decimal:
    """Round a monetary value to 2 decimal places (half-up).

    Idempotent: ``round_currency(round_currency(x)) == round_currency(x)``.
    """
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_margin_value(client_bill: Decimal, cost: Decimal) -> Decimal:
    """Margin value: ``client_bill - cost``, rounded."""
    return round_currency(to_decimal(client_bill) - to_decimal(cost))


def calculate_margin_percentage(client_bill: Decimal, cost: Decimal) -> Decimal:
    """Margin percentage ``(bill - cost) / bill * 100``, rounded.

    Returns 0 when billing is zero or negative.
    """
    bill = to_decimal(client_bill)
    if bill <= ZERO:
        return round_currency(ZERO)
    margin = bill - to_decimal(cost)
    return round_currency(margin / bill * HUNDRED)


def margin_percentage(margin: Decimal, billing: Decimal) -> Decimal:
    """Unrounded margin percentage used at the aggregate layer."""
    if billing <= ZERO:
        return ZERO
    return margin / billing * HUNDRED


def is_valid_rate(rate: Decimal | int | str) -> bool:
    """Check that a rate lies within [0, 10000]."""
    value = to_decimal(rate)
    return value.is_finite() and MIN_RATE <= value <= MAX_RATE


def validate_rate(rate: Decimal | int | str, field: str = "rate") -> Decimal:
    """Return the rate as Decimal, raising InvalidRateError when out of range."""
    value = to_decimal(rate)
    if not value.is_finite() or not (MIN_RATE <= value <= MAX_RATE):
        raise InvalidRateError(
            field=field,
            value=str(value),
            minimum=str(MIN_RATE),
            maximum=str(MAX_RATE),
        )
    return value


def validate_currency(code: str | None) -> str:
    """Normalize a currency code to upper case, rejecting non-ISO shapes."""
    normalized = code.strip().upper() if code else ""
    if len(normalized) != 3 or not normalized.isalpha():
        raise InvalidCurrencyError(str(code))
    return normalized
