"""Pure domain layer: value objects and rules, zero I/O."""

from contractor_kernel.domain.currency import (
    calculate_margin_percentage,
    calculate_margin_value,
    round_currency,
    to_decimal,
    validate_rate,
)
from contractor_kernel.domain.ledger import EntryStatus, ExpenseRecord, LedgerAction, TimeLogRecord
from contractor_kernel.domain.rate_card import (
    ExpenseRateEntry,
    RateAssignment,
    RateCard,
    RateCardKind,
    RateEntry,
    RateMode,
)
from contractor_kernel.domain.templates import ExpenseCategory, RateCardTemplate, TimeframeDefinition
from contractor_kernel.domain.timeframe import TimeframeRef, normalize_label

__all__ = [
    "EntryStatus",
    "ExpenseCategory",
    "ExpenseRateEntry",
    "ExpenseRecord",
    "LedgerAction",
    "RateAssignment",
    "RateCard",
    "RateCardKind",
    "RateCardTemplate",
    "RateEntry",
    "RateMode",
    "TimeLogRecord",
    "TimeframeDefinition",
    "TimeframeRef",
    "calculate_margin_percentage",
    "calculate_margin_value",
    "normalize_label",
    "round_currency",
    "to_decimal",
    "validate_rate",
]
