"""
Project summary -- approved-cost headline figures for one project.

Counts APPROVED entries, plus SUBMITTED ones when asked.  Expenses are
billed pass-through, so they add equally to cost and client bill.  Every
money field is rounded once with ``round_currency``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from contractor_engines.tracer import traced_engine
from contractor_kernel.domain.currency import (
    ZERO,
    calculate_margin_percentage,
    calculate_margin_value,
    round_currency,
    to_decimal,
)
from contractor_kernel.domain.ledger import EntryStatus, ExpenseRecord, TimeLogRecord


@dataclass(frozen=True)
class ProjectSummary:
    total_sub_cost: Decimal
    total_expenses: Decimal
    total_cost: Decimal
    total_client_bill: Decimal
    margin_value: Decimal
    margin_pct: Decimal
    time_log_count: int
    expense_count: int


def _counted_statuses(include_submitted: bool) -> frozenset[str]:
    statuses = {EntryStatus.APPROVED.value}
    if include_submitted:
        statuses.add(EntryStatus.SUBMITTED.value)
    return frozenset(statuses)


def _status_of(status: str | None) -> str:
    return (status or EntryStatus.DRAFT.value).upper()


@traced_engine("project_summary", "1.0", fingerprint_fields=("include_submitted",))
def summarize_project(
    time_logs: Iterable[TimeLogRecord],
    expenses: Iterable[ExpenseRecord],
    include_submitted: bool = False,
) -> ProjectSummary:
    counted = _counted_statuses(include_submitted)

    sub_cost = ZERO
    time_bill = ZERO
    time_log_count = 0
    for log in time_logs:
        if _status_of(log.status) not in counted:
            continue
        sub_cost += to_decimal(log.sub_cost)
        time_bill += to_decimal(log.client_bill)
        time_log_count += 1

    expense_total = ZERO
    expense_count = 0
    for expense in expenses:
        if _status_of(expense.status) not in counted:
            continue
        expense_total += to_decimal(expense.amount)
        expense_count += 1

    total_cost = round_currency(sub_cost + expense_total)
    total_client_bill = round_currency(time_bill + expense_total)
    return ProjectSummary(
        total_sub_cost=round_currency(sub_cost),
        total_expenses=round_currency(expense_total),
        total_cost=total_cost,
        total_client_bill=total_client_bill,
        margin_value=calculate_margin_value(total_client_bill, total_cost),
        margin_pct=calculate_margin_percentage(total_client_bill, total_cost),
        time_log_count=time_log_count,
        expense_count=expense_count,
    )
