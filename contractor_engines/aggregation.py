"""
Cost Aggregation Engine (``contractor_engines.aggregation``).

Responsibility
--------------
Roll a project's time logs and expenses up into grand totals, three
status buckets and per-subcontractor summaries for reporting.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O.  Input records come
from ``contractor_kernel.domain.ledger``; the subcontractor name lookup is
supplied by the caller.

Invariants enforced
-------------------
* Bucketing: ``draft``, ``submitted``, ``approved`` (status case-folded,
  missing status counts as draft).  Any other status (``REJECTED``) is
  left out of the buckets at project and subcontractor level, but is still
  counted in grand totals, subcontractor totals and the raw entry lists.
* Expenses are pass-through: cost == billing == amount, margin 0, no hours.
* Decomposition: for entries in bucketed statuses,
  ``sum(buckets.cost) == totals.cost == sum(subcontractors.total_cost)``,
  and likewise for billing, margin and hours.  Sums are exact Decimals.
* Each bucket counts the entries it holds, time logs and expenses alike.
* Margin percentages are NOT rounded here; zero billing gives 0.
* Subcontractors are ordered by total cost, descending, stable.

Failure modes
-------------
* None for missing numeric fields: they count as zero.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

from contractor_engines.tracer import traced_engine
from contractor_kernel.domain.currency import ZERO, margin_percentage, to_decimal
from contractor_kernel.domain.ledger import ExpenseRecord, TimeLogRecord

UNKNOWN_SUBCONTRACTOR = "Unknown Subcontractor"

BUCKET_KEYS: tuple[str, ...] = ("draft", "submitted", "approved")


def bucket_key(status: str | None) -> str | None:
    """Map an entry status to its bucket key, or None when unbucketed."""
    key = status.casefold() if status else "draft"
    return key if key in BUCKET_KEYS else None


@dataclass(frozen=True)
class StatusBreakdown:
    cost: Decimal = ZERO
    billing: Decimal = ZERO
    margin: Decimal = ZERO
    hours: Decimal = ZERO
    count: int = 0

    def add(self, cost: Decimal, billing: Decimal, margin: Decimal, hours: Decimal) -> StatusBreakdown:
        return StatusBreakdown(
            cost=self.cost + cost,
            billing=self.billing + billing,
            margin=self.margin + margin,
            hours=self.hours + hours,
            count=self.count + 1,
        )


@dataclass(frozen=True)
class StatusBuckets:
    draft: StatusBreakdown = field(default_factory=StatusBreakdown)
    submitted: StatusBreakdown = field(default_factory=StatusBreakdown)
    approved: StatusBreakdown = field(default_factory=StatusBreakdown)

    def get(self, key: str) -> StatusBreakdown:
        return getattr(self, key)

    def values(self) -> tuple[StatusBreakdown, ...]:
        return tuple(self.get(k) for k in BUCKET_KEYS)


@dataclass(frozen=True)
class ProjectTotals:
    cost: Decimal = ZERO
    billing: Decimal = ZERO
    margin: Decimal = ZERO
    margin_pct: Decimal = ZERO
    hours: Decimal = ZERO


@dataclass(frozen=True)
class SubcontractorTracking:
    subcontractor_id: UUID
    subcontractor_name: str
    total_cost: Decimal = ZERO
    total_billing: Decimal = ZERO
    total_margin: Decimal = ZERO
    margin_pct: Decimal = ZERO
    total_hours: Decimal = ZERO
    by_status: StatusBuckets = field(default_factory=StatusBuckets)
    time_logs: tuple[TimeLogRecord, ...] = ()
    expenses: tuple[ExpenseRecord, ...] = ()


@dataclass(frozen=True)
class ProjectTracking:
    totals: ProjectTotals
    by_status: StatusBuckets
    subcontractors: tuple[SubcontractorTracking, ...]


class _Accumulator:
    """Mutable running sums for one scope (project or subcontractor)."""

    def __init__(self) -> None:
        self.cost = ZERO
        self.billing = ZERO
        self.margin = ZERO
        self.hours = ZERO
        self.buckets: dict[str, StatusBreakdown] = {k: StatusBreakdown() for k in BUCKET_KEYS}

    def add(self, status: str | None, cost: Decimal, billing: Decimal, margin: Decimal, hours: Decimal) -> None:
        self.cost += cost
        self.billing += billing
        self.margin += margin
        self.hours += hours
        key = bucket_key(status)
        if key is not None:
            self.buckets[key] = self.buckets[key].add(cost, billing, margin, hours)

    def status_buckets(self) -> StatusBuckets:
        return StatusBuckets(**self.buckets)


class _SubcontractorAccumulator(_Accumulator):
    def __init__(self, subcontractor_id: UUID, name: str) -> None:
        super().__init__()
        self.subcontractor_id = subcontractor_id
        self.name = name
        self.time_logs: list[TimeLogRecord] = []
        self.expenses: list[ExpenseRecord] = []

    def freeze(self) -> SubcontractorTracking:
        return SubcontractorTracking(
            subcontractor_id=self.subcontractor_id,
            subcontractor_name=self.name,
            total_cost=self.cost,
            total_billing=self.billing,
            total_margin=self.margin,
            margin_pct=margin_percentage(self.margin, self.billing),
            total_hours=self.hours,
            by_status=self.status_buckets(),
            time_logs=tuple(self.time_logs),
            expenses=tuple(self.expenses),
        )


@traced_engine("cost_aggregation", "1.0")
def aggregate_project_costs(
    time_logs: Iterable[TimeLogRecord],
    expenses: Iterable[ExpenseRecord],
    subcontractor_names: Mapping[UUID, str] | None = None,
    unknown_name: str = UNKNOWN_SUBCONTRACTOR,
) -> ProjectTracking:
    """Aggregate a project's entries into totals, buckets and subcontractors.

    Args:
        time_logs: Priced time logs for the project.
        expenses: Expenses for the project.
        subcontractor_names: Display names by subcontractor id.
        unknown_name: Name used when the lookup has no entry.

    Returns:
        ProjectTracking with unrounded margin percentages.
    """
    names = subcontractor_names or {}
    project = _Accumulator()
    subs: dict[UUID, _SubcontractorAccumulator] = {}

    def sub_for(subcontractor_id: UUID) -> _SubcontractorAccumulator:
        acc = subs.get(subcontractor_id)
        if acc is None:
            acc = _SubcontractorAccumulator(
                subcontractor_id, names.get(subcontractor_id, unknown_name)
            )
            subs[subcontractor_id] = acc
        return acc

    for log in time_logs:
        cost = to_decimal(log.sub_cost)
        billing = to_decimal(log.client_bill)
        margin = billing - cost
        hours = log.total_hours
        project.add(log.status, cost, billing, margin, hours)
        sub = sub_for(log.subcontractor_id)
        sub.add(log.status, cost, billing, margin, hours)
        sub.time_logs.append(log)

    for expense in expenses:
        amount = to_decimal(expense.amount)
        project.add(expense.status, amount, amount, ZERO, ZERO)
        sub = sub_for(expense.subcontractor_id)
        sub.add(expense.status, amount, amount, ZERO, ZERO)
        sub.expenses.append(expense)

    totals = ProjectTotals(
        cost=project.cost,
        billing=project.billing,
        margin=project.margin,
        margin_pct=margin_percentage(project.margin, project.billing),
        hours=project.hours,
    )
    # sorted() is stable, so equal costs keep first-seen order.
    ordered = sorted(
        (acc.freeze() for acc in subs.values()),
        key=lambda s: s.total_cost,
        reverse=True,
    )
    return ProjectTracking(
        totals=totals,
        by_status=project.status_buckets(),
        subcontractors=tuple(ordered),
    )

