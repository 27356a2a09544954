"""
Ledger entry types and lifecycle (``contractor_kernel.domain.ledger``).

Responsibility
--------------
Frozen record types for priced time logs and expenses, the creation
requests that produce them, and the approval-status state machine.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects, ZERO I/O.  Records are the
input of the aggregation engine; requests are the input of
``LedgerService``.

Invariants enforced
-------------------
* Financial fields of a record are fixed at creation.  Records are frozen,
  and only ``next_status`` produces a new status.
* Lifecycle: DRAFT -> SUBMITTED -> APPROVED, SUBMITTED -> REJECTED.
  DRAFT -> APPROVED is not allowed; APPROVED and REJECTED are terminal.
* Expense records are pass-through: ``client_bill == amount``, margin 0.

Failure modes
-------------
* ``InvalidStatusTransitionError`` from ``next_status``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from contractor_kernel.domain.currency import ZERO, to_decimal
from contractor_kernel.domain.timeframe import TimeframeRef
from contractor_kernel.domain.workflow import Transition, Workflow
from contractor_kernel.exceptions import InvalidStatusTransitionError


class EntryStatus(str, Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class LedgerAction(str, Enum):
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"


LEDGER_ENTRY_WORKFLOW = Workflow(
    name="ledger_entry",
    description="Approval lifecycle of time logs and expenses",
    initial_state=EntryStatus.DRAFT.value,
    states=tuple(s.value for s in EntryStatus),
    transitions=(
        Transition(EntryStatus.DRAFT.value, EntryStatus.SUBMITTED.value, LedgerAction.SUBMIT.value),
        Transition(EntryStatus.SUBMITTED.value, EntryStatus.APPROVED.value, LedgerAction.APPROVE.value),
        Transition(EntryStatus.SUBMITTED.value, EntryStatus.REJECTED.value, LedgerAction.REJECT.value),
    ),
    terminal_states=(EntryStatus.APPROVED.value, EntryStatus.REJECTED.value),
)


def next_status(
    current: EntryStatus | str,
    action: LedgerAction | str,
    entry_id: str = "",
) -> EntryStatus:
    """Return the status reached by ``action`` from ``current``.

    Raises:
        InvalidStatusTransitionError: if the workflow has no such transition.
    """
    current_value = EntryStatus(current).value
    action_value = LedgerAction(action).value
    transition = LEDGER_ENTRY_WORKFLOW.find_transition(current_value, action_value)
    if transition is None:
        raise InvalidStatusTransitionError(
            entry_id=entry_id,
            from_status=current_value,
            action=action_value,
        )
    return EntryStatus(transition.to_state)


# ---------------------------------------------------------------------------
# Records (read side, aggregation input)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TimeLogRecord:
    """A priced time log as stored.

    Numeric fields may be None on partially-populated legacy records; the
    aggregation engine treats them as zero.

    A by-label entry stores the normalized label in ``shift_type`` and the
    label as entered in ``shift_label``.
    """
    id: UUID
    subcontractor_id: UUID
    status: str | None = EntryStatus.DRAFT.value
    project_id: UUID | None = None
    work_date: date | None = None
    role_name: str = ""
    timeframe_id: str | None = None
    shift_type: str | None = None
    shift_label: str | None = None
    timeframe_name: str | None = None
    hours_regular: Decimal | None = None
    hours_ot: Decimal | None = None
    sub_cost: Decimal | None = None
    client_bill: Decimal | None = None
    margin_value: Decimal | None = None
    margin_pct: Decimal | None = None
    currency: str | None = None

    @property
    def total_hours(self) -> Decimal:
        return to_decimal(self.hours_regular) + to_decimal(self.hours_ot)


@dataclass(frozen=True)
class ExpenseRecord:
    """An expense as stored.  Billed pass-through with zero margin."""
    id: UUID
    subcontractor_id: UUID
    status: str | None = EntryStatus.DRAFT.value
    project_id: UUID | None = None
    work_date: date | None = None
    category: str = ""
    amount: Decimal | None = None
    quantity: Decimal | None = None
    unit_rate: Decimal | None = None
    currency: str | None = None

    @property
    def client_bill(self) -> Decimal:
        return to_decimal(self.amount)

    @property
    def margin(self) -> Decimal:
        return ZERO


# ---------------------------------------------------------------------------
# Requests (write side, creation boundary input)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TimeLogRequest:
    """Everything the creation boundary supplies to price a time log."""
    company_id: UUID
    project_id: UUID
    client_id: UUID
    subcontractor_id: UUID
    role_name: str
    timeframe: TimeframeRef
    work_date: date
    hours_regular: Decimal
    hours_ot: Decimal = Decimal("0")
    notes: str = ""


@dataclass(frozen=True)
class ExpenseRequest:
    """An expense to record.

    Either ``amount`` is given, or ``quantity`` together with ``unit_rate``
    (or a category priced on the subcontractor's pay card).
    """
    company_id: UUID
    project_id: UUID
    subcontractor_id: UUID
    category: str
    work_date: date
    amount: Decimal | None = None
    quantity: Decimal | None = None
    unit_rate: Decimal | None = None
    client_id: UUID | None = None
    description: str = ""
