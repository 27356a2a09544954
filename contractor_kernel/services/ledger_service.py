"""
LedgerService -- creation and lifecycle of time logs and expenses.

Responsibility:
    Price a time log once, at creation, through the subcontractor/client
    rate assignment and the rate resolver; record expenses; move entries
    through DRAFT -> SUBMITTED -> APPROVED | REJECTED.

Architecture position:
    Kernel > Services -- imperative shell around the pure
    ``contractor_engines.rate_resolver``.

Invariants enforced:
    - Pricing is resolved once and stored; it is never re-run for an
      existing entry.  Financial fields are write-once (db/immutability.py).
    - Status moves only through the ledger workflow, applied as a
      conditional ``UPDATE ... WHERE status = :expected``.  Zero rows
      updated means another writer moved the entry first.
    - Batch submission is all-or-nothing (one savepoint).
    - Hours lie in [0, max_hours].

Failure modes:
    - RateNotFoundError, AssignmentNotFoundError, CurrencyMismatchError,
      RateCardKindMismatchError from pricing.
    - InvalidHoursError, InvalidStatusTransitionError, OptimisticLockError,
      LedgerEntryNotFoundError.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select, update

from contractor_engines.rate_resolver import DEFAULT_POLICY, ResolutionPolicy, resolve_rate
from contractor_kernel.domain.currency import ZERO, round_currency, to_decimal, validate_currency
from contractor_kernel.domain.ledger import (
    EntryStatus,
    ExpenseRecord,
    ExpenseRequest,
    LedgerAction,
    TimeLogRecord,
    TimeLogRequest,
    next_status,
)
from contractor_kernel.exceptions import (
    InvalidHoursError,
    LedgerEntryNotFoundError,
    OptimisticLockError,
)
from contractor_kernel.logging_config import LogContext, get_logger
from contractor_kernel.models.ledger import ExpenseModel, TimeLogModel
from contractor_kernel.services.assignment_service import AssignmentService
from contractor_kernel.services.base import BaseService
from contractor_kernel.services.rate_card_service import RateCardService

logger = get_logger("services.ledger")

_ENTITY_TYPES = {TimeLogModel: "TimeLog", ExpenseModel: "Expense"}


class LedgerService(BaseService[TimeLogModel]):

    def __init__(
        self,
        session,
        policy: ResolutionPolicy = DEFAULT_POLICY,
        default_currency: str = "GBP",
        max_hours: Decimal = Decimal("24"),
    ):
        super().__init__(session)
        self.policy = policy
        self.default_currency = validate_currency(default_currency)
        self.max_hours = to_decimal(max_hours)
        self._assignments = AssignmentService(session)
        self._rate_cards = RateCardService(session)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_time_log(self, entry_id: UUID) -> TimeLogRecord:
        entry = self.session.get(TimeLogModel, entry_id)
        if entry is None:
            raise LedgerEntryNotFoundError("time_log", str(entry_id))
        return entry.to_record()

    def get_expense(self, entry_id: UUID) -> ExpenseRecord:
        entry = self.session.get(ExpenseModel, entry_id)
        if entry is None:
            raise LedgerEntryNotFoundError("expense", str(entry_id))
        return entry.to_record()

    def list_time_logs(
        self,
        project_id: UUID,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[TimeLogRecord]:
        """Time logs of a project, optionally within [start_date, end_date]."""
        stmt = select(TimeLogModel).where(TimeLogModel.project_id == project_id)
        if start_date is not None:
            stmt = stmt.where(TimeLogModel.work_date >= start_date)
        if end_date is not None:
            stmt = stmt.where(TimeLogModel.work_date <= end_date)
        stmt = stmt.order_by(TimeLogModel.work_date, TimeLogModel.id)
        return [m.to_record() for m in self.session.execute(stmt).scalars().all()]

    def list_expenses(
        self,
        project_id: UUID,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[ExpenseRecord]:
        stmt = select(ExpenseModel).where(ExpenseModel.project_id == project_id)
        if start_date is not None:
            stmt = stmt.where(ExpenseModel.work_date >= start_date)
        if end_date is not None:
            stmt = stmt.where(ExpenseModel.work_date <= end_date)
        stmt = stmt.order_by(ExpenseModel.work_date, ExpenseModel.id)
        return [m.to_record() for m in self.session.execute(stmt).scalars().all()]

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def _check_hours(self, field: str, hours: Decimal) -> Decimal:
        hours = to_decimal(hours)
        if hours < ZERO or hours > self.max_hours:
            raise InvalidHoursError(field, str(hours))
        return hours

    def create_time_log(self, request: TimeLogRequest, actor_id: UUID) -> TimeLogRecord:
        """
        Price and record a time log as DRAFT.

        Steps:
        1. Check hours are within [0, max_hours].
        2. Find the (subcontractor, client) assignment and its cards.
        3. Resolve pricing once; store rates, cost, billing and margin.

        Raises:
            InvalidHoursError: Hours out of range.
            AssignmentNotFoundError: The pair has no rate assignment.
            RateNotFoundError: No pay rate for (role, timeframe, date).
        """
        hours_regular = self._check_hours("hours_regular", request.hours_regular)
        hours_ot = self._check_hours("hours_ot", request.hours_ot)
        self._check_hours("total_hours", hours_regular + hours_ot)

        with LogContext.bind(company_id=str(request.company_id)):
            assignment = self._assignments.get_assignment(
                request.company_id, request.subcontractor_id, request.client_id,
            )
            pay_card = self._rate_cards.find_rate_card(assignment.pay_rate_card_id)
            bill_card = self._rate_cards.find_rate_card(assignment.bill_rate_card_id)

            pricing = resolve_rate(
                role_name=request.role_name,
                timeframe=request.timeframe,
                work_date=request.work_date,
                hours_regular=hours_regular,
                hours_ot=hours_ot,
                pay_card=pay_card,
                bill_card=bill_card,
                policy=self.policy,
            )

            by_id = request.timeframe.is_by_id
            entry = TimeLogModel(
                company_id=request.company_id,
                project_id=request.project_id,
                client_id=request.client_id,
                subcontractor_id=request.subcontractor_id,
                pay_rate_card_id=assignment.pay_rate_card_id,
                bill_rate_card_id=assignment.bill_rate_card_id,
                work_date=request.work_date,
                role_name=request.role_name,
                timeframe_id=request.timeframe.value if by_id else None,
                shift_type=None if by_id else request.timeframe.value,
                shift_label=None if by_id else request.timeframe.raw,
                timeframe_name=pricing.sub_rate_label,
                hours_regular=hours_regular,
                hours_ot=hours_ot,
                sub_base_rate=pricing.sub_base_rate,
                sub_ot_rate=pricing.sub_ot_rate,
                client_base_rate=pricing.client_base_rate,
                client_ot_rate=pricing.client_ot_rate,
                sub_cost=pricing.sub_cost,
                client_bill=pricing.client_bill,
                margin_value=pricing.margin_value,
                margin_pct=pricing.margin_pct,
                currency=pricing.currency,
                status=EntryStatus.DRAFT.value,
                notes=request.notes,
                created_by_id=actor_id,
            )
            self.session.add(entry)
            self.session.flush()

            logger.info(
                "time_log_created",
                extra={
                    "entry_id": str(entry.id),
                    "role_name": request.role_name,
                    "timeframe": str(request.timeframe),
                    "sub_cost": pricing.sub_cost,
                    "client_bill": pricing.client_bill,
                    "margin_value": pricing.margin_value,
                },
            )
        return entry.to_record()

    def create_expense(self, request: ExpenseRequest, actor_id: UUID) -> ExpenseRecord:
        """
        Record an expense as DRAFT.

        The amount is taken as given, or computed as quantity x unit_rate.
        Without a unit rate, the category's rate on the subcontractor's pay
        card is used (needs ``client_id`` to find the assignment).

        Raises:
            ValueError: No way to determine the amount, or a negative amount.
        """
        currency = self.default_currency
        quantity = request.quantity
        unit_rate = request.unit_rate

        if request.amount is not None:
            amount = round_currency(request.amount)
        else:
            if quantity is None:
                raise ValueError(
                    f"Expense '{request.category}' needs an amount, or a quantity and unit rate"
                )
            if unit_rate is None:
                unit_rate, currency = self._card_expense_rate(request)
            amount = round_currency(to_decimal(quantity) * to_decimal(unit_rate))

        if amount < ZERO:
            raise ValueError(f"Expense amount cannot be negative: {amount}")

        entry = ExpenseModel(
            company_id=request.company_id,
            project_id=request.project_id,
            client_id=request.client_id,
            subcontractor_id=request.subcontractor_id,
            work_date=request.work_date,
            category=request.category,
            description=request.description,
            amount=amount,
            quantity=to_decimal(quantity) if quantity is not None else None,
            unit_rate=to_decimal(unit_rate) if unit_rate is not None else None,
            currency=currency,
            status=EntryStatus.DRAFT.value,
            created_by_id=actor_id,
        )
        self.session.add(entry)
        self.session.flush()

        logger.info(
            "expense_created",
            extra={
                "entry_id": str(entry.id),
                "category": request.category,
                "amount": amount,
            },
        )
        return entry.to_record()

    def _card_expense_rate(self, request: ExpenseRequest) -> tuple[Decimal, str]:
        if request.client_id is None:
            raise ValueError(
                f"Expense '{request.category}' has no unit rate and no client to price it"
            )
        assignment = self._assignments.get_assignment(
            request.company_id, request.subcontractor_id, request.client_id,
        )
        pay_card = self._rate_cards.get_rate_card(assignment.pay_rate_card_id)
        expense_rate = pay_card.expense_rate(request.category)
        if expense_rate is None:
            raise ValueError(
                f"Rate card {pay_card.id} has no expense rate for '{request.category}'"
            )
        return expense_rate.rate, pay_card.currency

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _load_entry(self, entry_id: UUID) -> TimeLogModel | ExpenseModel:
        entry = self.session.get(TimeLogModel, entry_id)
        if entry is None:
            entry = self.session.get(ExpenseModel, entry_id)
        if entry is None:
            raise LedgerEntryNotFoundError("ledger_entry", str(entry_id))
        return entry

    def _transition(
        self,
        entry_id: UUID,
        action: LedgerAction,
        actor_id: UUID,
    ) -> TimeLogRecord | ExpenseRecord:
        entry = self._load_entry(entry_id)
        model_cls = type(entry)
        current = entry.status
        target = next_status(current, action, str(entry_id))

        result = self.session.execute(
            update(model_cls)
            .where(model_cls.id == entry_id, model_cls.status == current)
            .values(status=target.value, updated_by_id=actor_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise OptimisticLockError(_ENTITY_TYPES[model_cls], str(entry_id), current)
        self.session.refresh(entry)

        logger.info(
            "ledger_entry_transitioned",
            extra={
                "entry_id": str(entry_id),
                "entity_type": _ENTITY_TYPES[model_cls],
                "from_status": current,
                "to_status": target.value,
                "action": action.value,
            },
        )
        return entry.to_record()

    def submit(self, entry_id: UUID, actor_id: UUID) -> TimeLogRecord | ExpenseRecord:
        """DRAFT -> SUBMITTED."""
        return self._transition(entry_id, LedgerAction.SUBMIT, actor_id)

    def approve(self, entry_id: UUID, actor_id: UUID) -> TimeLogRecord | ExpenseRecord:
        """SUBMITTED -> APPROVED."""
        return self._transition(entry_id, LedgerAction.APPROVE, actor_id)

    def reject(self, entry_id: UUID, actor_id: UUID) -> TimeLogRecord | ExpenseRecord:
        """SUBMITTED -> REJECTED."""
        return self._transition(entry_id, LedgerAction.REJECT, actor_id)

    def submit_batch(
        self,
        entry_ids: list[UUID],
        actor_id: UUID,
    ) -> list[TimeLogRecord | ExpenseRecord]:
        """
        Submit several DRAFT entries atomically.

        If any entry cannot be submitted, none are, and the error propagates.
        """
        with self.session.begin_nested():
            records = [self.submit(entry_id, actor_id) for entry_id in entry_ids]
        logger.info("ledger_batch_submitted", extra={"entry_count": len(records)})
        return records
