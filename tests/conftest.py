"""
Pytest fixtures for the contractor costing test suite.

Provides:
- Structured logging setup and a JSON log capture fixture
- An in-memory SQLite database with per-test rollback isolation
- Builders for templates, rate cards, assignments and ledger records

Environment Variables:
- DATABASE_URL: optional database URL (e.g. a PostgreSQL test database).
  Defaults to in-memory SQLite.
"""

import json
import logging
import os
from datetime import date
from decimal import Decimal
from io import StringIO
from typing import Generator
from uuid import UUID, uuid4

import pytest
from sqlalchemy.orm import Session

from contractor_engines.rate_resolver import ResolutionPolicy
from contractor_kernel.db.engine import create_tables, drop_tables, init_engine_from_url, reset_engine
from contractor_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from contractor_kernel.domain.ledger import ExpenseRecord, TimeLogRecord
from contractor_kernel.domain.rate_card import (
    ExpenseRateEntry,
    RateCard,
    RateCardKind,
    RateEntry,
)
from contractor_kernel.domain.templates import (
    ExpenseCategory,
    RateCardTemplate,
    TemplateDraft,
    TimeframeDefinition,
)
from contractor_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from contractor_kernel.services.assignment_service import AssignmentService
from contractor_kernel.services.ledger_service import LedgerService
from contractor_kernel.services.rate_card_service import RateCardService
from contractor_kernel.services.reporting_service import ReportingService
from contractor_kernel.services.template_service import TemplateService

DEFAULT_TEST_URL = "sqlite+pysqlite:///:memory:"

WEEKDAY_DAY = "tf-weekday-day"
WEEKNIGHT = "tf-weeknight"
SUNDAY = "tf-sunday"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture contractor_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, rate_card_service):
            rate_card_service.create_rate_card(...)
            logs = captured_logs()
            assert any(r["message"] == "rate_card_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("contractor_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


def get_database_url() -> str:
    return os.environ.get("DATABASE_URL", DEFAULT_TEST_URL)


@pytest.fixture(scope="session")
def db_engine():
    """Single engine for the entire test session."""
    eng = init_engine_from_url(get_database_url(), echo=False)
    yield eng
    reset_engine()


@pytest.fixture(scope="session")
def db_tables(db_engine):
    """Create all tables once per session; listeners stay registered."""
    drop_tables()
    create_tables()
    register_immutability_listeners()
    yield
    unregister_immutability_listeners()
    drop_tables()


@pytest.fixture(scope="function")
def session(db_tables, db_engine) -> Generator[Session, None, None]:
    """Provide a database session for testing.

    The session joins an outer transaction that is rolled back at teardown,
    so every test starts from empty tables.  ``session.commit()`` inside a
    test only releases a savepoint.
    """
    conn = db_engine.connect()
    trans = conn.begin()
    sess = Session(bind=conn, join_transaction_mode="create_savepoint", expire_on_commit=False)
    yield sess
    try:
        sess.close()
    finally:
        try:
            trans.rollback()
        finally:
            conn.close()


# =============================================================================
# Identity fixtures
# =============================================================================


@pytest.fixture
def actor_id() -> UUID:
    return uuid4()


@pytest.fixture
def company_id() -> UUID:
    return uuid4()


# =============================================================================
# Service fixtures
# =============================================================================


@pytest.fixture
def template_service(session: Session) -> TemplateService:
    return TemplateService(session)


@pytest.fixture
def rate_card_service(session: Session) -> RateCardService:
    return RateCardService(session)


@pytest.fixture
def assignment_service(session: Session) -> AssignmentService:
    return AssignmentService(session)


@pytest.fixture
def ledger_service(session: Session) -> LedgerService:
    return LedgerService(session)


@pytest.fixture
def reporting_service(session: Session) -> ReportingService:
    return ReportingService(session)


# =============================================================================
# Builders
# =============================================================================


def standard_template_draft(name: str = "Standard Shifts") -> TemplateDraft:
    return TemplateDraft(
        name=name,
        description="Weekday, night and Sunday shifts",
        timeframe_definitions=(
            TimeframeDefinition(WEEKDAY_DAY, "Mon–Fri Day", "07:00", "17:00"),
            TimeframeDefinition(WEEKNIGHT, "Mon–Thurs Night", "19:00", "05:00"),
            TimeframeDefinition(SUNDAY, "Sunday"),
        ),
        expense_categories=(
            ExpenseCategory("exp-mileage", "Mileage"),
            ExpenseCategory("exp-hotel", "Hotel"),
        ),
    )


def make_template(company_id: UUID | None = None, **overrides) -> RateCardTemplate:
    """Build a template DTO without touching the database."""
    draft = standard_template_draft()
    fields = dict(
        id=uuid4(),
        company_id=company_id or uuid4(),
        name=draft.name,
        timeframe_definitions=draft.timeframe_definitions,
        expense_categories=draft.expense_categories,
    )
    fields.update(overrides)
    return RateCardTemplate(**fields)


def make_rate_card(
    kind: RateCardKind = RateCardKind.PAY,
    rates: tuple[RateEntry, ...] = (),
    expenses: tuple[ExpenseRateEntry, ...] = (),
    **overrides,
) -> RateCard:
    """Build a rate card DTO without touching the database."""
    fields = dict(
        id=uuid4(),
        company_id=uuid4(),
        kind=kind,
        name=f"{kind.value} card",
        rates=rates,
        expenses=expenses,
    )
    fields.update(overrides)
    return RateCard(**fields)


def fitter_pay_card(**overrides) -> RateCard:
    overrides.setdefault(
        "rates",
        (
            RateEntry("Fitter", Decimal("17.88"), timeframe_id=WEEKDAY_DAY,
                      ot_rate=Decimal("26.82")),
            RateEntry("Fitter", Decimal("21.00"), timeframe_id=WEEKNIGHT),
        ),
    )
    return make_rate_card(RateCardKind.PAY, **overrides)


def fitter_bill_card(**overrides) -> RateCard:
    return make_rate_card(
        RateCardKind.BILL,
        rates=(
            RateEntry("Fitter", Decimal("22.35"), timeframe_id=WEEKDAY_DAY,
                      ot_rate=Decimal("33.53")),
        ),
        **overrides,
    )


def time_log_record(
    subcontractor_id: UUID,
    status: str | None = "DRAFT",
    sub_cost: str | None = "100.00",
    client_bill: str | None = "125.00",
    hours_regular: str | None = "8",
    hours_ot: str | None = "0",
) -> TimeLogRecord:
    def dec(v):
        return Decimal(v) if v is not None else None

    return TimeLogRecord(
        id=uuid4(),
        subcontractor_id=subcontractor_id,
        status=status,
        work_date=date(2024, 3, 4),
        role_name="Fitter",
        timeframe_id=WEEKDAY_DAY,
        hours_regular=dec(hours_regular),
        hours_ot=dec(hours_ot),
        sub_cost=dec(sub_cost),
        client_bill=dec(client_bill),
    )


def expense_record(
    subcontractor_id: UUID,
    amount: str | None = "40.00",
    status: str | None = "DRAFT",
) -> ExpenseRecord:
    return ExpenseRecord(
        id=uuid4(),
        subcontractor_id=subcontractor_id,
        status=status,
        work_date=date(2024, 3, 4),
        category="Mileage",
        amount=Decimal(amount) if amount is not None else None,
    )


@pytest.fixture
def policy() -> ResolutionPolicy:
    return ResolutionPolicy()


# =============================================================================
# Persisted scenario
# =============================================================================


@pytest.fixture
def priced_setup(
    session,
    company_id,
    actor_id,
    template_service,
    rate_card_service,
    assignment_service,
):
    """A template, a PAY and a BILL card for Fitters, and an assignment."""
    template = template_service.create_template(company_id, standard_template_draft(), actor_id)
    pay = rate_card_service.create_rate_card(
        company_id, RateCardKind.PAY, "Fitter Pay", actor_id,
        template_id=template.id,
        rates=fitter_pay_card().rates,
        expenses=(ExpenseRateEntry("exp-mileage", Decimal("0.45")),),
    )
    bill = rate_card_service.create_rate_card(
        company_id, RateCardKind.BILL, "Client Bill", actor_id,
        template_id=template.id,
        rates=fitter_bill_card().rates,
    )
    subcontractor_id = uuid4()
    client_id = uuid4()
    assignment = assignment_service.assign(
        company_id, subcontractor_id, client_id, pay.id, actor_id,
        bill_rate_card_id=bill.id,
    )
    return {
        "company_id": company_id,
        "template": template,
        "pay_card": pay,
        "bill_card": bill,
        "subcontractor_id": subcontractor_id,
        "client_id": client_id,
        "project_id": uuid4(),
        "assignment": assignment,
    }
