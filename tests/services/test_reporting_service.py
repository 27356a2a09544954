"""Tests for ReportingService over persisted ledger entries."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from contractor_engines.aggregation import UNKNOWN_SUBCONTRACTOR
from contractor_kernel.domain.ledger import ExpenseRequest, TimeLogRequest
from contractor_kernel.domain.timeframe import TimeframeRef
from contractor_kernel.services.reporting_service import ReportingService
from tests.conftest import WEEKDAY_DAY


@pytest.fixture
def project(ledger_service, priced_setup, actor_id):
    """Three priced time logs on different days and one approved expense."""

    def log(day, hours_ot="2"):
        return ledger_service.create_time_log(
            TimeLogRequest(
                company_id=priced_setup["company_id"],
                project_id=priced_setup["project_id"],
                client_id=priced_setup["client_id"],
                subcontractor_id=priced_setup["subcontractor_id"],
                role_name="Fitter",
                timeframe=TimeframeRef.by_id(WEEKDAY_DAY),
                work_date=day,
                hours_regular=Decimal("8"),
                hours_ot=Decimal(hours_ot),
            ),
            actor_id,
        )

    approved = log(date(2024, 3, 4))
    submitted = log(date(2024, 3, 5))
    rejected = log(date(2024, 3, 6))
    for entry in (approved, submitted, rejected):
        ledger_service.submit(entry.id, actor_id)
    ledger_service.approve(approved.id, actor_id)
    ledger_service.reject(rejected.id, actor_id)

    expense = ledger_service.create_expense(
        ExpenseRequest(
            company_id=priced_setup["company_id"],
            project_id=priced_setup["project_id"],
            subcontractor_id=priced_setup["subcontractor_id"],
            category="Hotel",
            work_date=date(2024, 3, 4),
            amount=Decimal("85.00"),
        ),
        actor_id,
    )
    ledger_service.submit(expense.id, actor_id)
    ledger_service.approve(expense.id, actor_id)
    return priced_setup


class TestProjectTracking:

    def test_totals_and_buckets(self, reporting_service, project):
        tracking = reporting_service.project_tracking(
            project["project_id"], {project["subcontractor_id"]: "Northern Fitters Ltd"},
        )

        # 3 x 196.68 + 85.00
        assert tracking.totals.cost == Decimal("675.04")
        assert tracking.totals.billing == Decimal("822.58")
        assert tracking.totals.hours == Decimal("30")
        assert tracking.by_status.approved.cost == Decimal("281.68")
        assert tracking.by_status.submitted.cost == Decimal("196.68")
        assert tracking.by_status.draft.cost == Decimal("0")

        (sub,) = tracking.subcontractors
        assert sub.subcontractor_name == "Northern Fitters Ltd"
        assert len(sub.time_logs) == 3
        assert len(sub.expenses) == 1

    def test_unknown_subcontractor_name(self, session, project):
        reporting = ReportingService(session, unknown_subcontractor_name="(no profile)")
        tracking = reporting.project_tracking(project["project_id"])
        assert tracking.subcontractors[0].subcontractor_name == "(no profile)"

    def test_default_unknown_name(self, reporting_service, project):
        tracking = reporting_service.project_tracking(project["project_id"])
        assert tracking.subcontractors[0].subcontractor_name == UNKNOWN_SUBCONTRACTOR

    def test_date_range(self, reporting_service, project):
        tracking = reporting_service.project_tracking(
            project["project_id"], start_date=date(2024, 3, 5), end_date=date(2024, 3, 5),
        )
        assert tracking.totals.cost == Decimal("196.68")

    def test_other_project_empty(self, reporting_service, project):
        tracking = reporting_service.project_tracking(uuid4())
        assert tracking.subcontractors == ()


class TestProjectSummary:

    def test_approved_only(self, reporting_service, project):
        summary = reporting_service.project_summary(project["project_id"])

        assert summary.total_sub_cost == Decimal("196.68")
        assert summary.total_expenses == Decimal("85.00")
        assert summary.total_cost == Decimal("281.68")
        assert summary.total_client_bill == Decimal("330.86")
        assert summary.margin_value == Decimal("49.18")
        assert (summary.time_log_count, summary.expense_count) == (1, 1)

    def test_include_submitted(self, reporting_service, project):
        summary = reporting_service.project_summary(project["project_id"], include_submitted=True)
        assert summary.total_sub_cost == Decimal("393.36")
        assert summary.time_log_count == 2

    def test_service_level_default(self, session, project):
        reporting = ReportingService(session, include_submitted_in_summary=True)
        assert reporting.project_summary(project["project_id"]).time_log_count == 2
        assert reporting.project_summary(
            project["project_id"], include_submitted=False,
        ).time_log_count == 1
