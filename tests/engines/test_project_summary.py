"""Tests for the approved-cost project summary."""

from decimal import Decimal
from uuid import uuid4

import pytest

from contractor_engines.project_summary import summarize_project
from tests.conftest import expense_record, time_log_record

SUB = uuid4()


@pytest.fixture
def entries():
    logs = [
        time_log_record(SUB, "APPROVED", "200.00", "250.00"),
        time_log_record(SUB, "SUBMITTED", "50.00", "60.00"),
        time_log_record(SUB, "DRAFT", "100.00", "125.00"),
        time_log_record(SUB, None, "10.00", "10.00"),
        time_log_record(SUB, "REJECTED", "70.00", "90.00"),
    ]
    expenses = [
        expense_record(SUB, "40.00", "APPROVED"),
        expense_record(SUB, "5.00", "SUBMITTED"),
        expense_record(SUB, "9.99", "DRAFT"),
    ]
    return logs, expenses


class TestSummarizeProject:

    def test_approved_only(self, entries):
        summary = summarize_project(*entries)

        assert summary.total_sub_cost == Decimal("200.00")
        assert summary.total_expenses == Decimal("40.00")
        assert summary.total_cost == Decimal("240.00")
        assert summary.total_client_bill == Decimal("290.00")
        assert summary.margin_value == Decimal("50.00")
        assert summary.margin_pct == Decimal("17.24")
        assert (summary.time_log_count, summary.expense_count) == (1, 1)

    def test_include_submitted(self, entries):
        summary = summarize_project(*entries, include_submitted=True)

        assert summary.total_sub_cost == Decimal("250.00")
        assert summary.total_expenses == Decimal("45.00")
        assert summary.total_client_bill == Decimal("355.00")
        assert summary.margin_value == Decimal("60.00")
        assert summary.margin_pct == Decimal("16.90")
        assert (summary.time_log_count, summary.expense_count) == (2, 2)

    def test_status_case_insensitive(self):
        logs = [time_log_record(SUB, "approved", "10.00", "12.00")]
        assert summarize_project(logs, []).time_log_count == 1

    def test_expenses_do_not_change_margin(self):
        logs = [time_log_record(SUB, "APPROVED", "80.00", "100.00")]
        without = summarize_project(logs, [])
        with_expense = summarize_project(logs, [expense_record(SUB, "500.00", "APPROVED")])
        assert without.margin_value == with_expense.margin_value == Decimal("20.00")

    def test_nothing_approved(self):
        summary = summarize_project([time_log_record(SUB, "DRAFT")], [])
        assert summary.total_cost == Decimal("0.00")
        assert summary.margin_pct == Decimal("0.00")
        assert summary.time_log_count == 0
