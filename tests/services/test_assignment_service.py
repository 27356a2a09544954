"""Tests for AssignmentService: one live assignment per (subcontractor, client)."""

from uuid import uuid4

import pytest

from contractor_kernel.domain.rate_card import RateCardKind
from contractor_kernel.exceptions import (
    AssignmentNotFoundError,
    DuplicateAssignmentError,
    RateCardKindMismatchError,
    RateCardNotFoundError,
)
from tests.conftest import fitter_bill_card, fitter_pay_card


@pytest.fixture
def cards(rate_card_service, company_id, actor_id):
    pay = rate_card_service.create_rate_card(
        company_id, RateCardKind.PAY, "Pay", actor_id, rates=fitter_pay_card().rates,
    )
    pay_2025 = rate_card_service.create_rate_card(
        company_id, RateCardKind.PAY, "Pay 2025", actor_id, rates=fitter_pay_card().rates,
    )
    bill = rate_card_service.create_rate_card(
        company_id, RateCardKind.BILL, "Bill", actor_id, rates=fitter_bill_card().rates,
    )
    return pay, pay_2025, bill


class TestAssign:

    def test_assign_and_find(self, assignment_service, cards, company_id, actor_id):
        pay, _, bill = cards
        sub, client = uuid4(), uuid4()

        created = assignment_service.assign(
            company_id, sub, client, pay.id, actor_id, bill_rate_card_id=bill.id,
        )
        found = assignment_service.get_assignment(company_id, sub, client)

        assert found == created
        assert found.pay_rate_card_id == pay.id
        assert found.bill_rate_card_id == bill.id

    def test_bill_card_optional(self, assignment_service, cards, company_id, actor_id):
        pay, _, _ = cards
        created = assignment_service.assign(company_id, uuid4(), uuid4(), pay.id, actor_id)
        assert created.bill_rate_card_id is None

    def test_supersede_replaces(self, assignment_service, cards, company_id, actor_id, captured_logs):
        pay, pay_2025, _ = cards
        sub, client = uuid4(), uuid4()
        first = assignment_service.assign(company_id, sub, client, pay.id, actor_id)

        second = assignment_service.assign(company_id, sub, client, pay_2025.id, actor_id)

        assert second.id != first.id
        assert assignment_service.get_assignment(company_id, sub, client).pay_rate_card_id == pay_2025.id
        saved = [r for r in captured_logs() if r["message"] == "rate_assignment_saved"]
        assert saved[-1]["superseded_id"] == str(first.id)

    def test_duplicate_without_supersede(self, assignment_service, cards, company_id, actor_id):
        pay, pay_2025, _ = cards
        sub, client = uuid4(), uuid4()
        assignment_service.assign(company_id, sub, client, pay.id, actor_id)

        with pytest.raises(DuplicateAssignmentError):
            assignment_service.assign(company_id, sub, client, pay_2025.id, actor_id, supersede=False)
        assert assignment_service.get_assignment(company_id, sub, client).pay_rate_card_id == pay.id

    def test_same_subcontractor_other_client(self, assignment_service, cards, company_id, actor_id):
        pay, pay_2025, _ = cards
        sub = uuid4()
        a = assignment_service.assign(company_id, sub, uuid4(), pay.id, actor_id)
        b = assignment_service.assign(company_id, sub, uuid4(), pay_2025.id, actor_id)
        assert a.id != b.id


class TestCardKinds:

    def test_bill_card_as_pay_rejected(self, assignment_service, cards, company_id, actor_id):
        _, _, bill = cards
        with pytest.raises(RateCardKindMismatchError) as exc_info:
            assignment_service.assign(company_id, uuid4(), uuid4(), bill.id, actor_id)
        assert exc_info.value.expected_kind == "pay"

    def test_pay_card_as_bill_rejected(self, assignment_service, cards, company_id, actor_id):
        pay, pay_2025, _ = cards
        with pytest.raises(RateCardKindMismatchError):
            assignment_service.assign(
                company_id, uuid4(), uuid4(), pay.id, actor_id, bill_rate_card_id=pay_2025.id,
            )

    def test_unknown_card(self, assignment_service, company_id, actor_id):
        with pytest.raises(RateCardNotFoundError):
            assignment_service.assign(company_id, uuid4(), uuid4(), uuid4(), actor_id)


class TestRemove:

    def test_remove(self, assignment_service, cards, company_id, actor_id):
        pay, _, _ = cards
        sub, client = uuid4(), uuid4()
        assignment_service.assign(company_id, sub, client, pay.id, actor_id)

        assignment_service.remove_assignment(company_id, sub, client, actor_id)

        assert assignment_service.find_assignment(company_id, sub, client) is None

    def test_remove_missing(self, assignment_service, company_id, actor_id):
        with pytest.raises(AssignmentNotFoundError):
            assignment_service.remove_assignment(company_id, uuid4(), uuid4(), actor_id)
