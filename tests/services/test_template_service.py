"""
Tests for TemplateService: defaults, edits, duplication, deletion and
Template Sync isolation.
"""

from dataclasses import replace
from decimal import Decimal
from uuid import uuid4

import pytest

from contractor_kernel.domain.rate_card import RateCardKind, RateEntry
from contractor_kernel.domain.templates import TimeframeDefinition
from contractor_kernel.exceptions import (
    DefaultTemplateDeletionError,
    InvalidTemplateError,
    PartialSyncError,
    TemplateNotFoundError,
)
from contractor_kernel.services import template_service as template_service_module
from tests.conftest import WEEKDAY_DAY, standard_template_draft


def _renamed_draft(name="Standard Shifts v2", day_name="Weekday Days"):
    draft = standard_template_draft(name)
    return replace(
        draft,
        timeframe_definitions=tuple(
            replace(tf, name=day_name) if tf.id == WEEKDAY_DAY else tf
            for tf in draft.timeframe_definitions
        ),
    )


class TestDefaults:

    def test_first_template_becomes_default(self, template_service, company_id, actor_id):
        template = template_service.create_template(company_id, standard_template_draft(), actor_id)
        assert template.is_default
        assert template_service.get_default_template_id(company_id) == template.id

    def test_second_template_not_default(self, template_service, company_id, actor_id):
        template_service.create_template(company_id, standard_template_draft("A"), actor_id)
        second = template_service.create_template(company_id, standard_template_draft("B"), actor_id)
        assert not second.is_default

    def test_make_default_switches(self, template_service, company_id, actor_id):
        first = template_service.create_template(company_id, standard_template_draft("A"), actor_id)
        second = template_service.create_template(
            company_id, standard_template_draft("B"), actor_id, make_default=True,
        )
        assert template_service.get_default_template(company_id).id == second.id
        assert not template_service.get_template(first.id).is_default

    def test_list_puts_default_first(self, template_service, company_id, actor_id):
        template_service.create_template(company_id, standard_template_draft("Alpha"), actor_id)
        zulu = template_service.create_template(company_id, standard_template_draft("Zulu"), actor_id)
        template_service.set_default(company_id, zulu.id, actor_id)

        names = [t.name for t in template_service.list_templates(company_id)]
        assert names == ["Zulu", "Alpha"]

    def test_set_default_other_company_rejected(self, template_service, company_id, actor_id):
        template = template_service.create_template(company_id, standard_template_draft(), actor_id)
        with pytest.raises(TemplateNotFoundError):
            template_service.set_default(uuid4(), template.id, actor_id)

    def test_no_default_for_new_company(self, template_service):
        assert template_service.get_default_template(uuid4()) is None


class TestCreateAndUpdate:

    def test_round_trip(self, template_service, company_id, actor_id):
        created = template_service.create_template(company_id, standard_template_draft(), actor_id)
        loaded = template_service.get_template(created.id)

        assert [tf.id for tf in loaded.timeframe_definitions] == [
            "tf-weekday-day", "tf-weeknight", "tf-sunday",
        ]
        assert loaded.timeframe(WEEKDAY_DAY).start_time == "07:00"
        assert [c.name for c in loaded.expense_categories] == ["Mileage", "Hotel"]

    def test_invalid_draft_rejected(self, template_service, company_id, actor_id):
        with pytest.raises(InvalidTemplateError):
            template_service.create_template(company_id, replace(
                standard_template_draft(), timeframe_definitions=()), actor_id)

    def test_update_keeps_ids(self, template_service, company_id, actor_id):
        created = template_service.create_template(company_id, standard_template_draft(), actor_id)
        draft = _renamed_draft()
        draft = replace(draft, timeframe_definitions=draft.timeframe_definitions
                        + (TimeframeDefinition("tf-bank-holiday", "Bank Holiday"),))

        updated = template_service.update_template(created.id, draft, actor_id)

        assert updated.name == "Standard Shifts v2"
        assert updated.timeframe(WEEKDAY_DAY).name == "Weekday Days"
        assert updated.timeframe("tf-bank-holiday") is not None
        assert len(updated.timeframe_definitions) == 4

    def test_update_removes_missing_ids(self, template_service, company_id, actor_id):
        created = template_service.create_template(company_id, standard_template_draft(), actor_id)
        draft = standard_template_draft()
        draft = replace(draft, timeframe_definitions=draft.timeframe_definitions[:1])

        updated = template_service.update_template(created.id, draft, actor_id)
        assert [tf.id for tf in updated.timeframe_definitions] == [WEEKDAY_DAY]

    def test_missing_template(self, template_service):
        with pytest.raises(TemplateNotFoundError):
            template_service.get_template(uuid4())


class TestDuplicateAndDelete:

    def test_duplicate(self, template_service, company_id, actor_id):
        source = template_service.create_template(company_id, standard_template_draft(), actor_id)
        copy = template_service.duplicate_template(source.id, actor_id)

        assert copy.id != source.id
        assert copy.name == "Standard Shifts (Copy)"
        assert not copy.is_default
        assert copy.timeframe_definitions == source.timeframe_definitions

    def test_duplicate_with_name(self, template_service, company_id, actor_id):
        source = template_service.create_template(company_id, standard_template_draft(), actor_id)
        assert template_service.duplicate_template(source.id, actor_id, name="Night Crew").name == "Night Crew"

    def test_default_cannot_be_deleted(self, template_service, company_id, actor_id):
        template = template_service.create_template(company_id, standard_template_draft(), actor_id)
        with pytest.raises(DefaultTemplateDeletionError):
            template_service.delete_template(template.id, actor_id)

    def test_delete_detaches_rate_cards(
        self, template_service, rate_card_service, company_id, actor_id,
    ):
        template_service.create_template(company_id, standard_template_draft("Default"), actor_id)
        doomed = template_service.create_template(company_id, standard_template_draft("Old"), actor_id)
        card = rate_card_service.create_rate_card(
            company_id, RateCardKind.PAY, "Linked", actor_id, template_id=doomed.id,
            rates=(RateEntry("Fitter", Decimal("10"), timeframe_id=WEEKDAY_DAY),),
        )

        template_service.delete_template(doomed.id, actor_id)

        with pytest.raises(TemplateNotFoundError):
            template_service.get_template(doomed.id)
        reloaded = rate_card_service.get_rate_card(card.id)
        assert reloaded.template_id is None
        assert reloaded.rates[0].timeframe_name == "Mon–Fri Day"


class TestTemplateSync:

    @pytest.fixture
    def linked_cards(self, template_service, rate_card_service, company_id, actor_id):
        template = template_service.create_template(company_id, standard_template_draft(), actor_id)
        cards = [
            rate_card_service.create_rate_card(
                company_id, RateCardKind.PAY, f"Card {i}", actor_id, template_id=template.id,
                rates=(RateEntry("Fitter", Decimal("10") + i, timeframe_id=WEEKDAY_DAY),),
            )
            for i in range(1, 6)
        ]
        return template, cards

    def test_sync_relabels_all(self, template_service, rate_card_service, linked_cards, actor_id):
        template, cards = linked_cards
        template_service.update_template(template.id, _renamed_draft(), actor_id)

        result = template_service.sync_rate_cards(template.id, actor_id)

        assert result.success
        assert result.rate_cards_updated == 5
        for card in cards:
            reloaded = rate_card_service.get_rate_card(card.id)
            assert reloaded.template_name == "Standard Shifts v2"
            assert reloaded.rates[0].timeframe_name == "Weekday Days"
            assert reloaded.rates[0].base_rate == card.rates[0].base_rate

    def test_one_failure_is_isolated(
        self, template_service, rate_card_service, linked_cards, actor_id, monkeypatch,
    ):
        template, cards = linked_cards
        template_service.update_template(template.id, _renamed_draft(), actor_id)
        failing_id = cards[2].id
        real_apply = template_service_module.apply_template_labels

        def flaky_apply(tmpl, card):
            if card.id == failing_id:
                raise ValueError("label merge failed")
            return real_apply(tmpl, card)

        monkeypatch.setattr(template_service_module, "apply_template_labels", flaky_apply)

        result = template_service.sync_rate_cards(template.id, actor_id)

        assert result.rate_cards_updated == 4
        assert [e.rate_card_id for e in result.errors] == [str(failing_id)]
        assert result.errors[0].code == "ValueError"
        assert rate_card_service.get_rate_card(failing_id).template_name == "Standard Shifts"
        for card in cards:
            if card.id != failing_id:
                assert rate_card_service.get_rate_card(card.id).template_name == "Standard Shifts v2"
        with pytest.raises(PartialSyncError):
            result.raise_for_errors()

    @pytest.mark.parametrize("error", [KeyError("missing label"), TypeError("bad row"), AttributeError("no name")])
    def test_any_card_error_is_isolated(
        self, template_service, rate_card_service, linked_cards, actor_id, monkeypatch, error,
    ):
        template, cards = linked_cards
        template_service.update_template(template.id, _renamed_draft(), actor_id)
        failing_id = cards[2].id
        real_apply = template_service_module.apply_template_labels

        def failing_apply(tmpl, card):
            if card.id == failing_id:
                raise error
            return real_apply(tmpl, card)

        monkeypatch.setattr(template_service_module, "apply_template_labels", failing_apply)

        result = template_service.sync_rate_cards(template.id, actor_id)

        assert result.rate_cards_updated == 4
        assert [(e.rate_card_id, e.code) for e in result.errors] == [
            (str(failing_id), type(error).__name__),
        ]
        assert rate_card_service.get_rate_card(failing_id).template_name == "Standard Shifts"

    def test_sync_logs_warning_on_failure(
        self, template_service, linked_cards, actor_id, monkeypatch, captured_logs,
    ):
        template, _ = linked_cards

        def always_fail(tmpl, card):
            raise ValueError("nope")

        monkeypatch.setattr(template_service_module, "apply_template_labels", always_fail)
        template_service.sync_rate_cards(template.id, actor_id)

        record = next(r for r in captured_logs() if r["message"] == "template_sync_completed")
        assert record["level"] == "WARNING"
        assert len(record["failed_card_ids"]) == 5

    def test_sync_with_no_cards(self, template_service, company_id, actor_id):
        template = template_service.create_template(company_id, standard_template_draft(), actor_id)
        result = template_service.sync_rate_cards(template.id, actor_id)
        assert result.success
        assert result.rate_cards_updated == 0
