"""Tests for template structural validation and lookups."""

import pytest

from contractor_kernel.domain.templates import (
    ExpenseCategory,
    TemplateDraft,
    TimeframeDefinition,
    validate_template,
)
from contractor_kernel.exceptions import InvalidTemplateError
from tests.conftest import SUNDAY, make_template, standard_template_draft


class TestValidateTemplate:

    def test_standard_draft_is_valid(self):
        validate_template(standard_template_draft())

    def test_collects_every_problem(self):
        draft = TemplateDraft(
            name=" ",
            timeframe_definitions=(
                TimeframeDefinition("tf-a", "A"),
                TimeframeDefinition("tf-a", "A again"),
            ),
            expense_categories=(ExpenseCategory("exp-x", ""),),
        )
        with pytest.raises(InvalidTemplateError) as exc_info:
            validate_template(draft)
        problems = exc_info.value.problems
        assert "name is required" in problems
        assert "duplicate timeframe id tf-a" in problems
        assert any("exp-x" in p for p in problems)

    def test_requires_a_timeframe(self):
        with pytest.raises(InvalidTemplateError, match="at least one timeframe"):
            validate_template(TemplateDraft(name="Empty"))


class TestTemplateLookups:

    def test_timeframe_lookup(self):
        template = make_template()
        assert template.timeframe(SUNDAY).name == "Sunday"
        assert template.timeframe("missing") is None

    def test_name_maps(self):
        template = make_template()
        assert template.timeframe_names[SUNDAY] == "Sunday"
        assert template.expense_category_names["exp-hotel"] == "Hotel"
        assert template.expense_category("missing") is None
