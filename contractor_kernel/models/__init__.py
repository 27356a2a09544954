"""ORM models.  Importing this package registers every table on Base.metadata."""

from contractor_kernel.models.ledger import ExpenseModel, TimeLogModel
from contractor_kernel.models.rate_assignment import RateAssignmentModel
from contractor_kernel.models.rate_card import ExpenseRateModel, RateCardModel, RateEntryModel
from contractor_kernel.models.rate_card_template import (
    CompanyDefaultsModel,
    RateCardTemplateModel,
    TemplateExpenseCategoryModel,
    TemplateTimeframeModel,
)

__all__ = [
    "CompanyDefaultsModel",
    "ExpenseModel",
    "ExpenseRateModel",
    "RateAssignmentModel",
    "RateCardModel",
    "RateCardTemplateModel",
    "RateEntryModel",
    "TemplateExpenseCategoryModel",
    "TemplateTimeframeModel",
    "TimeLogModel",
]
