"""Kernel services: the persistence boundary.  Flush-only; callers commit."""

from contractor_kernel.services.assignment_service import AssignmentService
from contractor_kernel.services.ledger_service import LedgerService
from contractor_kernel.services.rate_card_service import RateCardService
from contractor_kernel.services.reporting_service import ReportingService
from contractor_kernel.services.template_service import TemplateService

__all__ = [
    "AssignmentService",
    "LedgerService",
    "RateCardService",
    "ReportingService",
    "TemplateService",
]
