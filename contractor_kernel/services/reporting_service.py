"""
ReportingService -- project cost tracking and summary.

Loads a project's ledger entries (optionally within a date range),
converts them to records and hands them to the pure aggregation engines.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from uuid import UUID

from contractor_engines.aggregation import (
    UNKNOWN_SUBCONTRACTOR,
    ProjectTracking,
    aggregate_project_costs,
)
from contractor_engines.project_summary import ProjectSummary, summarize_project
from contractor_kernel.logging_config import get_logger
from contractor_kernel.models.ledger import TimeLogModel
from contractor_kernel.services.base import BaseService
from contractor_kernel.services.ledger_service import LedgerService

logger = get_logger("services.reporting")


class ReportingService(BaseService[TimeLogModel]):

    def __init__(
        self,
        session,
        unknown_subcontractor_name: str = UNKNOWN_SUBCONTRACTOR,
        include_submitted_in_summary: bool = False,
    ):
        super().__init__(session)
        self.unknown_subcontractor_name = unknown_subcontractor_name
        self.include_submitted_in_summary = include_submitted_in_summary
        self._ledger = LedgerService(session)

    def project_tracking(
        self,
        project_id: UUID,
        subcontractor_names: Mapping[UUID, str] | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> ProjectTracking:
        """Totals, status buckets and per-subcontractor rollups for a project."""
        time_logs = self._ledger.list_time_logs(project_id, start_date, end_date)
        expenses = self._ledger.list_expenses(project_id, start_date, end_date)
        logger.debug(
            "project_tracking_loaded",
            extra={
                "project_id": str(project_id),
                "time_log_count": len(time_logs),
                "expense_count": len(expenses),
            },
        )
        return aggregate_project_costs(
            time_logs,
            expenses,
            subcontractor_names or {},
            unknown_name=self.unknown_subcontractor_name,
        )

    def project_summary(
        self,
        project_id: UUID,
        include_submitted: bool | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> ProjectSummary:
        """Approved (optionally also submitted) cost, billing and margin.

        ``include_submitted`` defaults to the service-level setting.
        """
        if include_submitted is None:
            include_submitted = self.include_submitted_in_summary
        return summarize_project(
            self._ledger.list_time_logs(project_id, start_date, end_date),
            self._ledger.list_expenses(project_id, start_date, end_date),
            include_submitted=include_submitted,
        )
