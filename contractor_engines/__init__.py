"""
contractor_engines -- Pure calculation engines.

Engines take frozen domain records in and return frozen results out.
They never touch the database, the clock or configuration files.
"""

from contractor_engines.aggregation import (
    ProjectTotals,
    ProjectTracking,
    StatusBreakdown,
    StatusBuckets,
    SubcontractorTracking,
    aggregate_project_costs,
)
from contractor_engines.project_summary import ProjectSummary, summarize_project
from contractor_engines.rate_resolver import (
    ResolutionPolicy,
    ResolvedPricing,
    resolve_rate,
    select_rate_entry,
)
from contractor_engines.template_sync import SyncFailure, TemplateSyncResult, apply_template_labels

__all__ = [
    "ProjectSummary",
    "ProjectTotals",
    "ProjectTracking",
    "ResolutionPolicy",
    "ResolvedPricing",
    "StatusBreakdown",
    "StatusBuckets",
    "SubcontractorTracking",
    "SyncFailure",
    "TemplateSyncResult",
    "aggregate_project_costs",
    "apply_template_labels",
    "resolve_rate",
    "select_rate_entry",
    "summarize_project",
]
