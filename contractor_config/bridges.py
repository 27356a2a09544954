"""
Config -> engine/service bridges.

Functions that turn a ``CostingConfig`` into the plain inputs engines and
services take.  They live here because the kernel and the engines must
never import ``contractor_config``.

Usage:
    config = get_active_config()
    configure_logging_from_config(config)
    init_engine_from_config(config)
    policy = resolution_policy_from_config(config)
    ledger = LedgerService(session, policy=policy, **ledger_options_from_config(config))
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.engine import Engine

from contractor_config.schema import CostingConfig
from contractor_engines.rate_resolver import ResolutionPolicy
from contractor_kernel.db.engine import init_engine_from_url
from contractor_kernel.logging_config import configure_logging


def resolution_policy_from_config(config: CostingConfig) -> ResolutionPolicy:
    return ResolutionPolicy(
        overtime_fallback_multiplier=config.resolution.overtime_fallback_multiplier,
        require_bill_rate=config.resolution.require_bill_rate,
    )


def rate_card_options_from_config(config: CostingConfig) -> dict[str, Any]:
    return {"strict_rate_windows": config.rates.strict_rate_windows}


def ledger_options_from_config(config: CostingConfig) -> dict[str, Any]:
    return {
        "default_currency": config.ledger.default_currency,
        "max_hours": config.ledger.max_hours_per_entry,
    }


def reporting_options_from_config(config: CostingConfig) -> dict[str, Any]:
    return {
        "unknown_subcontractor_name": config.reporting.unknown_subcontractor_name,
        "include_submitted_in_summary": config.reporting.include_submitted_in_summary,
    }


def init_engine_from_config(config: CostingConfig) -> Engine:
    return init_engine_from_url(config.database.url, echo=config.database.echo)


def configure_logging_from_config(config: CostingConfig) -> None:
    configure_logging(level=getattr(logging, config.logging.level))
