"""
Configuration schema (``contractor_config.schema``).

Frozen dataclasses produced by ``contractor_config.loader`` from YAML.

  CostingConfig
    rates       -- save-time rate card checks
    resolution  -- rate resolver policy
    ledger      -- ledger entry defaults and limits
    reporting   -- aggregation display settings
    database    -- connection settings
    logging     -- log level
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class RatesConfig:
    # Overlapping rate windows raise instead of logging a warning.
    strict_rate_windows: bool = False


@dataclass(frozen=True)
class ResolutionConfig:
    overtime_fallback_multiplier: Decimal = Decimal("1.5")
    require_bill_rate: bool = False


@dataclass(frozen=True)
class LedgerConfig:
    default_currency: str = "GBP"
    max_hours_per_entry: Decimal = Decimal("24")


@dataclass(frozen=True)
class ReportingConfig:
    unknown_subcontractor_name: str = "Unknown Subcontractor"
    include_submitted_in_summary: bool = False


@dataclass(frozen=True)
class DatabaseConfig:
    url: str = "sqlite+pysqlite:///:memory:"
    echo: bool = False


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class CostingConfig:
    """The runtime configuration artifact."""
    config_id: str
    version: int
    rates: RatesConfig = field(default_factory=RatesConfig)
    resolution: ResolutionConfig = field(default_factory=ResolutionConfig)
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    reporting: ReportingConfig = field(default_factory=ReportingConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    checksum: str = ""
