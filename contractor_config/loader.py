"""
Configuration Loader (``contractor_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the frozen
``contractor_config.schema`` dataclasses.  Runtime callers go through
``contractor_config.get_active_config()`` instead.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Money-like values are parsed as ``Decimal`` via ``str()``.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing ``config_id`` / ``version``  -> ``KeyError`` propagates.
* Unknown section keys or bad values  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from contractor_config.schema import (
    CostingConfig,
    DatabaseConfig,
    LedgerConfig,
    LoggingConfig,
    RatesConfig,
    ReportingConfig,
    ResolutionConfig,
)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top-level YAML document must be a mapping")
    return data


def _decimal(value: Any, key: str) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"{key}: not a decimal value: {value!r}") from e


def _section(data: dict[str, Any], name: str, allowed: tuple[str, ...]) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"{name}: section must be a mapping")
    unknown = sorted(set(section) - set(allowed))
    if unknown:
        raise ValueError(f"{name}: unknown key(s) {unknown}")
    return section


def parse_rates(data: dict[str, Any]) -> RatesConfig:
    section = _section(data, "rates", ("strict_rate_windows",))
    return RatesConfig(
        strict_rate_windows=bool(section.get("strict_rate_windows", False)),
    )


def parse_resolution(data: dict[str, Any]) -> ResolutionConfig:
    section = _section(data, "resolution", ("overtime_fallback_multiplier", "require_bill_rate"))
    multiplier = _decimal(
        section.get("overtime_fallback_multiplier", "1.5"),
        "resolution.overtime_fallback_multiplier",
    )
    if multiplier < 1:
        raise ValueError(
            f"resolution.overtime_fallback_multiplier must be at least 1, got {multiplier}"
        )
    return ResolutionConfig(
        overtime_fallback_multiplier=multiplier,
        require_bill_rate=bool(section.get("require_bill_rate", False)),
    )


def parse_ledger(data: dict[str, Any]) -> LedgerConfig:
    section = _section(data, "ledger", ("default_currency", "max_hours_per_entry"))
    currency = str(section.get("default_currency", "GBP")).upper()
    if len(currency) != 3 or not currency.isalpha():
        raise ValueError(f"ledger.default_currency: not an ISO currency code: {currency!r}")
    return LedgerConfig(
        default_currency=currency,
        max_hours_per_entry=_decimal(
            section.get("max_hours_per_entry", "24"), "ledger.max_hours_per_entry",
        ),
    )


def parse_reporting(data: dict[str, Any]) -> ReportingConfig:
    section = _section(
        data, "reporting", ("unknown_subcontractor_name", "include_submitted_in_summary"),
    )
    return ReportingConfig(
        unknown_subcontractor_name=str(
            section.get("unknown_subcontractor_name", "Unknown Subcontractor")
        ),
        include_submitted_in_summary=bool(section.get("include_submitted_in_summary", False)),
    )


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    section = _section(data, "database", ("url", "echo"))
    return DatabaseConfig(
        url=str(section.get("url", "sqlite+pysqlite:///:memory:")),
        echo=bool(section.get("echo", False)),
    )


def parse_logging(data: dict[str, Any]) -> LoggingConfig:
    section = _section(data, "logging", ("level",))
    level = str(section.get("level", "INFO")).upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"logging.level: expected one of {_LOG_LEVELS}, got {level!r}")
    return LoggingConfig(level=level)


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_config(data: dict[str, Any]) -> CostingConfig:
    """Parse a loaded YAML document into a ``CostingConfig``."""
    return CostingConfig(
        config_id=str(data["config_id"]),
        version=int(data["version"]),
        rates=parse_rates(data),
        resolution=parse_resolution(data),
        ledger=parse_ledger(data),
        reporting=parse_reporting(data),
        database=parse_database(data),
        logging=parse_logging(data),
        checksum=compute_checksum(data),
    )


def load_config(path: Path) -> CostingConfig:
    return parse_config(load_yaml_file(path))
