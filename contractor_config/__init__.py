"""
contractor_config -- single public entrypoint for costing configuration.

Responsibility:
    ``get_active_config()`` is the only way to obtain configuration at
    runtime.  Services and engines receive plain values derived from it
    (see ``contractor_config.bridges``); they never read files themselves.

Invariants enforced:
    - Single entrypoint: all runtime config flows through ``get_active_config()``.
    - Deterministic checksum: the same YAML document always yields the
      same ``CostingConfig.checksum``.

Failure modes:
    - ``FileNotFoundError`` -- the requested configuration file is missing.
    - ``ValueError`` / ``KeyError`` -- schema violations.

Every successful call emits a ``COSTING_CONFIG_TRACE`` log entry with the
config id, version and checksum.
"""

from __future__ import annotations

from pathlib import Path

from contractor_config.loader import load_config
from contractor_config.schema import CostingConfig
from contractor_kernel.logging_config import get_logger

_logger = get_logger("config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(config_path: Path | None = None) -> CostingConfig:
    """Load and return the active configuration.

    Args:
        config_path: Override path to a YAML configuration file.
            Defaults to the packaged ``sets/default.yaml``.
    """
    path = Path(config_path) if config_path is not None else _DEFAULT_CONFIG_PATH
    config = load_config(path)

    _logger.info(
        "COSTING_CONFIG_TRACE",
        extra={
            "trace_type": "COSTING_CONFIG_TRACE",
            "config_set_id": config.config_id,
            "config_set_version": config.version,
            "checksum": config.checksum,
            "strict_rate_windows": config.rates.strict_rate_windows,
            "require_bill_rate": config.resolution.require_bill_rate,
        },
    )
    return config


__all__ = ["CostingConfig", "get_active_config"]
