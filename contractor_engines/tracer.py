"""
contractor_engines.tracer -- ``@traced_engine`` and COSTING_ENGINE_TRACE.

Each call of a wrapped engine logs one ``COSTING_ENGINE_TRACE`` record with
the engine name and version, a fingerprint of the pricing inputs and the
wall time spent.  Two resolutions with the same fingerprint priced the same
role, shift, date and hours, which is how a disputed time log is matched to
the trace that produced it.

The fingerprint is a SHA-256 (first 16 hex chars) of the selected keyword
arguments, canonicalized to JSON with sorted keys.  Decimals, dates, UUIDs,
enums and dataclasses such as ``TimeframeRef`` are reduced to plain values
first; a dataclass contributes only the fields it compares on.
``Decimal("8")`` and ``Decimal("8.0")`` fingerprint differently.
Keyword arguments not passed at all count as ``None``.

Nothing is logged when the engine raises; the caller logs the failure.
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import json
import time
from collections.abc import Callable, Mapping
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from contractor_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")

TRACE_TYPE = "COSTING_ENGINE_TRACE"


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return _plain(value.value)
    if isinstance(value, (Decimal, UUID, date)):
        return str(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: _plain(getattr(value, f.name))
            for f in dataclasses.fields(value)
            if f.compare
        }
    if isinstance(value, Mapping):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    kwargs: Mapping[str, Any],
) -> str:
    """16-hex-char SHA-256 of the named keyword arguments."""
    selected = {name: _plain(kwargs.get(name)) for name in fingerprint_fields}
    canonical = json.dumps(selected, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Wrap an engine so each successful call logs a COSTING_ENGINE_TRACE.

    Args:
        engine_name: e.g. ``"rate_resolver"``.
        engine_version: bumped when the engine's arithmetic changes.
        fingerprint_fields: keyword arguments hashed into
            ``input_fingerprint``. Empty means no fingerprint.
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            started = time.monotonic()
            result = func(*args, **kwargs)
            elapsed = time.monotonic() - started

            _logger.info(
                TRACE_TYPE,
                extra={
                    "trace_type": TRACE_TYPE,
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": (
                        compute_input_fingerprint(fingerprint_fields, kwargs)
                        if fingerprint_fields
                        else ""
                    ),
                    "duration_ms": round(elapsed * 1000, 2),
                    "function": func.__qualname__,
                },
            )
            return result

        return wrapper

    return decorator
