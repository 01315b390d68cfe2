"""
pharmacy_engines.tracer -- Engine invocation tracer emitting PHARMACY_ENGINE_TRACE.

Responsibility:
    ``@traced_engine`` wraps a pure engine function and, after each call,
    logs which engine ran, at which version, over which inputs
    (``input_fingerprint``) and for how long (``duration_ms``).  Two runs
    over the same ledger carry the same fingerprint, so a report can be
    tied back to the exact inputs that produced it.

Architecture position:
    Engines -- infrastructure support for the pure calculation layer.
    Emits a log record only; no other I/O.

Invariants enforced:
    - Arguments are bound to the engine's signature (defaults applied)
      before fingerprinting, so positional and keyword calls of the same
      inputs fingerprint identically.
    - Canonical form is order-stable: mapping keys are sorted, dataclass
      records are rendered field by field, Decimals by value, datetimes as
      ISO-8601 and enums by value.  The fingerprint is the first 16 hex
      chars of the SHA-256 of that form.
    - Inputs are read, never mutated.  Iterables other than lists and
      tuples are not walked, so a generator passed to an engine is never
      consumed by the tracer.

Usage:
    from pharmacy_engines.tracer import traced_engine

    @traced_engine("fifo.matcher", "1.0", fingerprint_fields=("stock_in", "stock_out"))
    def match_fifo_batches(stock_in, stock_out):
        ...
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import inspect
import logging
import time
from collections.abc import Callable, Mapping
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

_logger = logging.getLogger("pharmacy_kernel.engines.tracer")


def _canonicalize(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, str):
        return value
    if isinstance(value, (bool, int, Decimal)):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        body = ",".join(
            f"{f.name}:{_canonicalize(getattr(value, f.name))}"
            for f in dataclasses.fields(value)
        )
        return f"{type(value).__name__}{{{body}}}"
    if isinstance(value, Mapping):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        return "{" + ",".join(f"{k}:{_canonicalize(v)}" for k, v in items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonicalize(v) for v in value) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    """Deterministic SHA-256 fingerprint (16 hex chars) of selected arguments.

    Fields absent from ``arguments`` are recorded as "null".
    """
    canonical = "|".join(
        f"{name}={_canonicalize(arguments.get(name))}" for name in fingerprint_fields
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Decorator that emits PHARMACY_ENGINE_TRACE for pure engine invocations.

    Args:
        engine_name: Engine identifier (e.g., "fifo.matcher").
        engine_version: Engine version (e.g., "1.0").
        fingerprint_fields: Parameter names whose values make up the
            input fingerprint.  Each must be a parameter of the engine.

    Raises:
        ValueError: At decoration time, if a fingerprint field is not a
            parameter of the decorated function.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)
        unknown = [f for f in fingerprint_fields if f not in signature.parameters]
        if unknown:
            raise ValueError(
                f"{func.__qualname__} has no parameter(s) {', '.join(unknown)}"
            )

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fp = ""
            if fingerprint_fields:
                bound = signature.bind(*args, **kwargs)
                bound.apply_defaults()
                fp = compute_input_fingerprint(fingerprint_fields, bound.arguments)

            t0 = time.monotonic()
            result = func(*args, **kwargs)
            duration_ms = round((time.monotonic() - t0) * 1000, 2)

            _logger.info(
                "PHARMACY_ENGINE_TRACE",
                extra={
                    "trace_type": "PHARMACY_ENGINE_TRACE",
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": fp,
                    "duration_ms": duration_ms,
                    "function": func.__qualname__,
                },
            )
            return result

        return wrapper

    return decorator
