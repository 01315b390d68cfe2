"""
Module: pharmacy_engines
Responsibility:
    Pure calculation layer.  Re-exports the FIFO costing engine as the
    canonical import surface for pharmacy_services.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import pharmacy_kernel (domain, exceptions, logging).
    MUST NOT import pharmacy_services or pharmacy_config.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()``.  Timestamps are passed
      in as explicit parameters by services.
    - Decimal-only arithmetic.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Engine invocations are traced via ``@traced_engine`` (see
    ``pharmacy_engines.tracer``), emitting PHARMACY_ENGINE_TRACE records.
"""

from pharmacy_engines.fifo import (
    FIFOCalculationResult,
    FIFOSummary,
    FifoPolicy,
    SimulationResult,
    calculate_product_fifo,
    match_fifo_batches,
    prepare_inventory_for_fifo,
    simulate_fifo_cost,
)

__all__ = [
    "FIFOCalculationResult",
    "FIFOSummary",
    "FifoPolicy",
    "SimulationResult",
    "calculate_product_fifo",
    "match_fifo_batches",
    "prepare_inventory_for_fifo",
    "simulate_fifo_cost",
]
