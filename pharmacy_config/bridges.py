"""
Config -> Kernel / Engine Bridges.

Functions that convert a ``PharmacyConfig`` into kernel and engine
inputs.  They live here because neither the kernel nor the engines may
import pharmacy_config.

Usage:
    from pharmacy_config import get_active_config
    from pharmacy_config.bridges import build_fifo_policy

    config = get_active_config()
    service = FifoReportService(session, policy=build_fifo_policy(config))
"""

from __future__ import annotations

import logging

from sqlalchemy.engine import Engine

from pharmacy_config.schema import PharmacyConfig
from pharmacy_engines.fifo.types import FifoPolicy
from pharmacy_kernel.db.engine import init_engine_from_url
from pharmacy_kernel.logging_config import configure_logging


def build_fifo_policy(config: PharmacyConfig) -> FifoPolicy:
    return FifoPolicy(
        unknown_order_label=config.fifo.unknown_order_label,
        margin_places=config.fifo.margin_places,
        simulation_order_number=config.fifo.simulation_order_number,
    )


def apply_logging_config(config: PharmacyConfig, **kwargs) -> None:
    """Configure the ``pharmacy_kernel`` logger at the configured level."""
    configure_logging(level=getattr(logging, config.logging.level), **kwargs)


def init_engine_from_config(config: PharmacyConfig) -> Engine:
    db = config.database
    return init_engine_from_url(db.url, echo=db.echo, pool_size=db.pool_size)
