"""
Configuration Loader (``pharmacy_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the frozen
``pharmacy_config.schema`` dataclasses.  Runtime callers go through
``pharmacy_config.get_active_config()`` instead.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing ``config_id``  -> ``KeyError`` propagates.
* Wrongly typed values  -> ``ValueError`` / ``TypeError`` propagate.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from pharmacy_config.schema import (
    DatabaseDef,
    FifoPolicyDef,
    LoggingDef,
    PharmacyConfig,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_fifo(data: dict[str, Any]) -> FifoPolicyDef:
    """Parse a FifoPolicyDef from a dict; absent keys keep their defaults."""
    defaults = FifoPolicyDef()
    return FifoPolicyDef(
        unknown_order_label=str(
            data.get("unknown_order_label", defaults.unknown_order_label)
        ),
        margin_places=int(data.get("margin_places", defaults.margin_places)),
        simulation_order_number=str(
            data.get("simulation_order_number", defaults.simulation_order_number)
        ),
    )


def parse_logging(data: dict[str, Any]) -> LoggingDef:
    return LoggingDef(level=str(data.get("level", LoggingDef().level)).upper())


def parse_database(data: dict[str, Any]) -> DatabaseDef:
    defaults = DatabaseDef()
    return DatabaseDef(
        url=str(data.get("url", defaults.url)),
        echo=bool(data.get("echo", defaults.echo)),
        pool_size=int(data.get("pool_size", defaults.pool_size)),
    )


def parse_config(data: dict[str, Any]) -> PharmacyConfig:
    """
    Parse a complete ``PharmacyConfig`` from a dict.

    Preconditions:
        - ``data`` contains ``config_id``; every section is optional.
    Postconditions:
        - ``checksum`` is the SHA-256 of ``data``.
    """
    return PharmacyConfig(
        config_id=str(data["config_id"]),
        version=int(data.get("version", 1)),
        fifo=parse_fifo(data.get("fifo") or {}),
        logging=parse_logging(data.get("logging") or {}),
        database=parse_database(data.get("database") or {}),
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
