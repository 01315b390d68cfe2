"""
pharmacy_config -- single public entrypoint for runtime configuration.

Responsibility:
    ``get_active_config()`` is the only way to obtain configuration at
    runtime.  It loads a YAML configuration set, validates it, and
    returns a frozen ``PharmacyConfig``.  Bridges in
    ``pharmacy_config.bridges`` turn it into engine and kernel inputs.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``ConfigValidationError`` -- validation failed; ``errors`` lists why.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``PHARMACY_CONFIG_TRACE`` log entry with the config id, version and
    checksum.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pharmacy_config.loader import load_yaml_file, parse_config
from pharmacy_config.schema import PharmacyConfig
from pharmacy_config.validator import validate_configuration
from pharmacy_kernel.exceptions import ConfigValidationError

_logger = logging.getLogger("pharmacy_kernel.config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(path: Path | str | None = None) -> PharmacyConfig:
    """The only public configuration entrypoint.

    Args:
        path: YAML file to load.  Defaults to pharmacy_config/sets/default.yaml.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the configuration is invalid.
    """
    config_path = Path(path) if path is not None else _DEFAULT_CONFIG_PATH
    config = parse_config(load_yaml_file(config_path))

    validation = validate_configuration(config)
    if not validation.is_valid:
        raise ConfigValidationError(validation.errors)

    _logger.info(
        "PHARMACY_CONFIG_TRACE",
        extra={
            "trace_type": "PHARMACY_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "source": str(config_path),
        },
    )
    return config


__all__ = ["PharmacyConfig", "get_active_config"]
