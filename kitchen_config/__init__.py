"""
kitchen_config -- single public entrypoint for engine configuration.

Responsibility:
    Provides the ONLY way to obtain engine policy at runtime through
    ``get_active_config()``.  Engines never read configuration files;
    callers load a config here and pass it (or its values) to the
    engines' ``from_config`` factories.

Architecture position:
    Configuration -- YAML-driven policy, validated on load.
    Sits above ``kitchen_kernel``.  The kernel and engines MUST NEVER
    import from ``kitchen_config`` at runtime.

Failure modes:
    - ``FileNotFoundError`` -- the policy file does not exist.
    - ``yaml.YAMLError`` -- malformed YAML.
    - ``ConfigError`` -- parsing or validation failed; lists every problem.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``KITCHEN_CONFIG_TRACE`` log entry with the config_id, version and
    checksum, tying engine behavior to the exact policy that governed it.
"""

from __future__ import annotations

from pathlib import Path

from kitchen_config.loader import load_yaml_file, parse_engine_config
from kitchen_config.schema import EngineConfig, PricingConfig, TrackingConfig
from kitchen_config.validator import ConfigValidationResult, validate_engine_config
from kitchen_kernel.exceptions import ConfigError
from kitchen_kernel.logging_config import get_logger

_logger = get_logger("config")

# Default policy file
DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "ConfigValidationResult",
    "EngineConfig",
    "PricingConfig",
    "TrackingConfig",
    "get_active_config",
    "validate_engine_config",
]


def get_active_config(config_path: Path | None = None) -> EngineConfig:
    """The ONLY public configuration entrypoint.

    Guarantees:
        - The returned ``EngineConfig`` has passed validation.
        - A ``KITCHEN_CONFIG_TRACE`` log entry is emitted on every
          successful call; validation warnings are logged individually.

    Non-goals:
        - Does not cache across calls; callers hold the returned config.

    Args:
        config_path: Override path to the policy YAML file.
            Defaults to kitchen_config/sets/default.yaml.

    Raises:
        FileNotFoundError: If the policy file does not exist.
        ConfigError: If the document cannot be parsed or fails validation.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    data = load_yaml_file(path)
    try:
        config = parse_engine_config(data)
    except (KeyError, ValueError, TypeError, AttributeError) as e:
        raise ConfigError(str(path), [f"unparsable configuration: {e}"]) from e

    validation = validate_engine_config(config)
    if not validation.is_valid:
        _logger.error("config_validation_failed", extra={
            "config_path": str(path),
            "errors": validation.errors,
        })
        raise ConfigError(str(path), validation.errors)
    for warning in validation.warnings:
        _logger.warning("config_validation_warning", extra={
            "config_id": config.config_id,
            "warning": warning,
        })

    _logger.info("KITCHEN_CONFIG_TRACE", extra={
        "trace_type": "KITCHEN_CONFIG_TRACE",
        "config_id": config.config_id,
        "config_version": config.version,
        "checksum": config.checksum,
        "deduction_policy": config.tracking.deduction_policy,
        "currency": config.pricing.currency,
    })
    return config
