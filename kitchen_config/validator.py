"""
Configuration Validator (``kitchen_config.validator``).

Validates a parsed ``EngineConfig`` before it is handed to the engines.
Errors block use of the configuration; warnings are logged.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal

from kitchen_config.schema import EngineConfig

_CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")
_DEDUCTION_POLICIES = ("observed", "incremental")


@dataclass
class ConfigValidationResult:
    """
    Result of configuration validation.

    ``is_valid`` is ``True`` only when ``errors`` is empty.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def validate_engine_config(config: EngineConfig) -> ConfigValidationResult:
    """Check every setting; collect all problems rather than stopping at the first."""
    result = ConfigValidationResult()

    if not config.config_id.strip():
        result.errors.append("config_id must not be empty")
    if config.version < 1:
        result.errors.append(f"version must be >= 1, got {config.version}")

    tracking = config.tracking
    if tracking.min_note_length < 0:
        result.errors.append(
            f"tracking.min_note_length must be >= 0, got {tracking.min_note_length}"
        )
    elif tracking.min_note_length == 0:
        result.warnings.append("tracking.min_note_length is 0; partial notes are optional")
    if tracking.deduction_policy not in _DEDUCTION_POLICIES:
        result.errors.append(
            f"tracking.deduction_policy must be one of {_DEDUCTION_POLICIES}, "
            f"got {tracking.deduction_policy!r}"
        )

    pricing = config.pricing
    if not _CURRENCY_CODE.match(pricing.currency):
        result.errors.append(f"pricing.currency must be a 3-letter code, got {pricing.currency!r}")
    threshold = pricing.price_change_threshold
    if not threshold.is_finite() or threshold < Decimal("0"):
        result.errors.append(
            f"pricing.price_change_threshold must be a finite value >= 0, got {threshold}"
        )
    if not 0 <= pricing.min_fraction_digits <= pricing.max_fraction_digits:
        result.errors.append(
            "pricing fraction digits must satisfy 0 <= min_fraction_digits <= max_fraction_digits"
        )
    if not pricing.discard_stale_backend_zero:
        result.warnings.append(
            "pricing.discard_stale_backend_zero is off; zero final totals are trusted"
        )

    return result
