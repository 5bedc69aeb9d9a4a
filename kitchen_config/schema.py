"""
Engine configuration schema.

The human-authored YAML policy file is parsed by the loader into these
frozen types.  Engines never see YAML; callers hand them the values (or
use the ``from_config`` factories).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TrackingConfig:
    """Production tracking policy."""

    min_note_length: int = 5
    deduction_policy: str = "observed"  # "observed" or "incremental"


@dataclass(frozen=True)
class PricingConfig:
    """Price resolution and display policy."""

    currency: str = "AED"
    price_change_threshold: Decimal = Decimal("0.005")
    discard_stale_backend_zero: bool = True
    min_fraction_digits: int = 0
    max_fraction_digits: int = 2


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EngineConfig:
    """A loaded, validated engine policy."""

    config_id: str
    version: int
    tracking: TrackingConfig = field(default_factory=TrackingConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    checksum: str = ""
