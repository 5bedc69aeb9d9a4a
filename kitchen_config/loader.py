"""
Configuration Loader (``kitchen_config.loader``).

Responsibility
--------------
Loads an engine policy YAML file and parses it into the typed
``kitchen_config.schema`` dataclasses.  Callers should use
``kitchen_config.get_active_config()`` rather than this module.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Decimal settings are read from their string form, never through float.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the raw
  document for change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing ``config_id``  -> ``KeyError`` propagates.
* Unparsable numbers  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from kitchen_config.schema import EngineConfig, PricingConfig, TrackingConfig


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_decimal(value: Any, name: str) -> Decimal:
    """Parse a Decimal setting from YAML (string or number)."""
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Cannot parse {name} from {value!r}") from e


def parse_tracking(data: dict[str, Any]) -> TrackingConfig:
    defaults = TrackingConfig()
    return TrackingConfig(
        min_note_length=int(data.get("min_note_length", defaults.min_note_length)),
        deduction_policy=str(data.get("deduction_policy", defaults.deduction_policy)).lower(),
    )


def parse_pricing(data: dict[str, Any]) -> PricingConfig:
    defaults = PricingConfig()
    return PricingConfig(
        currency=str(data.get("currency", defaults.currency)).upper(),
        price_change_threshold=parse_decimal(
            data.get("price_change_threshold", defaults.price_change_threshold),
            "price_change_threshold",
        ),
        discard_stale_backend_zero=bool(
            data.get("discard_stale_backend_zero", defaults.discard_stale_backend_zero)
        ),
        min_fraction_digits=int(data.get("min_fraction_digits", defaults.min_fraction_digits)),
        max_fraction_digits=int(data.get("max_fraction_digits", defaults.max_fraction_digits)),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """Deterministic SHA-256 over the canonical JSON form of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def parse_engine_config(data: dict[str, Any]) -> EngineConfig:
    """
    Parse an ``EngineConfig`` from a loaded document.

    Preconditions:
        ``data`` has a ``config_id``; ``tracking`` and ``pricing`` sections
        are optional and fall back to the schema defaults.
    Raises:
        KeyError: if ``config_id`` is missing.
        ValueError: if a numeric setting cannot be parsed.
    """
    return EngineConfig(
        config_id=str(data["config_id"]),
        version=int(data.get("version", 1)),
        tracking=parse_tracking(data.get("tracking") or {}),
        pricing=parse_pricing(data.get("pricing") or {}),
        checksum=compute_checksum(data),
    )


def load_engine_config(path: Path) -> EngineConfig:
    """Load and parse one policy file."""
    return parse_engine_config(load_yaml_file(path))
