"""
Pure domain layer.

This module contains immutable records and value helpers with NO
dependencies on:
- Transport or persistence
- Time/clock
- I/O

All domain objects are immutable and deterministic.
"""

from kitchen_kernel.domain.display import format_currency
from kitchen_kernel.domain.line_items import (
    OrderLineItem,
    OrderTotalsSnapshot,
    ProductionLineItem,
)
from kitchen_kernel.domain.status import (
    DeliveryStatus,
    PriceView,
    ProductGroup,
    ProductionStatus,
    ProductionUnit,
    parse_enum,
    parse_enum_or_none,
)
from kitchen_kernel.domain.values import (
    ProductKey,
    normalize_variant,
    require_finite_decimal,
    to_decimal,
)

__all__ = [
    "DeliveryStatus",
    "OrderLineItem",
    "OrderTotalsSnapshot",
    "PriceView",
    "ProductGroup",
    "ProductKey",
    "ProductionLineItem",
    "ProductionStatus",
    "ProductionUnit",
    "format_currency",
    "normalize_variant",
    "parse_enum",
    "parse_enum_or_none",
    "require_finite_decimal",
    "to_decimal",
]
