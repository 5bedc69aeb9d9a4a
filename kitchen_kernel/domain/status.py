"""
Status vocabularies (``kitchen_kernel.domain.status``).

Responsibility
--------------
Enumerations for production and delivery lifecycles, production units,
product groups and price views, plus tolerant parsing from backend
spellings.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* ``COMPLETED`` and ``CANCELLED`` are the only terminal production states.
* Parsing is case-insensitive and whitespace-tolerant; unknown values raise
  ``InvalidStatusValueError`` (strict) or return ``None`` (lenient).
"""

from __future__ import annotations

from enum import Enum
from typing import Any, TypeVar

from kitchen_kernel.exceptions import InvalidStatusValueError

_E = TypeVar("_E", bound=Enum)


class ProductionStatus(str, Enum):
    """Lifecycle of fulfilling one ordered line in the kitchen."""

    PENDING = "PENDING"
    PARTIALLY_COMPLETED = "PARTIALLY_COMPLETED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (ProductionStatus.COMPLETED, ProductionStatus.CANCELLED)

    @property
    def label(self) -> str:
        return _PRODUCTION_LABELS[self]


_PRODUCTION_LABELS = {
    ProductionStatus.PENDING: "Pending",
    ProductionStatus.PARTIALLY_COMPLETED: "Partially Completed",
    ProductionStatus.COMPLETED: "Completed",
    ProductionStatus.CANCELLED: "Cancelled",
}


class DeliveryStatus(str, Enum):
    """Lifecycle of getting a produced line to the customer."""

    PENDING = "PENDING"
    READY_FOR_DELIVERY = "READY_FOR_DELIVERY"
    PARTIALLY_DELIVERED = "PARTIALLY_DELIVERED"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    PARTIAL = "PARTIAL"

    @property
    def label(self) -> str:
        return _DELIVERY_LABELS[self]


_DELIVERY_LABELS = {
    DeliveryStatus.PENDING: "Pending",
    DeliveryStatus.READY_FOR_DELIVERY: "Ready for Delivery",
    DeliveryStatus.PARTIALLY_DELIVERED: "Partially Delivered",
    DeliveryStatus.DELIVERED: "Delivered",
    DeliveryStatus.FAILED: "Failed",
    DeliveryStatus.CANCELLED: "Cancelled",
    DeliveryStatus.PARTIAL: "Partial Delivery",
}


class ProductionUnit(str, Enum):
    """Unit a product is produced and counted in."""

    PIECE = "PIECE"
    KG = "KG"
    TRAY = "TRAY"


class ProductGroup(str, Enum):
    """Kitchen section responsible for a product."""

    SWEETS = "SWEETS"
    BAKERY = "BAKERY"


class PriceView(str, Enum):
    """Which price list a screen shows."""

    RETAIL = "RETAIL"  # client and distributor screens
    WHOLESALE = "WHOLESALE"  # admin screens


def parse_enum(enum_cls: type[_E], value: Any) -> _E:
    """
    Parse a backend spelling into an enum member.

    Raises:
        InvalidStatusValueError: if ``value`` is not a member name.
    """
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        normalized = value.strip().upper()
        try:
            return enum_cls(normalized)
        except ValueError:
            pass
    raise InvalidStatusValueError(enum_cls.__name__, value)


def parse_enum_or_none(enum_cls: type[_E], value: Any) -> _E | None:
    """Lenient variant of ``parse_enum``: blanks and unknown values become None."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        return parse_enum(enum_cls, value)
    except InvalidStatusValueError:
        return None
