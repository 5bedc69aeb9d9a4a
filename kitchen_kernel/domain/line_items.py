"""
Line item records (``kitchen_kernel.domain.line_items``).

Responsibility
--------------
Immutable records for one ordered product configuration, in its two
shapes: the production-facing ``ProductionLineItem`` that the tracking
engine mutates (by replacement), and the pricing-facing ``OrderLineItem``
that the price resolver reads.  ``OrderTotalsSnapshot`` carries the
order-level dual pricing amounts.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  Records are
built by the caller, usually from backend payloads via ``from_payload``.

Invariants enforced
-------------------
* ``quantity_ordered > 0`` and ``0 <= quantity_produced <= quantity_ordered``
  for production items (checked at construction).
* Every numeric field is a ``Decimal`` (or ``None`` where nullable).
* Pricing snapshots never fail on odd backend values: unusable numbers
  and unknown statuses become ``None``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from decimal import Decimal
from typing import Any

from kitchen_kernel.domain.status import (
    DeliveryStatus,
    ProductGroup,
    ProductionStatus,
    ProductionUnit,
    parse_enum,
    parse_enum_or_none,
)
from kitchen_kernel.domain.values import (
    ZERO,
    ProductKey,
    normalize_variant,
    require_finite_decimal,
    to_decimal,
)
from kitchen_kernel.exceptions import InvalidAmountError


def _option_names(payload: Mapping[str, Any]) -> tuple[str, ...]:
    """Option names from ``selectedOptions: [{optionItem: {name}}]``."""
    names: list[str] = []
    for option in payload.get("selectedOptions") or ():
        item = option.get("optionItem") if isinstance(option, Mapping) else None
        name = item.get("name") if isinstance(item, Mapping) else None
        if name:
            names.append(str(name))
    return tuple(names)


@dataclass(frozen=True)
class ProductionLineItem:
    """
    One ordered product configuration as seen by the kitchen.

    Contract:
        Frozen; engine operations return updated copies via ``evolve``.
    Guarantees:
        - ``remaining`` is never negative.
        - ``product_key`` is stable for a given name, option set and unit.
    Non-goals:
        - Does not know about prices; see ``OrderLineItem``.
    """

    id: str
    product_name: str
    unit: ProductionUnit
    quantity_ordered: Decimal
    options: tuple[str, ...] = ()
    quantity_produced: Decimal = ZERO
    production_status: ProductionStatus = ProductionStatus.PENDING
    production_notes: str | None = None
    product_group: ProductGroup | None = None
    order_id: str | None = None

    def __post_init__(self) -> None:
        ordered = require_finite_decimal(self.quantity_ordered, "quantity_ordered")
        produced = require_finite_decimal(self.quantity_produced, "quantity_produced")
        if ordered <= ZERO:
            raise InvalidAmountError("quantity_ordered", self.quantity_ordered)
        if produced < ZERO or produced > ordered:
            raise InvalidAmountError("quantity_produced", self.quantity_produced)
        object.__setattr__(self, "quantity_ordered", ordered)
        object.__setattr__(self, "quantity_produced", produced)
        object.__setattr__(self, "options", tuple(self.options))
        object.__setattr__(self, "unit", parse_enum(ProductionUnit, self.unit))
        object.__setattr__(
            self,
            "production_status",
            parse_enum(ProductionStatus, self.production_status),
        )
        if self.product_group is not None:
            object.__setattr__(
                self, "product_group", parse_enum(ProductGroup, self.product_group)
            )

    @property
    def variant_name(self) -> str:
        """Display name of the variant, as the options were chosen."""
        return ", ".join(o.strip() for o in self.options if o.strip())

    @property
    def variant_signature(self) -> str:
        return normalize_variant(self.options)

    @property
    def product_key(self) -> ProductKey:
        return ProductKey.of(self.product_name, self.options, self.unit)

    @property
    def remaining(self) -> Decimal:
        """Quantity still to produce: ``max(0, ordered - produced)``."""
        return max(ZERO, self.quantity_ordered - self.quantity_produced)

    @property
    def is_terminal(self) -> bool:
        return self.production_status.is_terminal

    def evolve(self, **changes: Any) -> ProductionLineItem:
        """Return a copy with ``changes`` applied (validated again)."""
        return replace(self, **changes)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> ProductionLineItem:
        """
        Build from a backend order item record.

        Preconditions:
            ``payload`` has ``id``, ``quantity`` and ``product.name`` /
            ``product.unit``.
        Raises:
            KeyError: if a required key is missing.
            InvalidAmountError / InvalidStatusValueError: on bad values.
        """
        product = payload["product"]
        return cls(
            id=str(payload["id"]),
            product_name=product["name"],
            unit=product["unit"],
            quantity_ordered=payload["quantity"],
            options=_option_names(payload),
            quantity_produced=payload.get("producedQuantity") or ZERO,
            production_status=payload.get("productionStatus") or ProductionStatus.PENDING,
            production_notes=payload.get("productionNotes"),
            product_group=product.get("productGroup"),
            order_id=payload.get("orderId"),
        )


# Backend field name -> OrderLineItem attribute
_ORDER_LINE_PAYLOAD_FIELDS = {
    "initialRetailTotalPrice": "initial_retail_total",
    "finalRetailTotalPrice": "final_retail_total",
    "retailTotalPrice": "retail_total",
    "wholesaleTotalPrice": "wholesale_total",
    "totalPrice": "total_price",
    "finalRetailUnitPrice": "final_retail_unit_price",
    "retailUnitPrice": "retail_unit_price",
    "initialRetailUnitPrice": "initial_retail_unit_price",
    "wholesaleUnitPrice": "wholesale_unit_price",
    "unitPrice": "unit_price",
    "producedQuantity": "quantity_produced",
    "deliveredQuantity": "quantity_delivered",
}

_NULLABLE_DECIMALS = frozenset(_ORDER_LINE_PAYLOAD_FIELDS.values())


@dataclass(frozen=True)
class OrderLineItem:
    """
    Pricing-facing snapshot of an order line.

    Every price field is independent and may be absent.  "Initial" fields
    are populated when the order is placed; "final" fields appear as
    production and delivery progress upstream.
    """

    id: str
    quantity_ordered: Decimal = ZERO
    initial_retail_total: Decimal | None = None
    final_retail_total: Decimal | None = None
    retail_total: Decimal | None = None
    wholesale_total: Decimal | None = None
    total_price: Decimal | None = None
    final_retail_unit_price: Decimal | None = None
    retail_unit_price: Decimal | None = None
    initial_retail_unit_price: Decimal | None = None
    wholesale_unit_price: Decimal | None = None
    unit_price: Decimal | None = None
    quantity_produced: Decimal | None = None
    quantity_delivered: Decimal | None = None
    production_status: ProductionStatus | None = None
    delivery_status: DeliveryStatus | None = None

    def __post_init__(self) -> None:
        for f in fields(self):
            if f.name in _NULLABLE_DECIMALS:
                object.__setattr__(self, f.name, to_decimal(getattr(self, f.name)))
        object.__setattr__(
            self, "quantity_ordered", to_decimal(self.quantity_ordered) or ZERO
        )
        object.__setattr__(
            self,
            "production_status",
            parse_enum_or_none(ProductionStatus, self.production_status),
        )
        object.__setattr__(
            self,
            "delivery_status",
            parse_enum_or_none(DeliveryStatus, self.delivery_status),
        )

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> OrderLineItem:
        """Build from a backend order item record; missing fields stay None."""
        values = {
            attr: payload.get(key) for key, attr in _ORDER_LINE_PAYLOAD_FIELDS.items()
        }
        return cls(
            id=str(payload.get("id", "")),
            quantity_ordered=payload.get("quantity"),
            production_status=payload.get("productionStatus"),
            delivery_status=payload.get("deliveryStatus"),
            **values,
        )


@dataclass(frozen=True)
class OrderTotalsSnapshot:
    """Order-level dual pricing amounts as reported by the backend."""

    initial_retail_total: Decimal | None = None
    final_retail_total: Decimal | None = None
    initial_wholesale_total: Decimal | None = None
    final_wholesale_total: Decimal | None = None

    def __post_init__(self) -> None:
        for f in fields(self):
            object.__setattr__(self, f.name, to_decimal(getattr(self, f.name)))

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> OrderTotalsSnapshot:
        return cls(
            initial_retail_total=payload.get("initialRetailTotalAmount"),
            final_retail_total=payload.get("finalRetailTotalAmount"),
            initial_wholesale_total=payload.get("initialWholesaleTotalAmount"),
            final_wholesale_total=payload.get("finalWholesaleTotalAmount"),
        )
