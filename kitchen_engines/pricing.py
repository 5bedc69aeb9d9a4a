"""
Module: kitchen_engines.pricing
Responsibility:
    Resolve display-ready monetary totals for order line items whose price
    snapshots may be partly missing: the unit price, the initial total
    (at order time) and the final total (after production and delivery),
    plus the "price changed" indicator.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import kitchen_kernel.

Invariants enforced:
    - Purity: resolution never mutates its input and returns plain
      ``Decimal`` values, never formatted strings.
    - Totals are never None; missing data falls through the precedence
      chain down to a computed value.
    - Failed deliveries and cancelled production resolve to a final total
      of zero unless the backend supplied a usable final total.
    - The stale-zero workaround lives in ``is_stale_backend_zero`` only, so
      it can be switched off (``discard_stale_zero=False``) or removed once
      the upstream data is fixed.

Failure modes:
    - None.  Odd snapshots resolve through the fallback chain.

Usage:
    from kitchen_engines.pricing import PriceResolver

    resolution = PriceResolver().resolve(OrderLineItem.from_payload(payload))
    if resolution.price_changed:
        show_banner(resolution.initial_total, resolution.final_total)
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any

from kitchen_engines.tracer import traced_engine
from kitchen_kernel.domain.display import DEFAULT_CURRENCY, format_currency
from kitchen_kernel.domain.line_items import OrderLineItem, OrderTotalsSnapshot
from kitchen_kernel.domain.status import DeliveryStatus, PriceView, ProductionStatus
from kitchen_kernel.domain.values import ONE, ZERO
from kitchen_kernel.logging_config import get_logger

if TYPE_CHECKING:
    from kitchen_config.schema import EngineConfig

logger = get_logger("engines.pricing")

DEFAULT_CHANGE_THRESHOLD = Decimal("0.005")


def _first(*values: Decimal | None) -> Decimal | None:
    for value in values:
        if value is not None:
            return value
    return None


def _positive(value: Decimal | None) -> bool:
    return value is not None and value > ZERO


class FinalTotalSource(str, Enum):
    """Which rule produced the final total."""

    BACKEND_FINAL = "backend_final"
    FAILED_OR_CANCELLED = "failed_or_cancelled"
    EFFECTIVE_QUANTITY = "effective_quantity"
    COMPLETED_FALLBACK = "completed_fallback"
    PENDING_FALLBACK = "pending_fallback"


@dataclass(frozen=True)
class PriceResolution:
    """Resolved amounts for one line."""

    item_id: str
    unit_price: Decimal
    initial_total: Decimal
    final_total: Decimal
    price_changed: bool
    final_source: FinalTotalSource


@dataclass(frozen=True)
class OrderPriceSummary:
    """Per-line resolutions and their sums for one order."""

    lines: tuple[PriceResolution, ...]
    initial_total: Decimal
    final_total: Decimal
    price_changed: bool


@dataclass(frozen=True)
class DisplayAmounts:
    """Unit price and line total for a role-specific list view."""

    unit: Decimal
    total: Decimal


@dataclass(frozen=True)
class DisplayTotals:
    """Order-level initial and final totals for a role-specific view."""

    initial: Decimal
    final: Decimal


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def resolve_unit_price(item: OrderLineItem) -> Decimal:
    """
    Unit price, first non-null of: final-retail, retail, initial-retail,
    generic unit price; otherwise the best total over ``max(qty, 1)``.
    """
    explicit = _first(
        item.final_retail_unit_price,
        item.retail_unit_price,
        item.initial_retail_unit_price,
        item.unit_price,
    )
    if explicit is not None:
        return explicit
    best_total = _first(
        item.final_retail_total,
        item.retail_total,
        item.initial_retail_total,
        item.total_price,
    )
    if best_total is None:
        return ZERO
    return best_total / max(item.quantity_ordered, ONE)


def resolve_initial_total(item: OrderLineItem, unit_price: Decimal) -> Decimal:
    """Initial-retail total -> retail total -> total price -> unit x qty."""
    total = _first(
        item.initial_retail_total,
        item.retail_total,
        item.total_price,
    )
    if total is None:
        return unit_price * item.quantity_ordered
    return total


def is_stale_backend_zero(item: OrderLineItem) -> bool:
    """
    True when a reported final total of exactly 0 cannot be real.

    Work-around for an upstream backend that leaves the final total at 0
    after production or delivery has happened.  Such a zero is treated as
    unset.
    """
    if item.final_retail_total is None or item.final_retail_total != ZERO:
        return False
    return (
        item.production_status in (
            ProductionStatus.COMPLETED,
            ProductionStatus.PARTIALLY_COMPLETED,
        )
        or _positive(item.quantity_produced)
        or _positive(item.quantity_delivered)
    )


def resolve_final_total(
    item: OrderLineItem,
    unit_price: Decimal,
    initial_total: Decimal,
    *,
    discard_stale_zero: bool = True,
) -> tuple[Decimal, FinalTotalSource]:
    """
    Final total and the rule that produced it.

    Rules, first match wins:
        1. usable backend final-retail total;
        2. delivery FAILED or production CANCELLED -> 0;
        3. produced (else delivered) quantity > 0 -> unit x that quantity;
        4. COMPLETED -> retail total -> total price -> unit x ordered;
        5. otherwise retail total -> total price -> initial total.
    """
    backend_final = item.final_retail_total
    if backend_final is not None and not (discard_stale_zero and is_stale_backend_zero(item)):
        return backend_final, FinalTotalSource.BACKEND_FINAL

    if (
        item.delivery_status is DeliveryStatus.FAILED
        or item.production_status is ProductionStatus.CANCELLED
    ):
        return ZERO, FinalTotalSource.FAILED_OR_CANCELLED

    effective_qty: Decimal | None = None
    if _positive(item.quantity_produced):
        effective_qty = item.quantity_produced
    elif _positive(item.quantity_delivered):
        effective_qty = item.quantity_delivered

    if effective_qty is not None:
        return unit_price * effective_qty, FinalTotalSource.EFFECTIVE_QUANTITY

    if item.production_status is ProductionStatus.COMPLETED:
        total = _first(item.retail_total, item.total_price)
        if total is None:
            total = unit_price * item.quantity_ordered
        return total, FinalTotalSource.COMPLETED_FALLBACK

    total = _first(item.retail_total, item.total_price)
    return (total if total is not None else initial_total), FinalTotalSource.PENDING_FALLBACK


def price_changed(
    initial_total: Decimal,
    final_total: Decimal,
    threshold: Decimal = DEFAULT_CHANGE_THRESHOLD,
) -> bool:
    """Half-cent tolerance absorbs rounding noise between snapshots."""
    return abs(final_total - initial_total) >= threshold


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class PriceResolver:
    """
    Resolves line and order totals.

    Contract:
        No I/O, no mutation, deterministic.
    Guarantees:
        - ``resolve`` always returns non-null Decimal totals.
        - ``price_changed`` iff ``|final - initial| >= change_threshold``.
        - ``format`` renders with the resolver's currency and fraction digits.
    Non-goals:
        - Resolution never rounds or formats; totals stay plain Decimals
          until ``format`` is called at display time.
    """

    def __init__(
        self,
        change_threshold: Decimal = DEFAULT_CHANGE_THRESHOLD,
        *,
        discard_stale_zero: bool = True,
        currency: str = DEFAULT_CURRENCY,
        min_fraction_digits: int = 0,
        max_fraction_digits: int = 2,
    ):
        if change_threshold < ZERO:
            raise ValueError("change_threshold cannot be negative")
        if not 0 <= min_fraction_digits <= max_fraction_digits:
            raise ValueError("fraction digits must satisfy 0 <= min <= max")
        self.change_threshold = change_threshold
        self.discard_stale_zero = discard_stale_zero
        self.currency = currency
        self.min_fraction_digits = min_fraction_digits
        self.max_fraction_digits = max_fraction_digits

    @classmethod
    def from_config(cls, config: EngineConfig) -> PriceResolver:
        """Resolver using the pricing section of a loaded engine config."""
        pricing = config.pricing
        return cls(
            pricing.price_change_threshold,
            discard_stale_zero=pricing.discard_stale_backend_zero,
            currency=pricing.currency,
            min_fraction_digits=pricing.min_fraction_digits,
            max_fraction_digits=pricing.max_fraction_digits,
        )

    def format(self, amount: Any) -> str:
        """Display string for a resolved amount, e.g. ``"1,234.5 AED"``."""
        return format_currency(
            amount,
            self.currency,
            min_fraction_digits=self.min_fraction_digits,
            max_fraction_digits=self.max_fraction_digits,
        )

    @traced_engine("pricing", "1.0", fingerprint_fields=("item",))
    def resolve(self, item: OrderLineItem) -> PriceResolution:
        """
        Resolve one line.

        Postconditions:
            ``final_total == initial_total`` for a fully pending line with
            no final snapshot and no produced/delivered quantity.
        """
        unit_price = resolve_unit_price(item)
        initial_total = resolve_initial_total(item, unit_price)
        final_total, source = resolve_final_total(
            item,
            unit_price,
            initial_total,
            discard_stale_zero=self.discard_stale_zero,
        )
        changed = price_changed(initial_total, final_total, self.change_threshold)

        if item.final_retail_total is not None and source is not FinalTotalSource.BACKEND_FINAL:
            logger.info("backend_final_total_discarded", extra={
                "item_id": item.id,
                "backend_final": str(item.final_retail_total),
                "production_status": item.production_status,
                "final_source": source.value,
            })
        logger.debug("line_price_resolved", extra={
            "item_id": item.id,
            "unit_price": str(unit_price),
            "initial_total": str(initial_total),
            "final_total": str(final_total),
            "final_source": source.value,
            "price_changed": changed,
        })

        return PriceResolution(
            item_id=item.id,
            unit_price=unit_price,
            initial_total=initial_total,
            final_total=final_total,
            price_changed=changed,
            final_source=source,
        )

    def resolve_order(self, items: Iterable[OrderLineItem]) -> OrderPriceSummary:
        """Resolve every line of an order and sum the totals."""
        lines = tuple(self.resolve(item) for item in items)
        initial_total = sum((line.initial_total for line in lines), ZERO)
        final_total = sum((line.final_total for line in lines), ZERO)
        summary = OrderPriceSummary(
            lines=lines,
            initial_total=initial_total,
            final_total=final_total,
            price_changed=price_changed(initial_total, final_total, self.change_threshold),
        )
        logger.info("order_price_resolved", extra={
            "line_count": len(lines),
            "initial_total": str(initial_total),
            "final_total": str(final_total),
            "price_changed": summary.price_changed,
        })
        return summary


# ---------------------------------------------------------------------------
# Role-aware list views
# ---------------------------------------------------------------------------


def display_amounts(item: OrderLineItem, view: PriceView) -> DisplayAmounts:
    """
    Unit price and line total for list screens.

    WHOLESALE (admin): wholesale unit -> generic unit; wholesale total ->
    total price -> unit x qty.  RETAIL: the same with retail snapshots.
    Missing values resolve to 0.
    """
    if view is PriceView.WHOLESALE:
        unit = _first(item.wholesale_unit_price, item.unit_price)
        total = _first(item.wholesale_total, item.total_price)
    else:
        unit = _first(item.retail_unit_price, item.unit_price)
        total = _first(item.retail_total, item.total_price)
    unit = unit if unit is not None else ZERO
    if total is None:
        total = unit * item.quantity_ordered
    return DisplayAmounts(unit=unit, total=total)


def order_display_totals(snapshot: OrderTotalsSnapshot, view: PriceView) -> DisplayTotals:
    """
    Order-level totals for a view: final falls back to the view's initial;
    anything missing resolves to 0.
    """
    if view is PriceView.WHOLESALE:
        initial = snapshot.initial_wholesale_total
        final = _first(snapshot.final_wholesale_total, initial)
    else:
        initial = snapshot.initial_retail_total
        final = _first(snapshot.final_retail_total, initial)
    return DisplayTotals(
        initial=initial if initial is not None else ZERO,
        final=final if final is not None else ZERO,
    )
