"""
Module: kitchen_engines.aggregate
Responsibility:
    Build and maintain the daily "remaining-to-produce" aggregate: one
    bucket per product / variant signature / unit, holding the quantity
    still owed today.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import kitchen_kernel.

Invariants enforced:
    - The aggregate is a cache.  Item records are authoritative; a fresh
      ``aggregate_by_product`` over the items always wins.
    - Bucket totals never go below zero (deductions clamp).
    - Grouping is order-independent; rendering order is alphabetical by
      product then variant (case-insensitive).

Failure modes:
    - KeyError from ``deduct`` when the key has no bucket.
    - InvalidAmountError from ``deduct`` on a negative quantity.

Usage:
    from kitchen_engines.aggregate import aggregate_by_product

    aggregate = aggregate_by_product(items)
    for product, variants in aggregate.grouped().items():
        for variant, bucket in variants.items():
            print(product, variant, bucket.remaining_total, bucket.unit.value)
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, replace
from decimal import Decimal

from kitchen_engines.tracer import traced_engine
from kitchen_kernel.domain.line_items import ProductionLineItem
from kitchen_kernel.domain.status import ProductGroup, ProductionUnit
from kitchen_kernel.domain.values import ZERO, ProductKey
from kitchen_kernel.exceptions import InvalidAmountError
from kitchen_kernel.logging_config import get_logger

logger = get_logger("engines.aggregate")


@dataclass(frozen=True)
class AggregateBucket:
    """
    One row of the daily production summary.

    Contract:
        Frozen; the owning aggregate replaces buckets on deduction.
    Guarantees:
        - ``remaining_total >= 0``.
    """

    key: ProductKey
    variant_name: str
    remaining_total: Decimal
    product_group: ProductGroup | None = None

    @property
    def product_name(self) -> str:
        return self.key.product_name

    @property
    def unit(self) -> ProductionUnit:
        return self.key.unit


def _display_order(bucket: AggregateBucket) -> tuple[str, str, str]:
    return (
        bucket.product_name.casefold(),
        bucket.variant_name.casefold(),
        bucket.unit.value,
    )


class DailyProductionAggregate:
    """
    Owned, mutable map of ``ProductKey -> AggregateBucket``.

    Passed by reference to the tracking engine, which is its single
    writer.  Readers use ``grouped()`` for display.
    """

    def __init__(self, buckets: Iterable[AggregateBucket] = ()):
        self._buckets: dict[ProductKey, AggregateBucket] = {}
        for bucket in buckets:
            self._buckets[bucket.key] = bucket

    def __len__(self) -> int:
        return len(self._buckets)

    def __contains__(self, key: object) -> bool:
        return key in self._buckets

    def __iter__(self) -> Iterator[AggregateBucket]:
        return iter(self.buckets())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DailyProductionAggregate):
            return NotImplemented
        return self._buckets == other._buckets

    def __repr__(self) -> str:
        return f"DailyProductionAggregate(buckets={len(self._buckets)}, total={self.grand_total()})"

    def buckets(self) -> tuple[AggregateBucket, ...]:
        """All buckets in display order."""
        return tuple(sorted(self._buckets.values(), key=_display_order))

    def keys(self) -> tuple[ProductKey, ...]:
        return tuple(b.key for b in self.buckets())

    def get(self, key: ProductKey) -> AggregateBucket | None:
        return self._buckets.get(key)

    def total_for(self, key: ProductKey) -> Decimal:
        bucket = self._buckets.get(key)
        return bucket.remaining_total if bucket is not None else ZERO

    def buckets_for_product(self, product_name: str) -> tuple[AggregateBucket, ...]:
        return tuple(b for b in self.buckets() if b.product_name == product_name)

    def grand_total(self) -> Decimal:
        return sum((b.remaining_total for b in self._buckets.values()), ZERO)

    def deduct(self, key: ProductKey, quantity: Decimal) -> Decimal:
        """
        Subtract ``quantity`` from a bucket, clamping at zero.

        Returns:
            The quantity actually removed (``<= quantity``).
        Raises:
            KeyError: if ``key`` has no bucket.
            InvalidAmountError: if ``quantity`` is negative.
        """
        if quantity < ZERO:
            raise InvalidAmountError("quantity", quantity)
        bucket = self._buckets[key]
        new_total = max(ZERO, bucket.remaining_total - quantity)
        removed = bucket.remaining_total - new_total
        self._buckets[key] = replace(bucket, remaining_total=new_total)
        logger.debug("aggregate_bucket_deducted", extra={
            "bucket": str(key),
            "requested": str(quantity),
            "removed": str(removed),
            "remaining_total": str(new_total),
        })
        return removed

    def replace_with(self, other: DailyProductionAggregate) -> None:
        """Replace every bucket with ``other``'s, keeping this instance."""
        self._buckets = dict(other._buckets)

    def copy(self) -> DailyProductionAggregate:
        return DailyProductionAggregate(self._buckets.values())

    def grouped(self) -> dict[str, dict[str, AggregateBucket]]:
        """
        Display view: product name -> variant name -> bucket.

        Both levels are in alphabetical (case-insensitive) order.  When two
        buckets of one product share a variant name but differ in unit, the
        unit is appended to the variant label.
        """
        groups: dict[str, dict[str, AggregateBucket]] = {}
        ordered = self.buckets()
        for bucket in ordered:
            variants = groups.setdefault(bucket.product_name, {})
            label = bucket.variant_name
            clash = sum(
                1
                for b in ordered
                if b.product_name == bucket.product_name
                and b.variant_name == bucket.variant_name
            )
            if clash > 1:
                label = f"{label} ({bucket.unit.value})" if label else bucket.unit.value
            variants[label] = bucket
        return groups


@traced_engine("aggregate", "1.0", fingerprint_fields=("items", "product_group"))
def aggregate_by_product(
    items: Iterable[ProductionLineItem],
    *,
    product_group: ProductGroup | None = None,
) -> DailyProductionAggregate:
    """
    Build the daily aggregate from line items.

    Preconditions:
        Items are validated ``ProductionLineItem`` records.
    Postconditions:
        - Only active items (non-terminal, ``remaining > 0``) contribute.
        - Each bucket total is the sum of its items' ``remaining``.
        - The bucket's variant label is the alphabetically first display
          name among its items, so input order does not matter.
        - With ``product_group`` set, items of other groups are ignored.
    """
    totals: dict[ProductKey, Decimal] = {}
    labels: dict[ProductKey, str] = {}
    groups: dict[ProductKey, ProductGroup | None] = {}
    considered = 0

    for item in items:
        considered += 1
        if product_group is not None and item.product_group != product_group:
            continue
        if item.is_terminal or item.remaining <= ZERO:
            continue
        key = item.product_key
        totals[key] = totals.get(key, ZERO) + item.remaining
        label = item.variant_name
        if key not in labels or (label.casefold(), label) < (labels[key].casefold(), labels[key]):
            labels[key] = label
        if groups.get(key) is None:
            groups[key] = item.product_group

    aggregate = DailyProductionAggregate(
        AggregateBucket(
            key=key,
            variant_name=labels[key],
            remaining_total=total,
            product_group=groups.get(key),
        )
        for key, total in totals.items()
    )

    logger.info("daily_aggregate_built", extra={
        "items_considered": considered,
        "bucket_count": len(aggregate),
        "grand_total": str(aggregate.grand_total()),
        "product_group": product_group.value if product_group else None,
    })
    return aggregate


def regroup(aggregate: DailyProductionAggregate) -> dict[str, dict[str, Decimal]]:
    """Totals by product name then variant label, summed across units."""
    result: dict[str, dict[str, Decimal]] = {}
    for bucket in aggregate.buckets():
        variants = result.setdefault(bucket.product_name, {})
        variants[bucket.variant_name] = variants.get(bucket.variant_name, ZERO) + bucket.remaining_total
    return result
