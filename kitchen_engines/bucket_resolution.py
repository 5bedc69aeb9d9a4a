"""
Module: kitchen_engines.bucket_resolution
Responsibility:
    Find the aggregate bucket a line item's deduction belongs to, even when
    the item's variant text drifted from how the aggregate was built.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Strategies run in a fixed order and the first match wins:
      exact key -> sole bucket for the product -> sole bucket for the
      product and unit -> no match.
    - No match is not an error.  A missed deduction is preferred over a
      wrong one, since the aggregate is advisory.

Usage:
    from kitchen_engines.bucket_resolution import BucketResolver

    match = BucketResolver().resolve(aggregate, item)
    if match.key is not None:
        aggregate.deduct(match.key, quantity)
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from kitchen_engines.aggregate import DailyProductionAggregate
from kitchen_kernel.domain.line_items import ProductionLineItem
from kitchen_kernel.domain.values import ProductKey
from kitchen_kernel.logging_config import get_logger

logger = get_logger("engines.bucket_resolution")

BucketStrategy = Callable[[DailyProductionAggregate, ProductionLineItem], "ProductKey | None"]


def match_exact_key(
    aggregate: DailyProductionAggregate, item: ProductionLineItem
) -> ProductKey | None:
    """Same product name and normalized variant signature.

    When the signature exists under several units, the item's own unit is
    required to break the tie.
    """
    candidates = [
        b.key
        for b in aggregate.buckets_for_product(item.product_name)
        if b.key.variant_signature == item.variant_signature
    ]
    if len(candidates) == 1:
        return candidates[0]
    for key in candidates:
        if key.unit == item.unit:
            return key
    return None


def match_sole_product_bucket(
    aggregate: DailyProductionAggregate, item: ProductionLineItem
) -> ProductKey | None:
    """The only bucket recorded for the item's product name."""
    same_product = aggregate.buckets_for_product(item.product_name)
    if len(same_product) == 1:
        return same_product[0].key
    return None


def match_sole_unit_bucket(
    aggregate: DailyProductionAggregate, item: ProductionLineItem
) -> ProductKey | None:
    """The only bucket for the item's product name in the item's unit."""
    narrowed = [
        b.key for b in aggregate.buckets_for_product(item.product_name) if b.unit == item.unit
    ]
    if len(narrowed) == 1:
        return narrowed[0]
    return None


DEFAULT_STRATEGIES: tuple[tuple[str, BucketStrategy], ...] = (
    ("exact_key", match_exact_key),
    ("sole_product_bucket", match_sole_product_bucket),
    ("sole_unit_bucket", match_sole_unit_bucket),
)


@dataclass(frozen=True)
class BucketMatch:
    """Outcome of bucket resolution; ``key`` is None when every tier missed."""

    key: ProductKey | None
    strategy: str | None

    @property
    def matched(self) -> bool:
        return self.key is not None


class BucketResolver:
    """Runs bucket strategies in order; first non-None key wins."""

    def __init__(
        self,
        strategies: Sequence[tuple[str, BucketStrategy]] = DEFAULT_STRATEGIES,
    ):
        self._strategies = tuple(strategies)

    @property
    def strategy_names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self._strategies)

    def resolve(
        self, aggregate: DailyProductionAggregate, item: ProductionLineItem
    ) -> BucketMatch:
        for name, strategy in self._strategies:
            key = strategy(aggregate, item)
            if key is not None:
                if name != self._strategies[0][0]:
                    logger.info("bucket_resolved_by_fallback", extra={
                        "item_id": item.id,
                        "strategy": name,
                        "bucket": str(key),
                        "item_key": str(item.product_key),
                    })
                return BucketMatch(key=key, strategy=name)

        logger.warning("bucket_unresolved", extra={
            "item_id": item.id,
            "item_key": str(item.product_key),
            "product_bucket_count": len(aggregate.buckets_for_product(item.product_name)),
        })
        return BucketMatch(key=None, strategy=None)
