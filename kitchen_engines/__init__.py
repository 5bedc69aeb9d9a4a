"""
Module: kitchen_engines
Responsibility:
    Package entrypoint that re-exports all public symbols from the pure
    engine sub-modules.  This is the canonical import surface for callers.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import kitchen_kernel (and sibling engine modules).
    MUST NOT read configuration files; callers pass resolved settings in.

Invariants enforced:
    - Purity: engines never read the clock or perform I/O.
    - Decimal-only arithmetic for quantities and amounts.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Every engine invocation is traced via the ``@traced_engine`` decorator
    (see ``kitchen_engines.tracer``), emitting KITCHEN_ENGINE_TRACE log
    records with engine name, version, input fingerprint and duration.

Usage:
    from kitchen_engines.tracking import ProductionTracker
    from kitchen_engines.aggregate import aggregate_by_product
    from kitchen_engines.bucket_resolution import BucketResolver
    from kitchen_engines.pricing import PriceResolver
"""

from kitchen_kernel.logging_config import get_logger

logger = get_logger("engines")

from kitchen_engines.aggregate import (  # noqa: E402
    AggregateBucket,
    DailyProductionAggregate,
    aggregate_by_product,
    regroup,
)
from kitchen_engines.bucket_resolution import (  # noqa: E402
    DEFAULT_STRATEGIES,
    BucketMatch,
    BucketResolver,
    match_exact_key,
    match_sole_product_bucket,
    match_sole_unit_bucket,
)
from kitchen_engines.pricing import (  # noqa: E402
    DisplayAmounts,
    DisplayTotals,
    FinalTotalSource,
    OrderPriceSummary,
    PriceResolution,
    PriceResolver,
    display_amounts,
    is_stale_backend_zero,
    order_display_totals,
    price_changed,
    resolve_final_total,
    resolve_initial_total,
    resolve_unit_price,
)
from kitchen_engines.tracking import (  # noqa: E402
    DeductionPolicy,
    ProductionEvent,
    ProductionEventKind,
    ProductionTracker,
    deduction_quantity,
)

__all__ = [
    # Aggregate
    "AggregateBucket",
    "DailyProductionAggregate",
    "aggregate_by_product",
    "regroup",
    # Bucket resolution
    "DEFAULT_STRATEGIES",
    "BucketMatch",
    "BucketResolver",
    "match_exact_key",
    "match_sole_product_bucket",
    "match_sole_unit_bucket",
    # Tracking
    "DeductionPolicy",
    "ProductionEvent",
    "ProductionEventKind",
    "ProductionTracker",
    "deduction_quantity",
    # Pricing
    "DisplayAmounts",
    "DisplayTotals",
    "FinalTotalSource",
    "OrderPriceSummary",
    "PriceResolution",
    "PriceResolver",
    "display_amounts",
    "is_stale_backend_zero",
    "order_display_totals",
    "price_changed",
    "resolve_final_total",
    "resolve_initial_total",
    "resolve_unit_price",
]

logger.debug("engines_package_loaded", extra={
    "module_count": 4,
    "modules": ["aggregate", "bucket_resolution", "tracking", "pricing"],
})
