"""
Module: kitchen_engines.tracking
Responsibility:
    Production state machine for line items and reconciliation of the
    shared daily aggregate when production events are recorded.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import kitchen_kernel and sibling engine modules.
    Persistence and retries belong to the caller.

Invariants enforced:
    - Legal transitions only: PENDING / PARTIALLY_COMPLETED -> COMPLETED,
      CANCELLED or PARTIALLY_COMPLETED.  COMPLETED and CANCELLED are
      terminal.
    - ``quantity_produced`` never exceeds ``quantity_ordered``: a partial
      amount must be strictly below the remaining quantity, so the final
      increment always goes through ``record_completion``.
    - All-or-nothing: every check runs before any mutation, so a rejected
      call leaves the item and the aggregate untouched.
    - Single writer: events for one item are serialised by the caller.

Failure modes:
    - LineItemNotFoundError for unknown item ids.
    - InvalidStateTransitionError from a terminal state.
    - InvalidAmountError, AmountExceedsRemainingError,
      InsufficientNotesError, MissingReasonError for bad input.

Usage:
    from kitchen_engines.tracking import ProductionTracker

    tracker = ProductionTracker(items)
    tracker.record_partial_production("item-1", Decimal("2"), "oven broke down")
    tracker.record_completion("item-2")
    tracker.aggregate.grouped()
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any

from kitchen_engines.aggregate import DailyProductionAggregate, aggregate_by_product
from kitchen_engines.bucket_resolution import BucketResolver
from kitchen_engines.tracer import traced_engine
from kitchen_kernel.domain.line_items import ProductionLineItem
from kitchen_kernel.domain.status import ProductionStatus
from kitchen_kernel.domain.values import ZERO, ProductKey, require_finite_decimal
from kitchen_kernel.exceptions import (
    AmountExceedsRemainingError,
    InsufficientNotesError,
    InvalidAmountError,
    InvalidStateTransitionError,
    LineItemNotFoundError,
    MissingReasonError,
)
from kitchen_kernel.logging_config import LogContext, get_logger

if TYPE_CHECKING:
    from kitchen_config.schema import EngineConfig

logger = get_logger("engines.tracking")

DEFAULT_MIN_NOTE_LENGTH = 5


class DeductionPolicy(str, Enum):
    """How much a production event removes from the daily aggregate."""

    OBSERVED = "observed"  # full ordered qty on first partial, none after
    INCREMENTAL = "incremental"  # partial amount each time


class ProductionEventKind(str, Enum):
    COMPLETION = "completion"
    CANCELLATION = "cancellation"
    PARTIAL_PRODUCTION = "partial_production"


@dataclass(frozen=True)
class ProductionEvent:
    """
    Record of one accepted production event.

    ``bucket`` is None when nothing was deducted or no bucket matched.
    """

    item_id: str
    kind: ProductionEventKind
    from_status: ProductionStatus
    to_status: ProductionStatus
    item: ProductionLineItem
    amount: Decimal | None = None
    deducted: Decimal = ZERO
    bucket: ProductKey | None = None
    bucket_strategy: str | None = None


def _clean_text(value: Any) -> str:
    """Trimmed free text; None is empty, other values use their str()."""
    if value is None:
        return ""
    return str(value).strip()


def deduction_quantity(
    policy: DeductionPolicy,
    kind: ProductionEventKind,
    before: ProductionLineItem,
    amount: Decimal | None = None,
) -> Decimal:
    """
    Quantity to remove from the item's bucket for one event.

    | event          | OBSERVED                        | INCREMENTAL |
    |----------------|---------------------------------|-------------|
    | completion     | remaining                       | remaining   |
    | cancellation   | ordered                         | remaining   |
    | partial        | ordered if PENDING before, else 0 | amount    |
    """
    if kind is ProductionEventKind.COMPLETION:
        return before.remaining
    if kind is ProductionEventKind.CANCELLATION:
        if policy is DeductionPolicy.OBSERVED:
            return before.quantity_ordered
        return before.remaining
    if policy is DeductionPolicy.OBSERVED:
        if before.production_status is ProductionStatus.PENDING:
            return before.quantity_ordered
        return ZERO
    return amount if amount is not None else ZERO


class ProductionTracker:
    """
    Owns the item registry and the daily aggregate it keeps in step.

    Contract:
        Deterministic, synchronous, no I/O.  The aggregate is passed by
        reference (or built from ``items``) and only this tracker writes it.
    Guarantees:
        - Accepted events replace the item record and deduct from at most
          one bucket.
        - Rejected events raise before touching any state.
    Non-goals:
        - Does not persist items or retry upstream calls.
        - Does not serialise concurrent events for the same item.
    """

    def __init__(
        self,
        items: Iterable[ProductionLineItem],
        aggregate: DailyProductionAggregate | None = None,
        *,
        min_note_length: int = DEFAULT_MIN_NOTE_LENGTH,
        deduction_policy: DeductionPolicy | str = DeductionPolicy.OBSERVED,
        bucket_resolver: BucketResolver | None = None,
    ):
        self._items: dict[str, ProductionLineItem] = {}
        for item in items:
            if item.id in self._items:
                raise ValueError(f"Duplicate line item id: {item.id}")
            self._items[item.id] = item
        self._aggregate = (
            aggregate if aggregate is not None else aggregate_by_product(self._items.values())
        )
        self._min_note_length = min_note_length
        self._policy = DeductionPolicy(deduction_policy)
        self._resolver = bucket_resolver or BucketResolver()

    @classmethod
    def from_config(
        cls,
        items: Iterable[ProductionLineItem],
        config: EngineConfig,
        aggregate: DailyProductionAggregate | None = None,
    ) -> ProductionTracker:
        """Tracker using the tracking section of a loaded engine config."""
        return cls(
            items,
            aggregate,
            min_note_length=config.tracking.min_note_length,
            deduction_policy=config.tracking.deduction_policy,
        )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @property
    def aggregate(self) -> DailyProductionAggregate:
        return self._aggregate

    @property
    def deduction_policy(self) -> DeductionPolicy:
        return self._policy

    def items(self) -> tuple[ProductionLineItem, ...]:
        return tuple(self._items.values())

    def get(self, item_id: str) -> ProductionLineItem:
        try:
            return self._items[item_id]
        except KeyError:
            raise LineItemNotFoundError(item_id) from None

    def remaining_for(self, item_id: str) -> Decimal:
        return self.get(item_id).remaining

    def recompute(self) -> DailyProductionAggregate:
        """Rebuild the aggregate from the item records, in place."""
        self._aggregate.replace_with(aggregate_by_product(self._items.values()))
        return self._aggregate

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    @traced_engine("tracking", "1.0", fingerprint_fields=("item_id",))
    def record_completion(self, item_id: str) -> ProductionEvent:
        """
        Mark an item COMPLETED.

        Preconditions:
            Item status is PENDING or PARTIALLY_COMPLETED.
        Postconditions:
            Status is COMPLETED; the item's remaining quantity is deducted
            from its bucket.
        Raises:
            LineItemNotFoundError, InvalidStateTransitionError.
        """
        before = self.get(item_id)
        self._require_open(before, "complete")
        after = before.evolve(production_status=ProductionStatus.COMPLETED)
        return self._commit(before, after, ProductionEventKind.COMPLETION)

    @traced_engine("tracking", "1.0", fingerprint_fields=("item_id", "reason"))
    def record_cancellation(self, item_id: str, reason: str) -> ProductionEvent:
        """
        Mark an item CANCELLED with a reason.

        Postconditions:
            Status is CANCELLED, ``production_notes`` holds the reason, and
            the item is permanently out of the "still owed" totals.
        Raises:
            LineItemNotFoundError, MissingReasonError,
            InvalidStateTransitionError.
        """
        before = self.get(item_id)
        cleaned = _clean_text(reason)
        if not cleaned:
            self._reject(before, "cancellation_rejected", "missing_reason")
            raise MissingReasonError(item_id)
        self._require_open(before, "cancel")
        after = before.evolve(
            production_status=ProductionStatus.CANCELLED,
            production_notes=cleaned,
        )
        return self._commit(before, after, ProductionEventKind.CANCELLATION)

    @traced_engine("tracking", "1.0", fingerprint_fields=("item_id", "amount", "notes"))
    def record_partial_production(
        self, item_id: str, amount: Any, notes: str
    ) -> ProductionEvent:
        """
        Record that part of an item was produced.

        Preconditions:
            - Item status is PENDING or PARTIALLY_COMPLETED.
            - ``0 < amount < remaining``, amount finite.
            - ``notes.strip()`` has at least ``min_note_length`` characters.
        Postconditions:
            ``quantity_produced += amount``; status PARTIALLY_COMPLETED;
            aggregate deducted per the deduction policy.
        Raises:
            LineItemNotFoundError, InvalidStateTransitionError,
            InvalidAmountError, AmountExceedsRemainingError,
            InsufficientNotesError.
        """
        before = self.get(item_id)
        self._require_open(before, "record partial production for")

        try:
            value = require_finite_decimal(amount, "amount")
        except InvalidAmountError:
            self._reject(before, "partial_production_rejected", "invalid_amount", amount=amount)
            raise
        if value <= ZERO:
            self._reject(before, "partial_production_rejected", "invalid_amount", amount=amount)
            raise InvalidAmountError("amount", amount)

        remaining = before.remaining
        if value >= remaining:
            self._reject(
                before, "partial_production_rejected", "amount_exceeds_remaining",
                amount=value, remaining=remaining,
            )
            raise AmountExceedsRemainingError(item_id, value, remaining)

        cleaned = _clean_text(notes)
        if len(cleaned) < self._min_note_length:
            self._reject(before, "partial_production_rejected", "insufficient_notes")
            raise InsufficientNotesError(item_id, len(cleaned), self._min_note_length)

        after = before.evolve(
            quantity_produced=before.quantity_produced + value,
            production_status=ProductionStatus.PARTIALLY_COMPLETED,
            production_notes=cleaned,
        )
        return self._commit(before, after, ProductionEventKind.PARTIAL_PRODUCTION, value)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_open(self, item: ProductionLineItem, operation: str) -> None:
        if item.is_terminal:
            self._reject(
                item, "transition_rejected", "terminal_status", operation=operation,
            )
            raise InvalidStateTransitionError(
                item.id, item.production_status.value, operation
            )

    def _reject(self, item: ProductionLineItem, event: str, reason: str, **fields: Any) -> None:
        logger.warning(event, extra={
            "item_id": item.id,
            "reason": reason,
            "status": item.production_status.value,
            **{k: str(v) for k, v in fields.items()},
        })

    def _commit(
        self,
        before: ProductionLineItem,
        after: ProductionLineItem,
        kind: ProductionEventKind,
        amount: Decimal | None = None,
    ) -> ProductionEvent:
        with LogContext.bind(item_id=before.id, order_id=before.order_id):
            quantity = deduction_quantity(self._policy, kind, before, amount)
            bucket: ProductKey | None = None
            strategy: str | None = None
            deducted = ZERO
            if quantity > ZERO:
                match = self._resolver.resolve(self._aggregate, before)
                if match.matched:
                    bucket, strategy = match.key, match.strategy
                    deducted = self._aggregate.deduct(match.key, quantity)

            self._items[after.id] = after

            logger.info(f"{kind.value}_recorded", extra={
                "from_status": before.production_status.value,
                "to_status": after.production_status.value,
                "amount": str(amount) if amount is not None else None,
                "quantity_produced": str(after.quantity_produced),
                "deduction_requested": str(quantity),
                "deducted": str(deducted),
                "bucket": str(bucket) if bucket else None,
                "deduction_policy": self._policy.value,
            })

        return ProductionEvent(
            item_id=after.id,
            kind=kind,
            from_status=before.production_status,
            to_status=after.production_status,
            item=after,
            amount=amount,
            deducted=deducted,
            bucket=bucket,
            bucket_strategy=strategy,
        )
