"""
Typed Exception Hierarchy for the Kitchen Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Production and pricing screens must react to errors precisely. A chef who
types a too-short note needs a different message than one who tries to
complete an item that was already cancelled. Parsing exception messages for
that is fragile, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        tracker.record_partial_production(item_id, amount, notes)
    except AmountExceedsRemainingError as e:
        prompt_completion(e.item_id, e.remaining)
    except ValidationError as e:
        api_response(code=e.code, message=str(e))

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    KitchenKernelError (base)
    |
    +-- ValidationError
    |   +-- InvalidAmountError
    |   +-- AmountExceedsRemainingError
    |   +-- InsufficientNotesError
    |   +-- MissingReasonError
    |   +-- InvalidStatusValueError
    |
    +-- InvalidStateTransitionError
    +-- LineItemNotFoundError
    +-- ConfigError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Validation      | INVALID_AMOUNT              | Amount not finite or not > 0
                | AMOUNT_EXCEEDS_REMAINING    | Partial amount >= remaining quantity
                | INSUFFICIENT_NOTES          | Notes shorter than the minimum length
                | MISSING_REASON              | Cancellation without a reason
                | INVALID_STATUS_VALUE        | Unknown status / unit / group string
----------------|-----------------------------|-----------------------------------------
State           | INVALID_STATE_TRANSITION    | Operation illegal from current status
----------------|-----------------------------|-----------------------------------------
Lookup          | LINE_ITEM_NOT_FOUND         | Item id not tracked
----------------|-----------------------------|-----------------------------------------
Config          | CONFIG_ERROR                | Engine policy file failed validation

All errors are local and synchronous. None of them is retryable by the
engine: they signal a caller bug or a stale-state race and are surfaced to
the caller unchanged. A raising operation never leaves a partial mutation.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any


class KitchenKernelError(Exception):
    """
    Base exception for all kitchen kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "KITCHEN_KERNEL_ERROR"


# Validation


class ValidationError(KitchenKernelError):
    """Bad input to an engine operation."""

    code: str = "VALIDATION_ERROR"


class InvalidAmountError(ValidationError):
    """Amount is not a finite number greater than zero."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = value
        super().__init__(f"{field} must be a finite number greater than 0, got {value!r}")


class AmountExceedsRemainingError(ValidationError):
    """Partial production amount is not strictly below the remaining quantity."""

    code: str = "AMOUNT_EXCEEDS_REMAINING"

    def __init__(self, item_id: str, amount: Decimal, remaining: Decimal):
        self.item_id = item_id
        self.amount = amount
        self.remaining = remaining
        super().__init__(
            f"Partial amount {amount} for item {item_id} must be less than "
            f"remaining {remaining}; record a completion instead"
        )


class InsufficientNotesError(ValidationError):
    """Production notes are shorter than the required minimum."""

    code: str = "INSUFFICIENT_NOTES"

    def __init__(self, item_id: str, length: int, min_length: int):
        self.item_id = item_id
        self.length = length
        self.min_length = min_length
        super().__init__(
            f"Notes for item {item_id} must be at least {min_length} characters, "
            f"got {length}"
        )


class MissingReasonError(ValidationError):
    """Cancellation requested without a reason."""

    code: str = "MISSING_REASON"

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Cancellation of item {item_id} requires a reason")


class InvalidStatusValueError(ValidationError):
    """A status, unit or group string is not a known member."""

    code: str = "INVALID_STATUS_VALUE"

    def __init__(self, kind: str, value: Any):
        self.kind = kind
        self.value = value
        super().__init__(f"Unknown {kind}: {value!r}")


# State


class InvalidStateTransitionError(KitchenKernelError):
    """Operation is not legal from the item's current production status."""

    code: str = "INVALID_STATE_TRANSITION"

    def __init__(self, item_id: str, current_status: str, operation: str):
        self.item_id = item_id
        self.current_status = current_status
        self.operation = operation
        super().__init__(
            f"Cannot {operation} item {item_id} in status {current_status}"
        )


class LineItemNotFoundError(KitchenKernelError):
    """Item id is not tracked by the engine."""

    code: str = "LINE_ITEM_NOT_FOUND"

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Line item not found: {item_id}")


class ConfigError(KitchenKernelError):
    """Engine policy configuration failed validation."""

    code: str = "CONFIG_ERROR"

    def __init__(self, source: str, errors: list[str]):
        self.source = source
        self.errors = list(errors)
        super().__init__(
            f"Invalid engine configuration {source}: " + "; ".join(self.errors)
        )
