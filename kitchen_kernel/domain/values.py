"""
Values -- numeric coercion and product identity.

Responsibility:
    Converts backend numbers into ``Decimal`` and derives the composite
    key that groups line items into daily production buckets.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - All quantities and amounts are ``Decimal``; floats are converted via
      ``str()`` so that 9.99 stays exactly 9.99.
    - NaN and infinities never leave this module as values.
    - Variant signatures are order-, case- and whitespace-insensitive.

Failure modes:
    - ``to_decimal`` never raises; unusable input becomes ``None``.
    - ``require_finite_decimal`` raises ``InvalidAmountError``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from kitchen_kernel.domain.status import ProductionUnit
from kitchen_kernel.exceptions import InvalidAmountError

ZERO = Decimal("0")
ONE = Decimal("1")


def to_decimal(value: Any) -> Decimal | None:
    """
    Nullable coercion for snapshot fields.

    Postconditions:
        Returns a finite ``Decimal`` for ints, floats, Decimals and numeric
        strings; ``None`` for None, blanks, booleans, unparsable text, NaN
        and infinities.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        text = str(value).strip()
        if not text:
            return None
        try:
            result = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None
    if not result.is_finite():
        return None
    return result


def require_finite_decimal(value: Any, field: str) -> Decimal:
    """
    Strict coercion for engine inputs.

    Raises:
        InvalidAmountError: if ``value`` cannot be read as a finite number.
    """
    result = to_decimal(value)
    if result is None:
        raise InvalidAmountError(field, value)
    return result


def normalize_variant(options: Iterable[str] | str | None) -> str:
    """
    Normalized variant signature.

    Accepts option names or a comma-joined string.  Names are trimmed,
    lower-cased, blanks dropped, then sorted and joined with ``,``.

    >>> normalize_variant(["Pistachio ", "big tray"])
    'big tray,pistachio'
    """
    if options is None:
        return ""
    if isinstance(options, str):
        parts = options.split(",")
    else:
        parts = [part for option in options for part in str(option).split(",")]
    cleaned = sorted(p.strip().lower() for p in parts if p.strip())
    return ",".join(cleaned)


@dataclass(frozen=True, slots=True)
class ProductKey:
    """Composite identity of a production bucket: product + variant + unit."""

    product_name: str
    variant_signature: str
    unit: ProductionUnit

    @classmethod
    def of(
        cls,
        product_name: str,
        options: Iterable[str] | str | None,
        unit: ProductionUnit,
    ) -> ProductKey:
        return cls(
            product_name=product_name,
            variant_signature=normalize_variant(options),
            unit=unit,
        )

    def __str__(self) -> str:
        return f"{self.product_name}[{self.variant_signature}]/{self.unit.value}"
