"""
Display helpers for resolved amounts.

Presentation only: the resolution functions return plain ``Decimal``
totals; ``PriceResolver.format`` is the configured entry point here.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Any

from kitchen_kernel.domain.values import to_decimal

DEFAULT_CURRENCY = "AED"


def format_currency(
    amount: Any,
    currency: str = DEFAULT_CURRENCY,
    min_fraction_digits: int = 0,
    max_fraction_digits: int = 2,
) -> str:
    """
    Format an amount with thousands separators and a trailing currency code.

    Rounds half-up to ``max_fraction_digits``, then strips trailing zeros
    down to ``min_fraction_digits``.

    >>> format_currency(Decimal("1234.50"))
    '1,234.5 AED'
    >>> format_currency(None)
    '-'
    """
    value = to_decimal(amount)
    if value is None:
        return "-"
    if min_fraction_digits > max_fraction_digits:
        raise ValueError("min_fraction_digits cannot exceed max_fraction_digits")

    # enough digits for the whole part plus the requested fraction
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + max_fraction_digits + 2)
        rounded = value.quantize(Decimal(1).scaleb(-max_fraction_digits), rounding=ROUND_HALF_UP)
    text = f"{rounded:,.{max_fraction_digits}f}"
    if max_fraction_digits > min_fraction_digits:
        whole, _, fraction = text.partition(".")
        fraction = fraction.rstrip("0")
        if len(fraction) < min_fraction_digits:
            fraction = fraction.ljust(min_fraction_digits, "0")
        text = f"{whole}.{fraction}" if fraction else whole
    if text.startswith("-") and to_decimal(text.replace(",", "")) == 0:
        text = text[1:]
    return f"{text} {currency}"
