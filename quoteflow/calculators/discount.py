"""Cash-payment discount calculator."""

from __future__ import annotations

from decimal import Decimal

from quoteflow.schemas.calculators import DiscountInfo

_HUNDRED = Decimal("100")


def calculate_discount(total_value: Decimal, percent: Decimal | int) -> DiscountInfo | None:
    """Apply a percentage discount to a quote total.

    The percent is clamped to [0, 100]; a zero percent means no discount and
    returns None. Values are exact; round only when displaying them.

    Example: 10% of 1500 -> discount 150, final 1350.
    """
    pct = min(max(Decimal(str(percent)), Decimal("0")), _HUNDRED)
    if pct == 0:
        return None
    discount_value = total_value * pct / _HUNDRED
    return DiscountInfo(
        percent=pct,
        discount_value=discount_value,
        final_value=total_value - discount_value,
    )
