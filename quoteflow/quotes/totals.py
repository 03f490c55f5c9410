"""Item and aggregate totals.

Exact Decimal arithmetic with no rounding, so ``total`` always equals
``labor_total + material_total`` for every item and for the quote.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import Decimal
from typing import NamedTuple

from quoteflow.schemas.quote import QuoteItem, QuoteItemInput

ZERO = Decimal("0")


class QuoteTotals(NamedTuple):
    labor_total: Decimal
    material_total: Decimal
    total_value: Decimal


def compute_item(item: QuoteItemInput) -> QuoteItem:
    """Derive the totals of one item from quantity and unit prices."""
    labor_total = item.quantity * item.unit_labor_price
    material_total = item.quantity * item.unit_material_price
    return QuoteItem(
        stage=item.stage,
        category_id=item.category_id,
        category_name=item.category_name,
        description=item.description.strip(),
        unit=item.unit,
        quantity=item.quantity,
        unit_labor_price=item.unit_labor_price,
        unit_material_price=item.unit_material_price,
        labor_total=labor_total,
        material_total=material_total,
        total=item.quantity * (item.unit_labor_price + item.unit_material_price),
    )


def compute_items(items: Iterable[QuoteItemInput]) -> list[QuoteItem]:
    return [compute_item(item) for item in items]


def sum_totals(items: Sequence[QuoteItem]) -> QuoteTotals:
    """Aggregate already-computed item totals."""
    labor = sum((item.labor_total for item in items), start=ZERO)
    material = sum((item.material_total for item in items), start=ZERO)
    return QuoteTotals(
        labor_total=labor,
        material_total=material,
        total_value=sum((item.total for item in items), start=ZERO),
    )
