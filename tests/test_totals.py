"""Tests for item and aggregate totals."""

from __future__ import annotations

from decimal import Decimal

from quoteflow.quotes.totals import compute_item, compute_items, sum_totals
from quoteflow.schemas.quote import QuoteItem, QuoteItemInput


def _item(quantity: str, labor: str, material: str, description: str = "Hose 15m") -> QuoteItemInput:
    return QuoteItemInput(
        category_id="cat-1",
        description=description,
        quantity=Decimal(quantity),
        unit_labor_price=Decimal(labor),
        unit_material_price=Decimal(material),
    )


class TestComputeItem:
    def test_products(self):
        item = compute_item(_item("3", "10.50", "99.90"))
        assert isinstance(item, QuoteItem)
        assert item.labor_total == Decimal("31.50")
        assert item.material_total == Decimal("299.70")
        assert item.total == Decimal("331.20")

    def test_total_equals_labor_plus_material(self):
        item = compute_item(_item("0.333", "12.345", "0.001"))
        assert item.total == item.labor_total + item.material_total

    def test_description_trimmed(self):
        item = compute_item(_item("1", "1", "1", description="  Smoke detector  "))
        assert item.description == "Smoke detector"

    def test_caller_totals_ignored(self):
        raw = QuoteItemInput.model_validate({
            "category_id": "cat-1",
            "description": "Sprinkler head",
            "quantity": "2",
            "unit_labor_price": "5",
            "unit_material_price": "15",
            "total": "999999",
        })
        assert compute_item(raw).total == Decimal("40")


class TestSumTotals:
    def test_aggregates_match_items(self):
        items = compute_items([_item("2", "50", "200"), _item("1", "30", "0")])
        totals = sum_totals(items)
        assert totals.labor_total == Decimal("130")
        assert totals.material_total == Decimal("400")
        assert totals.total_value == Decimal("530")
        assert totals.total_value == totals.labor_total + totals.material_total

    def test_empty(self):
        totals = sum_totals([])
        assert totals.total_value == Decimal("0")
