"""Tests for item and service validation rules."""

from __future__ import annotations

from decimal import Decimal

import pytest

from quoteflow.errors import ValidationError
from quoteflow.quotes.validation import validate_item, validate_items, validate_service
from quoteflow.schemas.quote import QuoteItemInput


def _item(**overrides) -> QuoteItemInput:
    data = {
        "category_id": "cat-1",
        "category_name": "Extinguishers",
        "description": "ABC extinguisher 6kg",
        "unit": "un",
        "quantity": Decimal("2"),
        "unit_labor_price": Decimal("50"),
        "unit_material_price": Decimal("200"),
    }
    data.update(overrides)
    return QuoteItemInput(**data)


class TestValidateItem:
    def test_valid_item_passes(self):
        validate_item(_item())

    def test_missing_category(self):
        with pytest.raises(ValidationError, match="category"):
            validate_item(_item(category_id=""))

    def test_blank_category(self):
        with pytest.raises(ValidationError, match="category"):
            validate_item(_item(category_id="   "))

    def test_short_description_after_trim(self):
        with pytest.raises(ValidationError, match="at least 3 characters"):
            validate_item(_item(description="  ab  "))

    def test_three_character_description_is_enough(self):
        validate_item(_item(description=" abc "))

    @pytest.mark.parametrize("quantity", [Decimal("0"), Decimal("-1")])
    def test_non_positive_quantity(self, quantity):
        with pytest.raises(ValidationError, match="Quantity"):
            validate_item(_item(quantity=quantity))


class TestValidateItems:
    def test_empty_list(self):
        with pytest.raises(ValidationError, match="at least one item"):
            validate_items([])

    def test_none(self):
        with pytest.raises(ValidationError, match="at least one item"):
            validate_items(None)

    def test_first_violation_wins(self):
        items = [_item(), _item(category_id=""), _item(quantity=Decimal("0"))]
        with pytest.raises(ValidationError, match="category"):
            validate_items(items)


class TestValidateService:
    def test_present(self):
        validate_service("svc-1")

    @pytest.mark.parametrize("service_id", [None, "", "  "])
    def test_missing(self, service_id):
        with pytest.raises(ValidationError, match="service"):
            validate_service(service_id)
