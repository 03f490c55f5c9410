"""Constraint checks applied identically on create and update.

Every check raises ValidationError on the first violation; callers run the
whole validation before touching the store.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from quoteflow.errors import ValidationError
from quoteflow.schemas.quote import QuoteItemInput

MIN_DESCRIPTION_LENGTH = 3


def validate_item(item: QuoteItemInput) -> None:
    """Check a single line item."""
    if not (item.category_id or "").strip():
        raise ValidationError("Each item must have a category")
    if len((item.description or "").strip()) < MIN_DESCRIPTION_LENGTH:
        raise ValidationError(
            f"Item description must have at least {MIN_DESCRIPTION_LENGTH} characters"
        )
    if item.quantity is None or item.quantity <= Decimal("0"):
        raise ValidationError("Quantity must be greater than zero")


def validate_items(items: Sequence[QuoteItemInput] | None) -> None:
    """Check that the item list is non-empty and every item is valid."""
    if not items:
        raise ValidationError("A quote must have at least one item")
    for item in items:
        validate_item(item)


def validate_service(service_id: str | None) -> None:
    if not (service_id or "").strip():
        raise ValidationError("A quote must have a service selected")
