"""Diff-gated update policy.

Builds the minimal set of field writes an update needs by comparing each
requested field with the stored quote. Equality is spelled out per type
(dates by instant, items field by field, plans and discounts by value) so
that a request which round-trips the stored state produces no write at all.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from quoteflow.errors import ValidationError
from quoteflow.models.enums import PaymentCondition
from quoteflow.quotes.patch import Clear, FieldUpdate, Keep, QuotePatch, SetTo
from quoteflow.quotes.totals import compute_items, sum_totals
from quoteflow.quotes.validation import validate_items, validate_service
from quoteflow.schemas.calculators import DiscountInfo, InstallmentOption, InstallmentPlan
from quoteflow.schemas.quote import Quote, QuoteItem
from quoteflow.schemas.types import to_utc_datetime

# Trimmed on input; an empty string means "clear this field".
TEXT_FIELDS = (
    "notes",
    "consultant",
    "contact",
    "email",
    "phone",
    "service_address",
    "installment_text",
)
SCALAR_FIELDS = (
    "service_id",
    "service_description",
    "execution_deadline_days",
    "inspection_deadline_days",
    "show_detailed_values",
)
REQUIRED_FIELDS = frozenset(
    {"items", "service_id", "show_detailed_values", "expiry_date"}
)


# ── Equality ─────────────────────────────────────────────────────────


def values_equal(a: Any, b: Any) -> bool:
    """Primitives, Decimals and str enums by value; None only equals None."""
    if a is None or b is None:
        return a is None and b is None
    return a == b


def dates_equal(a: datetime | None, b: datetime | None) -> bool:
    if a is None or b is None:
        return a is None and b is None
    return to_utc_datetime(a) == to_utc_datetime(b)


def id_lists_equal(a: Sequence[str] | None, b: Sequence[str] | None) -> bool:
    left, right = list(a or []), list(b or [])
    return len(left) == len(right) and all(x == y for x, y in zip(left, right))


def item_equal(a: QuoteItem, b: QuoteItem) -> bool:
    return (
        values_equal(a.stage, b.stage)
        and a.category_id == b.category_id
        and a.category_name == b.category_name
        and a.description == b.description
        and a.unit == b.unit
        and a.quantity == b.quantity
        and a.unit_labor_price == b.unit_labor_price
        and a.unit_material_price == b.unit_material_price
        and a.labor_total == b.labor_total
        and a.material_total == b.material_total
        and a.total == b.total
    )


def items_equal(a: Sequence[QuoteItem], b: Sequence[QuoteItem]) -> bool:
    return len(a) == len(b) and all(item_equal(x, y) for x, y in zip(a, b))


def _option_equal(a: InstallmentOption, b: InstallmentOption) -> bool:
    return (
        a.installment_number == b.installment_number
        and a.value == b.value
        and a.has_interest == b.has_interest
        and a.rate == b.rate
        and a.plan_total == b.plan_total
        and a.below_minimum == b.below_minimum
    )


def plans_equal(a: InstallmentPlan | None, b: InstallmentPlan | None) -> bool:
    if a is None or b is None:
        return a is None and b is None
    return (
        a.entry_percent == b.entry_percent
        and a.entry_value == b.entry_value
        and a.remaining_value == b.remaining_value
        and len(a.options) == len(b.options)
        and all(_option_equal(x, y) for x, y in zip(a.options, b.options))
        and sorted(a.selected_installments or []) == sorted(b.selected_installments or [])
    )


def discounts_equal(a: DiscountInfo | None, b: DiscountInfo | None) -> bool:
    if a is None or b is None:
        return a is None and b is None
    return (
        a.percent == b.percent
        and a.discount_value == b.discount_value
        and a.final_value == b.final_value
    )


def normalize_discount(discount: DiscountInfo | None) -> DiscountInfo | None:
    """A discount only exists when its percent is above zero."""
    if discount is None or discount.percent <= 0:
        return None
    return discount


def normalize_text(value: str | None) -> str | None:
    stripped = (value or "").strip()
    return stripped or None


# ── Patch building ───────────────────────────────────────────────────


def build_update(current: Quote, patch: QuotePatch) -> dict[str, Any]:
    """Return the single write an update needs, or {} when nothing changed.

    The returned mapping already carries ``version = current.version + 1``.

    Raises:
        ValidationError: A required field was cleared, or new items/service
            fail validation.
    """
    for name in patch.requested_fields():
        if name in REQUIRED_FIELDS and isinstance(getattr(patch, name), Clear):
            raise ValidationError(f"Field '{name}' cannot be cleared")

    changes: dict[str, Any] = {}

    if isinstance(patch.items, SetTo):
        validate_items(patch.items.value)
        items = compute_items(patch.items.value)
        if not items_equal(items, current.items):
            changes["items"] = items
            changes.update(sum_totals(items)._asdict())

    if isinstance(patch.service_id, SetTo):
        validate_service(patch.service_id.value)

    for name in SCALAR_FIELDS:
        _diff_scalar(changes, name, getattr(patch, name), getattr(current, name))

    if isinstance(patch.limitation_ids, SetTo):
        if not id_lists_equal(patch.limitation_ids.value, current.limitation_ids):
            changes["limitation_ids"] = list(patch.limitation_ids.value)
    elif isinstance(patch.limitation_ids, Clear) and current.limitation_ids:
        changes["limitation_ids"] = []

    _diff_payment_condition(changes, patch.payment_condition, current)

    if isinstance(patch.installment_plan, SetTo):
        if not plans_equal(patch.installment_plan.value, current.installment_plan):
            changes["installment_plan"] = patch.installment_plan.value
    elif isinstance(patch.installment_plan, Clear) and current.installment_plan is not None:
        changes["installment_plan"] = None

    if not isinstance(patch.discount, Keep):
        requested = patch.discount.value if isinstance(patch.discount, SetTo) else None
        discount = normalize_discount(requested)
        if not discounts_equal(discount, current.discount):
            changes["discount"] = discount

    if isinstance(patch.expiry_date, SetTo):
        if not dates_equal(patch.expiry_date.value, current.expiry_date):
            changes["expiry_date"] = to_utc_datetime(patch.expiry_date.value)

    for name in TEXT_FIELDS:
        _diff_text(changes, name, getattr(patch, name), getattr(current, name))

    if not changes:
        return {}
    changes["version"] = current.version + 1
    return changes


def _diff_scalar(changes: dict[str, Any], name: str, update: FieldUpdate[Any], stored: Any) -> None:
    if isinstance(update, SetTo):
        if not values_equal(update.value, stored):
            changes[name] = update.value
    elif isinstance(update, Clear) and stored is not None:
        changes[name] = None


def _diff_text(changes: dict[str, Any], name: str, update: FieldUpdate[str], stored: str | None) -> None:
    if isinstance(update, Keep):
        return
    new_value = normalize_text(update.value) if isinstance(update, SetTo) else None
    if new_value != normalize_text(stored):
        changes[name] = new_value


def _diff_payment_condition(
    changes: dict[str, Any],
    update: FieldUpdate[PaymentCondition],
    current: Quote,
) -> None:
    """Switching condition drops the payment data that no longer applies.

    Clearing the condition drops all of it, as on a quote created without one.
    """
    if isinstance(update, Keep):
        return
    condition = PaymentCondition(update.value) if isinstance(update, SetTo) else None
    if values_equal(condition, current.payment_condition):
        return
    changes["payment_condition"] = condition
    if condition != PaymentCondition.INSTALLMENT:
        if current.installment_text:
            changes["installment_text"] = None
        if current.installment_plan is not None:
            changes["installment_plan"] = None
    if condition != PaymentCondition.CASH and current.discount is not None:
        changes["discount"] = None
