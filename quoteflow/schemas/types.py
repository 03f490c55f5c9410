"""Annotated field types that normalize stored values at the model boundary.

Older rows hold dates as ISO-8601 text or plain dates and totals as strings or
nothing at all; once a value has passed through one of these types the rest of
the code only ever sees an aware UTC datetime or a Decimal.
"""

from __future__ import annotations

from datetime import UTC, date, datetime
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any

from pydantic import BeforeValidator


def to_utc_datetime(value: Any) -> Any:
    """Coerce date / ISO text / naive datetime into an aware UTC datetime."""
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip())
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    return value


def to_amount(value: Any) -> Decimal:
    """Coerce a stored amount into Decimal; missing or non-numeric becomes 0."""
    if value is None or isinstance(value, bool):
        return Decimal("0")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")
    if not amount.is_finite():
        return Decimal("0")
    return amount


UtcDatetime = Annotated[datetime, BeforeValidator(to_utc_datetime)]
StoredAmount = Annotated[Decimal, BeforeValidator(to_amount)]
