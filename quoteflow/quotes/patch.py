"""Partial-update types for quotes.

Each updatable field carries an explicit instruction instead of relying on
``None`` or a storage-specific delete marker:

- ``KEEP``          field absent from the request, leave it alone
- ``SetTo(value)``  replace the stored value (subject to the diff check)
- ``CLEAR``         remove the stored value
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import TYPE_CHECKING, Generic, TypeVar, Union

from quoteflow.models.enums import PaymentCondition
from quoteflow.schemas.calculators import DiscountInfo, InstallmentPlan

if TYPE_CHECKING:
    from quoteflow.schemas.quote import QuoteItemInput

T = TypeVar("T")


@dataclass(frozen=True)
class Keep:
    def __repr__(self) -> str:
        return "KEEP"


@dataclass(frozen=True)
class Clear:
    def __repr__(self) -> str:
        return "CLEAR"


@dataclass(frozen=True)
class SetTo(Generic[T]):
    value: T


KEEP = Keep()
CLEAR = Clear()

FieldUpdate = Union[Keep, SetTo[T], Clear]


@dataclass(frozen=True)
class QuotePatch:
    """Requested changes to an open quote. Every field defaults to KEEP."""

    items: FieldUpdate[list[QuoteItemInput]] = field(default=KEEP)
    service_id: FieldUpdate[str] = field(default=KEEP)
    service_description: FieldUpdate[str] = field(default=KEEP)
    limitation_ids: FieldUpdate[list[str]] = field(default=KEEP)
    execution_deadline_days: FieldUpdate[int] = field(default=KEEP)
    inspection_deadline_days: FieldUpdate[int] = field(default=KEEP)
    payment_condition: FieldUpdate[PaymentCondition] = field(default=KEEP)
    installment_text: FieldUpdate[str] = field(default=KEEP)
    installment_plan: FieldUpdate[InstallmentPlan] = field(default=KEEP)
    discount: FieldUpdate[DiscountInfo] = field(default=KEEP)
    show_detailed_values: FieldUpdate[bool] = field(default=KEEP)
    expiry_date: FieldUpdate[datetime] = field(default=KEEP)
    notes: FieldUpdate[str] = field(default=KEEP)
    consultant: FieldUpdate[str] = field(default=KEEP)
    contact: FieldUpdate[str] = field(default=KEEP)
    email: FieldUpdate[str] = field(default=KEEP)
    phone: FieldUpdate[str] = field(default=KEEP)
    service_address: FieldUpdate[str] = field(default=KEEP)

    def requested_fields(self) -> list[str]:
        """Names of fields carrying SetTo or CLEAR."""
        return [f.name for f in fields(self) if not isinstance(getattr(self, f.name), Keep)]
