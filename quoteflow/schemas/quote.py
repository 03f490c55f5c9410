"""Pydantic schemas for quotes: domain entities and request payloads.

``Quote`` is what the store returns and the engine reasons about;
``QuoteCreate`` and ``QuoteUpdate`` are what callers send.
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from quoteflow.models.enums import ItemStage, PaymentCondition, QuoteStatus
from quoteflow.quotes.patch import CLEAR, QuotePatch, SetTo
from quoteflow.schemas.calculators import DiscountInfo, InstallmentPlan
from quoteflow.schemas.client import ClientSnapshot
from quoteflow.schemas.types import StoredAmount, UtcDatetime


class QuoteItemInput(BaseModel):
    """A line item as sent by a caller. Any totals it carries are ignored."""

    stage: ItemStage | None = None
    category_id: str = ""
    category_name: str = ""
    description: str = ""
    unit: str = ""
    quantity: Decimal = Decimal("0")
    unit_labor_price: Decimal = Decimal("0")
    unit_material_price: Decimal = Decimal("0")


class QuoteItem(QuoteItemInput):
    """A line item with its derived totals."""

    labor_total: StoredAmount = Decimal("0")
    material_total: StoredAmount = Decimal("0")
    total: StoredAmount = Decimal("0")


class QuoteDraft(BaseModel):
    """Every persisted quote field except identity and audit timestamps."""

    model_config = ConfigDict(from_attributes=True)

    sequence_number: int
    version: int = 0
    status: QuoteStatus = QuoteStatus.OPEN

    client_id: uuid.UUID
    client: ClientSnapshot

    issue_date: UtcDatetime
    expiry_date: UtcDatetime
    accepted_date: UtcDatetime | None = None

    service_id: str | None = None
    service_description: str | None = None
    items: list[QuoteItem] = Field(default_factory=list)
    limitation_ids: list[str] = Field(default_factory=list)
    execution_deadline_days: int | None = None
    inspection_deadline_days: int | None = None

    payment_condition: PaymentCondition | None = None
    installment_text: str | None = None
    installment_plan: InstallmentPlan | None = None
    discount: DiscountInfo | None = None
    show_detailed_values: bool = False

    labor_total: StoredAmount = Decimal("0")
    material_total: StoredAmount = Decimal("0")
    total_value: StoredAmount = Decimal("0")

    notes: str | None = None
    consultant: str | None = None
    contact: str | None = None
    email: str | None = None
    phone: str | None = None
    service_address: str | None = None


class Quote(QuoteDraft):
    """A stored quote."""

    id: uuid.UUID
    created_at: UtcDatetime | None = None
    updated_at: UtcDatetime | None = None


class QuoteCreate(BaseModel):
    """Payload for QuoteService.create."""

    client_id: uuid.UUID
    service_id: str | None = None
    service_description: str | None = None
    items: list[QuoteItemInput] = Field(default_factory=list)
    limitation_ids: list[str] = Field(default_factory=list)
    execution_deadline_days: int | None = None
    inspection_deadline_days: int | None = None
    payment_condition: PaymentCondition | None = None
    installment_text: str | None = None
    installment_plan: InstallmentPlan | None = None
    discount: DiscountInfo | None = None
    show_detailed_values: bool | None = None
    notes: str | None = None
    validity_days: int | None = Field(default=None, ge=1, le=365)
    consultant: str | None = None
    contact: str | None = None
    email: str | None = None
    phone: str | None = None
    service_address: str | None = None


class QuoteUpdate(BaseModel):
    """Payload for QuoteService.update.

    A field left out of the request is kept, an explicit ``null`` clears it,
    anything else is a new value.
    """

    items: list[QuoteItemInput] | None = None
    service_id: str | None = None
    service_description: str | None = None
    limitation_ids: list[str] | None = None
    execution_deadline_days: int | None = None
    inspection_deadline_days: int | None = None
    payment_condition: PaymentCondition | None = None
    installment_text: str | None = None
    installment_plan: InstallmentPlan | None = None
    discount: DiscountInfo | None = None
    show_detailed_values: bool | None = None
    expiry_date: UtcDatetime | None = None
    notes: str | None = None
    consultant: str | None = None
    contact: str | None = None
    email: str | None = None
    phone: str | None = None
    service_address: str | None = None

    def to_patch(self) -> QuotePatch:
        changes: dict[str, Any] = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            changes[name] = CLEAR if value is None else SetTo(value)
        return QuotePatch(**changes)


class StatusChangeRequest(BaseModel):
    status: QuoteStatus


class QuotePage(BaseModel):
    """One page of quotes, newest number first."""

    items: list[Quote]
    total: int
    has_more: bool


class ClientHistorySummary(BaseModel):
    total: int = 0
    accepted: int = 0
    accepted_value: Decimal = Decimal("0")


class ClientHistory(BaseModel):
    """Latest quotes of a client plus lifetime totals."""

    quotes: list[Quote]
    summary: ClientHistorySummary


class ExpiryFailure(BaseModel):
    quote_id: uuid.UUID
    error: str


class ExpiryReport(BaseModel):
    """Outcome of an expiry sweep."""

    expired: int = 0
    failures: list[ExpiryFailure] = Field(default_factory=list)
