"""QuoteRecord model: one commercial proposal with its priced line items.

Items, the installment plan, the cash discount and the client snapshot are
stored as JSONB documents; totals are denormalized for reporting queries.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import Boolean, DateTime, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from quoteflow.models.base import Base, TimestampMixin
from quoteflow.models.enums import QuoteStatus


class QuoteRecord(TimestampMixin, Base):
    """Persisted quote. Only QuoteService writes to this table."""

    __tablename__ = "quotes"

    sequence_number: Mapped[int] = mapped_column(Integer, nullable=False, unique=True, index=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=QuoteStatus.OPEN.value, index=True
    )

    # Client reference (no FK: a quote outlives its client) + snapshot taken at issue time
    client_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    client_snapshot: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)

    # Dates
    issue_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    expiry_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    accepted_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Scope
    service_id: Mapped[str | None] = mapped_column(String(64))
    service_description: Mapped[str | None] = mapped_column(Text)
    items: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, nullable=False, default=list)
    limitation_ids: Mapped[list[str]] = mapped_column(JSONB, nullable=False, default=list)
    execution_deadline_days: Mapped[int | None] = mapped_column(Integer)
    inspection_deadline_days: Mapped[int | None] = mapped_column(Integer)

    # Payment
    payment_condition: Mapped[str | None] = mapped_column(String(20))
    installment_text: Mapped[str | None] = mapped_column(Text)
    installment_plan: Mapped[dict[str, Any] | None] = mapped_column(JSONB)
    discount: Mapped[dict[str, Any] | None] = mapped_column(JSONB)
    show_detailed_values: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Totals, always recomputed from items; unbounded scale so they match the item sums
    labor_total: Mapped[Decimal] = mapped_column(Numeric(), nullable=False, default=Decimal("0"))
    material_total: Mapped[Decimal] = mapped_column(Numeric(), nullable=False, default=Decimal("0"))
    total_value: Mapped[Decimal] = mapped_column(Numeric(), nullable=False, default=Decimal("0"))

    # Free text and per-quote contact overrides
    notes: Mapped[str | None] = mapped_column(Text)
    consultant: Mapped[str | None] = mapped_column(String(200))
    contact: Mapped[str | None] = mapped_column(String(200))
    email: Mapped[str | None] = mapped_column(String(255))
    phone: Mapped[str | None] = mapped_column(String(30))
    service_address: Mapped[str | None] = mapped_column(String(300))

    def __repr__(self) -> str:
        return f"<QuoteRecord number={self.sequence_number} v{self.version} status={self.status}>"


class QuoteCounter(Base):
    """Named monotonically increasing counter (one row per sequence)."""

    __tablename__ = "quote_counters"

    name: Mapped[str] = mapped_column(String(50), primary_key=True)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<QuoteCounter {self.name}={self.last_value}>"
