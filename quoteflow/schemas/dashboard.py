"""Read-only reporting schemas for the dashboard and statistics endpoints."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field


class MonthStats(BaseModel):
    """Quotes issued in one calendar month."""

    label: str  # e.g. "Oct/26"
    year: int
    month_index: int  # 0 = January
    count: int = 0
    accepted_count: int = 0
    value: Decimal = Decimal("0")


class DashboardStats(BaseModel):
    """Aggregate over every quote plus the six-month issue history."""

    total: int = 0
    open: int = 0
    accepted: int = 0
    declined: int = 0
    expired: int = 0
    total_value: Decimal = Decimal("0")
    accepted_value: Decimal = Decimal("0")
    total_clients: int = 0
    by_month: list[MonthStats] = Field(default_factory=list)


class QuoteStatistics(BaseModel):
    """Store-side counts per status and accepted value."""

    total: int = 0
    open: int = 0
    accepted: int = 0
    declined: int = 0
    expired: int = 0
    accepted_value: Decimal = Decimal("0")
