"""Domain enums used across SQLAlchemy models and Pydantic schemas.

All enums use str mixin for JSON serialization and plain string columns.
"""

from __future__ import annotations

from enum import Enum


class QuoteStatus(str, Enum):
    """Quote lifecycle states; transitions live in quoteflow.quotes.states."""

    OPEN = "open"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"


class PaymentCondition(str, Enum):
    """How the client intends to pay."""

    CASH = "cash"
    NEGOTIATE = "negotiate"
    INSTALLMENT = "installment"


class PersonType(str, Enum):
    """Client legal nature, derived from the tax id length."""

    INDIVIDUAL = "individual"  # CPF, 11 digits
    COMPANY = "company"  # CNPJ, 14 digits


class ItemStage(str, Enum):
    """Which part of the job a line item belongs to."""

    COMMERCIAL = "commercial"
    RESIDENTIAL = "residential"
