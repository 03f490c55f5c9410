"""SQLAlchemy ORM models for QuoteFlow.

Import all models here so Alembic and Base.metadata.create_all() discover them.
"""

from __future__ import annotations

from quoteflow.models.audit import AuditLog
from quoteflow.models.base import Base
from quoteflow.models.client import ClientRecord
from quoteflow.models.enums import ItemStage, PaymentCondition, PersonType, QuoteStatus
from quoteflow.models.general_settings import GeneralSettingsRecord
from quoteflow.models.quote import QuoteCounter, QuoteRecord
from quoteflow.models.reminder import FollowUpKeyword, Reminder

__all__ = [
    # Base
    "Base",
    # Models
    "ClientRecord",
    "QuoteRecord",
    "QuoteCounter",
    "GeneralSettingsRecord",
    "AuditLog",
    "FollowUpKeyword",
    "Reminder",
    # Enums
    "QuoteStatus",
    "PaymentCondition",
    "PersonType",
    "ItemStage",
]
