"""SystemEvent schema: the event type published by the quote engine.

Every quote mutation emits a SystemEvent. Subscribers (audit logger,
follow-up reminders) consume these events asynchronously.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """All event types emitted by the system."""

    # Quote lifecycle
    QUOTE_CREATED = "quote.created"
    QUOTE_UPDATED = "quote.updated"
    QUOTE_STATUS_CHANGED = "quote.status_changed"
    QUOTE_DELETED = "quote.deleted"
    QUOTE_DUPLICATED = "quote.duplicated"

    # Follow-ups
    REMINDERS_CREATED = "reminders.created"
    REMINDERS_REMOVED = "reminders.removed"

    # System
    SYSTEM_STARTUP = "system.startup"
    SYSTEM_SHUTDOWN = "system.shutdown"
    EXPIRY_SWEEP = "system.expiry_sweep"


class SystemEvent(BaseModel):
    """Core event that flows through the QuoteFlow event bus.

    Immutable once created. Consumed by:
    - audit_on_event → writes to audit_log table
    - ReminderService.on_event → creates/removes follow-up reminders
    """

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    event_type: EventType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    quote_id: uuid.UUID | None = None
    actor_id: str | None = None

    # Flexible payload
    data: dict[str, Any] = Field(default_factory=dict)

    # Metadata
    source_module: str | None = Field(default=None, description="Module that emitted this event")

    model_config = {"frozen": True}


def status_changed_event(
    quote_id: uuid.UUID,
    previous_status: str,
    new_status: str,
) -> SystemEvent:
    """Build the {quote_id, previous_status, new_status} notification."""
    return SystemEvent(
        event_type=EventType.QUOTE_STATUS_CHANGED,
        quote_id=quote_id,
        data={
            "quote_id": str(quote_id),
            "previous_status": previous_status,
            "new_status": new_status,
        },
        source_module="quotes.lifecycle",
    )
