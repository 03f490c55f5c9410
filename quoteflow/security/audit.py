"""Audit log subscriber: persists every SystemEvent to the audit_log table.

Registered as a global subscriber (receives ALL events). This is the
system's append-only trail of quote activity.

Never raises: failures are logged but never propagate to the event bus.
"""

from __future__ import annotations

import logging

from quoteflow.db.engine import async_session_factory
from quoteflow.models.audit import AuditLog
from quoteflow.schemas.events import SystemEvent

logger = logging.getLogger(__name__)


async def audit_on_event(event: SystemEvent) -> None:
    """Write a SystemEvent to the audit_log table.

    Called by the event bus for every published event.
    """
    try:
        async with async_session_factory() as db:
            audit = AuditLog(
                event_type=event.event_type.value,
                quote_id=event.quote_id,
                actor_id=event.actor_id or "system",
                data={**event.data, "source_module": event.source_module},
            )
            db.add(audit)
            await db.commit()
    except Exception:
        logger.exception(
            "Failed to persist audit event: %s (quote=%s)",
            event.event_type.value,
            event.quote_id,
        )
