"""Quote lifecycle: status transition rules and status-change notification.

The lifecycle validates transitions against the table in
``quoteflow.quotes.states`` and publishes a status-change event once a
transition has been persisted. It never decides a transition on its own.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime

from quoteflow.errors import ValidationError
from quoteflow.models.enums import QuoteStatus
from quoteflow.quotes.states import EDITABLE_STATUSES, TRANSITIONS, UNDELETABLE_STATUSES
from quoteflow.schemas.client import ClientSnapshot
from quoteflow.schemas.events import status_changed_event
from quoteflow.schemas.quote import Quote, QuoteDraft
from quoteflow.store.base import EventPublisher

logger = logging.getLogger(__name__)


class QuoteLifecycle:
    """Transition policy plus the publisher that hears about status changes."""

    def __init__(self, publisher: EventPublisher) -> None:
        self.publisher = publisher

    @staticmethod
    def can_transition(source: QuoteStatus, target: QuoteStatus) -> bool:
        return target in TRANSITIONS.get(source, frozenset())

    @staticmethod
    def valid_targets(source: QuoteStatus) -> list[QuoteStatus]:
        """Allowed targets from ``source`` in declaration order."""
        allowed = TRANSITIONS.get(source, frozenset())
        return [status for status in QuoteStatus if status in allowed]

    def check_transition(self, source: QuoteStatus, target: QuoteStatus) -> None:
        """Raises ValidationError when ``target`` is not reachable from ``source``."""
        if not self.can_transition(source, target):
            valid = [s.value for s in self.valid_targets(source)]
            msg = f"Invalid status transition: {source.value} -> {target.value} (valid: {valid})"
            raise ValidationError(msg)

    @staticmethod
    def accepted_date_for(target: QuoteStatus, now: datetime) -> datetime | None:
        """Entering accepted stamps the acceptance date; nothing else touches it."""
        return now if target == QuoteStatus.ACCEPTED else None

    @staticmethod
    def ensure_editable(quote: Quote) -> None:
        if quote.status not in EDITABLE_STATUSES:
            msg = f"Only open quotes can be edited (status: {quote.status.value})"
            raise ValidationError(msg)

    @staticmethod
    def ensure_deletable(quote: Quote) -> None:
        if quote.status in UNDELETABLE_STATUSES:
            msg = f"Quotes with status {quote.status.value} cannot be deleted"
            raise ValidationError(msg)

    async def publish_status_change(
        self,
        quote_id: uuid.UUID,
        previous: QuoteStatus,
        new: QuoteStatus,
    ) -> None:
        """Notify subscribers of a persisted transition.

        A failing publisher is logged; the transition has already happened.
        """
        logger.info("Status transition: %s -> %s (quote=%s)", previous.value, new.value, quote_id)
        try:
            await self.publisher.publish(status_changed_event(quote_id, previous.value, new.value))
        except Exception:
            logger.exception("Failed to publish status change for quote %s", quote_id)

    @staticmethod
    def clone(
        source: Quote,
        *,
        sequence_number: int,
        client: ClientSnapshot,
        issue_date: datetime,
        expiry_date: datetime,
    ) -> QuoteDraft:
        """Fresh open quote at version 0 carrying the source's content."""
        return QuoteDraft(
            sequence_number=sequence_number,
            version=0,
            status=QuoteStatus.OPEN,
            client_id=source.client_id,
            client=client,
            issue_date=issue_date,
            expiry_date=expiry_date,
            accepted_date=None,
            service_id=source.service_id,
            service_description=source.service_description,
            items=[item.model_copy(deep=True) for item in source.items],
            limitation_ids=list(source.limitation_ids),
            execution_deadline_days=source.execution_deadline_days,
            inspection_deadline_days=source.inspection_deadline_days,
            payment_condition=source.payment_condition,
            installment_text=source.installment_text,
            installment_plan=(
                source.installment_plan.model_copy(deep=True) if source.installment_plan else None
            ),
            discount=source.discount.model_copy(deep=True) if source.discount else None,
            show_detailed_values=source.show_detailed_values,
            labor_total=source.labor_total,
            material_total=source.material_total,
            total_value=source.total_value,
            notes=source.notes,
            consultant=source.consultant,
            contact=source.contact,
            email=source.email,
            phone=source.phone,
            service_address=source.service_address,
        )
