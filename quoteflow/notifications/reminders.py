"""Follow-up reminders driven by quote status changes.

When a quote becomes accepted, every item whose description mentions an
active keyword gets a reminder due ``due_days`` after the acceptance date.
When a quote leaves accepted, its reminders are removed. Registered on the
event bus for QUOTE_STATUS_CHANGED only.

Never raises: failures are logged but never propagate to the event bus.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from datetime import datetime, timedelta
from typing import NamedTuple

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from quoteflow.db.engine import async_session_factory
from quoteflow.formatters import format_date, format_quote_number_short
from quoteflow.models.enums import QuoteStatus
from quoteflow.models.reminder import FollowUpKeyword, Reminder
from quoteflow.schemas.events import EventType, SystemEvent
from quoteflow.schemas.quote import Quote
from quoteflow.store.base import EventPublisher
from quoteflow.store.sql import SqlQuoteStore

logger = logging.getLogger(__name__)


class KeywordRule(NamedTuple):
    word: str
    due_days: int


class ReminderDraft(NamedTuple):
    item_description: str
    keyword: str
    due_date: datetime


def match_reminders(
    quote: Quote,
    rules: Iterable[KeywordRule],
    existing: set[tuple[str, str]] | None = None,
) -> list[ReminderDraft]:
    """Reminders an accepted quote needs.

    Matching is a case-insensitive substring test on each item description.
    Pairs already in ``existing`` (item description, keyword) are skipped.
    """
    rules = list(rules)
    seen = set(existing or ())
    base = quote.accepted_date or quote.issue_date

    drafts: list[ReminderDraft] = []
    for item in quote.items:
        if not item.description:
            continue
        description = item.description.lower()
        for rule in rules:
            key = (item.description, rule.word)
            if rule.word.lower() in description and key not in seen:
                seen.add(key)
                drafts.append(
                    ReminderDraft(
                        item_description=item.description,
                        keyword=rule.word,
                        due_date=base + timedelta(days=rule.due_days),
                    )
                )
    return drafts


class ReminderService:
    """Creates and removes follow-up reminders as quotes enter and leave accepted."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
        publisher: EventPublisher | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.publisher = publisher

    async def on_event(self, event: SystemEvent) -> None:
        """Event bus subscriber for QUOTE_STATUS_CHANGED."""
        if event.event_type != EventType.QUOTE_STATUS_CHANGED or event.quote_id is None:
            return

        previous = event.data.get("previous_status")
        new = event.data.get("new_status")
        try:
            if new == QuoteStatus.ACCEPTED.value:
                await self.create_for_quote(event.quote_id)
            elif previous == QuoteStatus.ACCEPTED.value:
                await self.remove_for_quote(event.quote_id)
        except Exception:
            logger.exception("Failed to update reminders for quote %s", event.quote_id)

    async def create_for_quote(self, quote_id: uuid.UUID) -> int:
        """Create the missing reminders of an accepted quote. Returns how many."""
        async with self.session_factory() as db:
            quote = await SqlQuoteStore(db).find_by_id(quote_id)
            if quote is None or quote.status != QuoteStatus.ACCEPTED:
                return 0

            result = await db.execute(
                select(FollowUpKeyword.word, FollowUpKeyword.due_days).where(
                    FollowUpKeyword.active.is_(True)
                )
            )
            rules = [KeywordRule(word, due_days) for word, due_days in result.all()]
            if not rules:
                return 0

            result = await db.execute(
                select(Reminder.item_description, Reminder.keyword).where(
                    Reminder.quote_id == quote_id
                )
            )
            existing = {(description, keyword) for description, keyword in result.all()}

            drafts = match_reminders(quote, rules, existing)
            for draft in drafts:
                db.add(
                    Reminder(
                        quote_id=quote.id,
                        quote_number=quote.sequence_number,
                        quote_issue_date=quote.issue_date,
                        client_id=quote.client_id,
                        client_name=quote.client.name,
                        item_description=draft.item_description,
                        keyword=draft.keyword,
                        due_date=draft.due_date,
                        read=False,
                    )
                )
            await db.commit()

        if drafts:
            logger.info(
                "Created %d reminders for quote %s, first due %s",
                len(drafts),
                format_quote_number_short(quote.sequence_number, quote.issue_date),
                format_date(min(d.due_date for d in drafts)),
            )
            await self._publish(EventType.REMINDERS_CREATED, quote_id, len(drafts))
        return len(drafts)

    async def remove_for_quote(self, quote_id: uuid.UUID) -> int:
        """Delete every reminder of a quote. Returns how many."""
        async with self.session_factory() as db:
            result = await db.execute(delete(Reminder).where(Reminder.quote_id == quote_id))
            await db.commit()
        removed = result.rowcount or 0

        if removed:
            logger.info("Removed %d reminders for quote %s", removed, quote_id)
            await self._publish(EventType.REMINDERS_REMOVED, quote_id, removed)
        return removed

    async def _publish(self, event_type: EventType, quote_id: uuid.UUID, count: int) -> None:
        if self.publisher is None:
            return
        await self.publisher.publish(
            SystemEvent(
                event_type=event_type,
                quote_id=quote_id,
                data={"count": count},
                source_module="notifications.reminders",
            )
        )
