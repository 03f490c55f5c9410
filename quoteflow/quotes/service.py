"""Quote service: the single entry point for reading and writing quotes.

Orchestrates validation, totals, the diff-gated update policy and the
lifecycle against the injected store, client directory, settings provider
and event publisher. Business rules always run before the first write.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import UTC, date, datetime, time, timedelta
from decimal import Decimal

from quoteflow.errors import NotFoundError, ValidationError
from quoteflow.formatters import format_quote_number
from quoteflow.models.enums import QuoteStatus
from quoteflow.quotes.diff import build_update, normalize_discount, normalize_text
from quoteflow.quotes.lifecycle import QuoteLifecycle
from quoteflow.quotes.patch import QuotePatch
from quoteflow.quotes.totals import compute_items, sum_totals
from quoteflow.quotes.validation import validate_items, validate_service
from quoteflow.reports.dashboard import build_dashboard_stats
from quoteflow.schemas.client import ClientSnapshot
from quoteflow.schemas.dashboard import DashboardStats, QuoteStatistics
from quoteflow.schemas.events import EventType, SystemEvent
from quoteflow.schemas.quote import (
    ClientHistory,
    ClientHistorySummary,
    ExpiryFailure,
    ExpiryReport,
    Quote,
    QuoteCreate,
    QuoteDraft,
    QuotePage,
    QuoteUpdate,
)
from quoteflow.schemas.types import to_utc_datetime
from quoteflow.store.base import ClientDirectory, EventPublisher, QuoteStore, SettingsProvider

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _end_of_day(value: datetime | date | str) -> datetime:
    """Last instant of the day ``value`` falls on in its own offset, in UTC.

    Naive datetimes and plain dates are taken as UTC.
    """
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip())
    if isinstance(value, datetime):
        tz = value.tzinfo or UTC
        day = value.date()
    elif isinstance(value, date):
        tz = UTC
        day = value
    else:
        raise ValueError(f"Not a date: {value!r}")
    return datetime.combine(day, time.max, tzinfo=tz).astimezone(UTC)


class QuoteService:
    """Quote operations over injected collaborators.

    Args:
        store: Quote persistence.
        clients: Client lookup used for snapshots on create and duplicate.
        settings_provider: Source of validity days for new quotes.
        publisher: Receives every quote event; never awaited for subscribers.
        now: Clock, injectable for tests.
    """

    def __init__(
        self,
        store: QuoteStore,
        clients: ClientDirectory,
        settings_provider: SettingsProvider,
        publisher: EventPublisher,
        now: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.store = store
        self.clients = clients
        self.settings_provider = settings_provider
        self.lifecycle = QuoteLifecycle(publisher)
        self._now = now

    # ── Reads ────────────────────────────────────────────────────────

    async def list_quotes(self) -> list[Quote]:
        return await self.store.find_all()

    async def find_by_id(self, quote_id: uuid.UUID) -> Quote:
        """Raises NotFoundError when the quote does not exist."""
        quote = await self.store.find_by_id(quote_id)
        if quote is None:
            raise NotFoundError("Quote not found")
        return quote

    async def find_by_client(self, client_id: uuid.UUID) -> list[Quote]:
        return await self.store.find_by_client(client_id)

    async def find_by_status(self, status: QuoteStatus) -> list[Quote]:
        return await self.store.find_by_status(QuoteStatus(status))

    async def find_by_date_range(
        self,
        start: datetime | date | str,
        end: datetime | date | str,
    ) -> list[Quote]:
        """Quotes issued from ``start`` through the last instant of ``end``'s day."""
        try:
            start_at = to_utc_datetime(start)
            end_at = _end_of_day(end)
        except ValueError as exc:
            raise ValidationError("Invalid dates") from exc
        if start_at > end_at:
            raise ValidationError("Start date must not be after end date")
        return await self.store.find_by_date_range(start_at, end_at)

    async def list_paginated(
        self,
        page: int = 1,
        limit: int = 10,
        *,
        status: QuoteStatus | None = None,
        client_id: uuid.UUID | None = None,
        search: str | None = None,
    ) -> QuotePage:
        """One page of quotes, highest sequence number first."""
        if page < 1:
            raise ValidationError("Page must be 1 or greater")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"Limit must be between 1 and {MAX_PAGE_SIZE}")

        offset = (page - 1) * limit
        items, total = await self.store.find_paginated(
            offset=offset,
            limit=limit,
            status=status,
            client_id=client_id,
            search=(search or "").strip() or None,
        )
        return QuotePage(items=items, total=total, has_more=offset + limit < total)

    async def client_history(self, client_id: uuid.UUID, limit: int = 5) -> ClientHistory:
        """Latest quotes of a client plus lifetime counts and accepted value."""
        quotes = sorted(
            await self.store.find_by_client(client_id),
            key=lambda q: q.sequence_number,
            reverse=True,
        )
        accepted = [q for q in quotes if q.status == QuoteStatus.ACCEPTED]
        return ClientHistory(
            quotes=quotes[:limit],
            summary=ClientHistorySummary(
                total=len(quotes),
                accepted=len(accepted),
                accepted_value=sum((q.total_value for q in accepted), start=Decimal("0")),
            ),
        )

    # ── Writes ───────────────────────────────────────────────────────

    async def create(self, data: QuoteCreate, actor_id: str | None = None) -> Quote:
        """Issue a new open quote for an existing client.

        Raises:
            NotFoundError: The client does not exist.
            ValidationError: Missing items or service, or an invalid item.
        """
        client = await self.clients.find_by_id(data.client_id)

        if not data.items:
            raise ValidationError("A quote must have at least one item")
        validate_service(data.service_id)
        validate_items(data.items)

        items = compute_items(data.items)
        totals = sum_totals(items)

        general = await self.settings_provider.get()
        issue_date = self._now()
        validity_days = data.validity_days or general.validity_days
        sequence_number = await self.store.next_sequence_number()

        draft = QuoteDraft(
            sequence_number=sequence_number,
            version=0,
            status=QuoteStatus.OPEN,
            client_id=client.id,
            client=ClientSnapshot.from_client(client),
            issue_date=issue_date,
            expiry_date=issue_date + timedelta(days=validity_days),
            service_id=data.service_id,
            service_description=data.service_description or None,
            items=items,
            limitation_ids=list(data.limitation_ids),
            execution_deadline_days=data.execution_deadline_days,
            inspection_deadline_days=data.inspection_deadline_days,
            payment_condition=data.payment_condition,
            installment_text=normalize_text(data.installment_text),
            installment_plan=data.installment_plan,
            discount=normalize_discount(data.discount),
            show_detailed_values=bool(data.show_detailed_values),
            labor_total=totals.labor_total,
            material_total=totals.material_total,
            total_value=totals.total_value,
            notes=normalize_text(data.notes),
            consultant=normalize_text(data.consultant),
            contact=normalize_text(data.contact),
            email=normalize_text(data.email),
            phone=normalize_text(data.phone),
            service_address=normalize_text(data.service_address),
        )
        quote = await self.store.create(draft)

        logger.info(
            "Quote created: %s for client %s, total %s (quote=%s)",
            format_quote_number(quote.sequence_number, quote.issue_date, quote.version),
            client.id,
            quote.total_value,
            quote.id,
        )
        await self._publish(
            SystemEvent(
                event_type=EventType.QUOTE_CREATED,
                quote_id=quote.id,
                actor_id=actor_id,
                data={
                    "sequence_number": quote.sequence_number,
                    "client_id": str(client.id),
                    "total_value": str(quote.total_value),
                },
                source_module="quotes.service",
            )
        )
        return quote

    async def update(
        self,
        quote_id: uuid.UUID,
        patch: QuotePatch | QuoteUpdate,
        actor_id: str | None = None,
    ) -> Quote:
        """Apply the changed fields of an open quote as one write.

        A request that matches the stored quote performs no write and returns
        the quote unchanged.

        Raises:
            NotFoundError: The quote does not exist.
            ValidationError: The quote is not open, or the patch is invalid.
        """
        if isinstance(patch, QuoteUpdate):
            patch = patch.to_patch()

        quote = await self.find_by_id(quote_id)
        self.lifecycle.ensure_editable(quote)

        changes = build_update(quote, patch)
        if not changes:
            logger.debug("Update of quote %s changed nothing, skipping write", quote_id)
            return quote

        updated = await self.store.update(quote_id, changes)
        fields = sorted(name for name in changes if name != "version")
        logger.info(
            "Quote updated: %s fields=%s (quote=%s)",
            format_quote_number(updated.sequence_number, updated.issue_date, updated.version),
            fields,
            quote_id,
        )
        await self._publish(
            SystemEvent(
                event_type=EventType.QUOTE_UPDATED,
                quote_id=quote_id,
                actor_id=actor_id,
                data={"fields": fields, "version": updated.version},
                source_module="quotes.service",
            )
        )
        return updated

    async def transition_status(self, quote_id: uuid.UUID, target: QuoteStatus) -> Quote:
        """Move a quote to ``target`` if the transition table allows it.

        Raises:
            NotFoundError: The quote does not exist.
            ValidationError: The transition is not allowed.
        """
        quote = await self.find_by_id(quote_id)
        return await self._apply_transition(quote, QuoteStatus(target))

    async def delete(self, quote_id: uuid.UUID, actor_id: str | None = None) -> None:
        """Delete a quote that is not accepted.

        Raises:
            NotFoundError: The quote does not exist.
            ValidationError: The quote is accepted.
        """
        quote = await self.find_by_id(quote_id)
        self.lifecycle.ensure_deletable(quote)

        await self.store.delete(quote_id)
        logger.info("Quote deleted: #%d (quote=%s)", quote.sequence_number, quote_id)
        await self._publish(
            SystemEvent(
                event_type=EventType.QUOTE_DELETED,
                quote_id=quote_id,
                actor_id=actor_id,
                data={"sequence_number": quote.sequence_number, "status": quote.status.value},
                source_module="quotes.service",
            )
        )

    async def duplicate(self, quote_id: uuid.UUID, actor_id: str | None = None) -> Quote:
        """Copy a quote into a fresh open quote with a new number.

        The client snapshot is taken again from the directory.

        Raises:
            NotFoundError: The source quote does not exist.
            ValidationError: The source quote's client no longer exists.
        """
        source = await self.find_by_id(quote_id)
        try:
            client = await self.clients.find_by_id(source.client_id)
        except NotFoundError as exc:
            raise ValidationError("The client of the original quote no longer exists") from exc

        general = await self.settings_provider.get()
        issue_date = self._now()
        sequence_number = await self.store.next_sequence_number()

        draft = self.lifecycle.clone(
            source,
            sequence_number=sequence_number,
            client=ClientSnapshot.from_client(client),
            issue_date=issue_date,
            expiry_date=issue_date + timedelta(days=general.validity_days),
        )
        quote = await self.store.create(draft)

        logger.info(
            "Quote duplicated: %s -> %s (quote=%s)",
            format_quote_number(source.sequence_number, source.issue_date, source.version),
            format_quote_number(quote.sequence_number, quote.issue_date, quote.version),
            quote.id,
        )
        await self._publish(
            SystemEvent(
                event_type=EventType.QUOTE_DUPLICATED,
                quote_id=quote.id,
                actor_id=actor_id,
                data={"source_id": str(source.id), "sequence_number": quote.sequence_number},
                source_module="quotes.service",
            )
        )
        return quote

    # ── Reporting ────────────────────────────────────────────────────

    async def dashboard_stats(self) -> DashboardStats:
        quotes = await self.store.find_all()
        client_count = await self.clients.count()
        return build_dashboard_stats(quotes, client_count, self._now())

    async def statistics(self) -> QuoteStatistics:
        return await self.store.aggregate_stats()

    async def verify_expired(self) -> ExpiryReport:
        """Expire every open quote whose expiry date has passed.

        Each quote goes through the regular transition path inside its own
        savepoint. A failure on one quote is logged and reported, and the
        sweep continues with the others.
        """
        now = self._now()
        report = ExpiryReport()

        for quote in await self.store.find_by_status(QuoteStatus.OPEN):
            if quote.expiry_date >= now:
                continue
            try:
                await self._apply_transition(quote, QuoteStatus.EXPIRED)
            except Exception as exc:
                logger.exception("Failed to expire quote %s", quote.id)
                report.failures.append(ExpiryFailure(quote_id=quote.id, error=str(exc)))
            else:
                report.expired += 1

        logger.info(
            "Expiry sweep finished: %d expired, %d failed",
            report.expired,
            len(report.failures),
        )
        await self._publish(
            SystemEvent(
                event_type=EventType.EXPIRY_SWEEP,
                data={"expired": report.expired, "failed": len(report.failures)},
                source_module="quotes.service",
            )
        )
        return report

    # ── Internal ─────────────────────────────────────────────────────

    async def _apply_transition(self, quote: Quote, target: QuoteStatus) -> Quote:
        previous = quote.status
        self.lifecycle.check_transition(previous, target)

        async with self.store.savepoint():
            updated = await self.store.update_status(
                quote.id,
                target,
                accepted_date=self.lifecycle.accepted_date_for(target, self._now()),
            )
        await self.lifecycle.publish_status_change(quote.id, previous, target)
        return updated

    async def _publish(self, event: SystemEvent) -> None:
        try:
            await self.lifecycle.publisher.publish(event)
        except Exception:
            logger.exception("Failed to publish %s", event.event_type.value)
