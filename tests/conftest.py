"""Shared fixtures: in-memory store, client directory and recording publisher."""

from __future__ import annotations

import contextlib
import uuid
from collections.abc import AsyncIterator
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

import pytest

from quoteflow.errors import NotFoundError
from quoteflow.models.enums import QuoteStatus
from quoteflow.quotes.service import QuoteService
from quoteflow.schemas.client import Client
from quoteflow.schemas.dashboard import QuoteStatistics
from quoteflow.schemas.events import SystemEvent
from quoteflow.schemas.general_settings import GeneralSettings
from quoteflow.schemas.quote import Quote, QuoteDraft

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


class InMemoryQuoteStore:
    """QuoteStore over a dict. Every write is recorded in ``writes``."""

    def __init__(self) -> None:
        self.quotes: dict[uuid.UUID, Quote] = {}
        self.writes: list[tuple[str, uuid.UUID, dict[str, Any]]] = []
        self.counter = 0
        self.fail_status_for: set[uuid.UUID] = set()
        self.savepoints = 0

    def _ordered(self, quotes: list[Quote]) -> list[Quote]:
        return sorted(quotes, key=lambda q: q.sequence_number, reverse=True)

    async def find_all(self) -> list[Quote]:
        return self._ordered(list(self.quotes.values()))

    async def find_by_id(self, quote_id: uuid.UUID) -> Quote | None:
        return self.quotes.get(quote_id)

    async def find_by_client(self, client_id: uuid.UUID) -> list[Quote]:
        return self._ordered([q for q in self.quotes.values() if q.client_id == client_id])

    async def find_by_status(self, status: QuoteStatus) -> list[Quote]:
        return self._ordered([q for q in self.quotes.values() if q.status == status])

    async def find_by_date_range(self, start: datetime, end: datetime) -> list[Quote]:
        return self._ordered([q for q in self.quotes.values() if start <= q.issue_date <= end])

    async def find_paginated(
        self,
        *,
        offset: int,
        limit: int,
        status: QuoteStatus | None = None,
        client_id: uuid.UUID | None = None,
        search: str | None = None,
    ) -> tuple[list[Quote], int]:
        matches = list(self.quotes.values())
        if status is not None:
            matches = [q for q in matches if q.status == status]
        if client_id is not None:
            matches = [q for q in matches if q.client_id == client_id]
        if search:
            needle = search.lower()
            matches = [
                q for q in matches
                if needle in q.client.name.lower() or needle in str(q.sequence_number)
            ]
        matches = self._ordered(matches)
        return matches[offset:offset + limit], len(matches)

    async def create(self, draft: QuoteDraft) -> Quote:
        quote = Quote.model_validate({**draft.model_dump(), "id": uuid.uuid4(), "created_at": NOW})
        self.quotes[quote.id] = quote
        self.writes.append(("create", quote.id, {}))
        return quote

    async def update(self, quote_id: uuid.UUID, changes: dict[str, Any]) -> Quote:
        quote = self.quotes[quote_id].model_copy(update=changes)
        self.quotes[quote_id] = quote
        self.writes.append(("update", quote_id, dict(changes)))
        return quote

    async def update_status(
        self,
        quote_id: uuid.UUID,
        status: QuoteStatus,
        *,
        accepted_date: datetime | None = None,
    ) -> Quote:
        if quote_id in self.fail_status_for:
            raise RuntimeError("storage unavailable")
        changes: dict[str, Any] = {"status": status}
        if accepted_date is not None:
            changes["accepted_date"] = accepted_date
        quote = self.quotes[quote_id].model_copy(update=changes)
        self.quotes[quote_id] = quote
        self.writes.append(("status", quote_id, changes))
        return quote

    async def delete(self, quote_id: uuid.UUID) -> None:
        del self.quotes[quote_id]
        self.writes.append(("delete", quote_id, {}))

    @contextlib.asynccontextmanager
    async def savepoint(self) -> AsyncIterator[None]:
        snapshot = dict(self.quotes)
        self.savepoints += 1
        try:
            yield
        except Exception:
            self.quotes = snapshot
            raise

    async def next_sequence_number(self) -> int:
        highest = max((q.sequence_number for q in self.quotes.values()), default=0)
        self.counter = max(self.counter, highest) + 1
        return self.counter

    async def aggregate_stats(self) -> QuoteStatistics:
        stats = QuoteStatistics()
        for quote in self.quotes.values():
            stats.total += 1
            setattr(stats, quote.status.value, getattr(stats, quote.status.value) + 1)
            if quote.status == QuoteStatus.ACCEPTED:
                stats.accepted_value += quote.total_value
        return stats


class InMemoryClientDirectory:
    def __init__(self, clients: list[Client] | None = None) -> None:
        self.clients = {c.id: c for c in clients or []}

    async def find_by_id(self, client_id: uuid.UUID) -> Client:
        try:
            return self.clients[client_id]
        except KeyError:
            raise NotFoundError("Client not found") from None

    async def find_all(self) -> list[Client]:
        return list(self.clients.values())

    async def count(self) -> int:
        return len(self.clients)


class StaticSettingsProvider:
    def __init__(self, general: GeneralSettings | None = None) -> None:
        self.general = general or GeneralSettings()

    async def get(self) -> GeneralSettings:
        return self.general


class RecordingPublisher:
    def __init__(self) -> None:
        self.events: list[SystemEvent] = []

    async def publish(self, event: SystemEvent) -> None:
        self.events.append(event)


@pytest.fixture()
def client_record() -> Client:
    return Client(
        id=uuid.uuid4(),
        legal_name="Acme Fire Safety Ltda",
        tax_id="12.345.678/0001-90",
        address="Rua das Flores, 100",
        city="Curitiba",
        state="PR",
        zip_code="80000-000",
        phone="41 99999-0000",
        email="contact@acme.example",
    )


@pytest.fixture()
def store() -> InMemoryQuoteStore:
    return InMemoryQuoteStore()


@pytest.fixture()
def clients(client_record) -> InMemoryClientDirectory:
    return InMemoryClientDirectory([client_record])


@pytest.fixture()
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture()
def general_settings() -> GeneralSettings:
    return GeneralSettings(validity_days=30, min_installment_value=Decimal("1000"))


@pytest.fixture()
def service(store, clients, publisher, general_settings) -> QuoteService:
    return QuoteService(
        store=store,
        clients=clients,
        settings_provider=StaticSettingsProvider(general_settings),
        publisher=publisher,
        now=lambda: NOW,
    )
