"""Storage and notification contracts the quote engine depends on.

The engine only talks to these protocols; ``quoteflow.store.sql`` provides the
SQLAlchemy implementations and the tests provide in-memory ones.
"""

from __future__ import annotations

import uuid
from contextlib import AbstractAsyncContextManager
from datetime import datetime
from typing import Any, Protocol

from quoteflow.models.enums import QuoteStatus
from quoteflow.schemas.client import Client
from quoteflow.schemas.dashboard import QuoteStatistics
from quoteflow.schemas.events import SystemEvent
from quoteflow.schemas.general_settings import GeneralSettings
from quoteflow.schemas.quote import Quote, QuoteDraft


class QuoteStore(Protocol):
    async def find_all(self) -> list[Quote]: ...

    async def find_by_id(self, quote_id: uuid.UUID) -> Quote | None: ...

    async def find_by_client(self, client_id: uuid.UUID) -> list[Quote]: ...

    async def find_by_status(self, status: QuoteStatus) -> list[Quote]: ...

    async def find_by_date_range(self, start: datetime, end: datetime) -> list[Quote]:
        """Quotes whose issue date falls within [start, end]."""
        ...

    async def find_paginated(
        self,
        *,
        offset: int,
        limit: int,
        status: QuoteStatus | None = None,
        client_id: uuid.UUID | None = None,
        search: str | None = None,
    ) -> tuple[list[Quote], int]:
        """One page ordered by sequence number descending, plus the match count."""
        ...

    async def create(self, draft: QuoteDraft) -> Quote: ...

    async def update(self, quote_id: uuid.UUID, changes: dict[str, Any]) -> Quote:
        """Apply a single write of the given fields and return the stored quote."""
        ...

    async def update_status(
        self,
        quote_id: uuid.UUID,
        status: QuoteStatus,
        *,
        accepted_date: datetime | None = None,
    ) -> Quote:
        """Persist a status; ``accepted_date`` is only written when given."""
        ...

    async def delete(self, quote_id: uuid.UUID) -> None: ...

    def savepoint(self) -> AbstractAsyncContextManager[None]:
        """Scope the writes inside it so a failure undoes only those writes."""
        ...

    async def next_sequence_number(self) -> int: ...

    async def aggregate_stats(self) -> QuoteStatistics: ...


class ClientDirectory(Protocol):
    async def find_by_id(self, client_id: uuid.UUID) -> Client:
        """Raises NotFoundError when the client does not exist."""
        ...

    async def find_all(self) -> list[Client]: ...

    async def count(self) -> int: ...


class SettingsProvider(Protocol):
    async def get(self) -> GeneralSettings: ...


class EventPublisher(Protocol):
    async def publish(self, event: SystemEvent) -> None:
        """Hand the event over for delivery; never waits on subscribers."""
        ...
