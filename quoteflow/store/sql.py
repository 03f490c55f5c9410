"""SQLAlchemy implementations of the store contracts.

Each store wraps the request-scoped AsyncSession; committing is left to the
session owner (``quoteflow.db.engine.get_session``). Rows are mapped to the
Pydantic domain models on the way out, so dates and amounts are normalized
before any engine code sees them.
"""

from __future__ import annotations

import contextlib
import logging
import uuid
from collections.abc import AsyncIterator
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel
from sqlalchemy import String, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.expression import cast

from quoteflow.config import QuoteDefaults, settings
from quoteflow.errors import NotFoundError
from quoteflow.models.client import ClientRecord
from quoteflow.models.enums import QuoteStatus
from quoteflow.models.general_settings import GeneralSettingsRecord
from quoteflow.models.quote import QuoteCounter, QuoteRecord
from quoteflow.schemas.client import Client
from quoteflow.schemas.dashboard import QuoteStatistics
from quoteflow.schemas.general_settings import GeneralSettings
from quoteflow.schemas.quote import Quote, QuoteDraft

logger = logging.getLogger(__name__)

QUOTE_COUNTER = "quotes"

# Domain fields persisted as JSONB documents.
JSON_COLUMNS = frozenset({"items", "installment_plan", "discount", "limitation_ids"})

_RECORD_FIELDS = tuple(name for name in QuoteDraft.model_fields if name != "client")


# ── Row mapping ──────────────────────────────────────────────────────


def quote_from_record(row: QuoteRecord) -> Quote:
    """Map a QuoteRecord onto the domain Quote."""
    data: dict[str, Any] = {name: getattr(row, name) for name in _RECORD_FIELDS}
    data.update(
        id=row.id,
        client=row.client_snapshot or {},
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
    return Quote.model_validate(data)


def _to_json(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_to_json(v) for v in value]
    return value


def record_values(values: dict[str, Any]) -> dict[str, Any]:
    """Translate domain field values into QuoteRecord column values."""
    columns: dict[str, Any] = {}
    for name, value in values.items():
        if name == "client":
            columns["client_snapshot"] = _to_json(value)
        elif name in JSON_COLUMNS:
            columns[name] = _to_json(value)
        elif isinstance(value, Enum):
            columns[name] = value.value
        else:
            columns[name] = value
    return columns


# ── Quotes ───────────────────────────────────────────────────────────


class SqlQuoteStore:
    """QuoteStore backed by the ``quotes`` and ``quote_counters`` tables."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_all(self) -> list[Quote]:
        result = await self.session.execute(
            select(QuoteRecord).order_by(QuoteRecord.sequence_number.desc())
        )
        return [quote_from_record(row) for row in result.scalars().all()]

    async def find_by_id(self, quote_id: uuid.UUID) -> Quote | None:
        row = await self.session.get(QuoteRecord, quote_id)
        return quote_from_record(row) if row is not None else None

    async def find_by_client(self, client_id: uuid.UUID) -> list[Quote]:
        result = await self.session.execute(
            select(QuoteRecord)
            .where(QuoteRecord.client_id == client_id)
            .order_by(QuoteRecord.sequence_number.desc())
        )
        return [quote_from_record(row) for row in result.scalars().all()]

    async def find_by_status(self, status: QuoteStatus) -> list[Quote]:
        result = await self.session.execute(
            select(QuoteRecord)
            .where(QuoteRecord.status == QuoteStatus(status).value)
            .order_by(QuoteRecord.sequence_number.desc())
        )
        return [quote_from_record(row) for row in result.scalars().all()]

    async def find_by_date_range(self, start: datetime, end: datetime) -> list[Quote]:
        result = await self.session.execute(
            select(QuoteRecord)
            .where(QuoteRecord.issue_date >= start, QuoteRecord.issue_date <= end)
            .order_by(QuoteRecord.issue_date.desc())
        )
        return [quote_from_record(row) for row in result.scalars().all()]

    async def find_paginated(
        self,
        *,
        offset: int,
        limit: int,
        status: QuoteStatus | None = None,
        client_id: uuid.UUID | None = None,
        search: str | None = None,
    ) -> tuple[list[Quote], int]:
        """Returns (quotes, total_count)."""
        query = select(QuoteRecord)
        if status is not None:
            query = query.where(QuoteRecord.status == QuoteStatus(status).value)
        if client_id is not None:
            query = query.where(QuoteRecord.client_id == client_id)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(
                    QuoteRecord.client_snapshot["name"].astext.ilike(pattern),
                    cast(QuoteRecord.sequence_number, String).like(pattern),
                )
            )

        count_result = await self.session.execute(
            select(func.count()).select_from(query.subquery())
        )
        total = count_result.scalar() or 0

        result = await self.session.execute(
            query.order_by(QuoteRecord.sequence_number.desc()).offset(offset).limit(limit)
        )
        return [quote_from_record(row) for row in result.scalars().all()], total

    async def create(self, draft: QuoteDraft) -> Quote:
        values = {name: getattr(draft, name) for name in QuoteDraft.model_fields}
        row = QuoteRecord(**record_values(values))
        self.session.add(row)
        await self.session.flush()
        await self.session.refresh(row)
        return quote_from_record(row)

    async def update(self, quote_id: uuid.UUID, changes: dict[str, Any]) -> Quote:
        row = await self._require(quote_id)
        for name, value in record_values(changes).items():
            setattr(row, name, value)
        await self.session.flush()
        await self.session.refresh(row)
        return quote_from_record(row)

    async def update_status(
        self,
        quote_id: uuid.UUID,
        status: QuoteStatus,
        *,
        accepted_date: datetime | None = None,
    ) -> Quote:
        row = await self._require(quote_id)
        row.status = QuoteStatus(status).value
        if accepted_date is not None:
            row.accepted_date = accepted_date
        await self.session.flush()
        await self.session.refresh(row)
        return quote_from_record(row)

    async def delete(self, quote_id: uuid.UUID) -> None:
        row = await self._require(quote_id)
        await self.session.delete(row)
        await self.session.flush()

    @contextlib.asynccontextmanager
    async def savepoint(self) -> AsyncIterator[None]:
        """SAVEPOINT around the enclosed writes.

        A failing flush inside rolls back to the savepoint and leaves the
        request session usable for the writes that follow.
        """
        async with self.session.begin_nested():
            yield

    async def next_sequence_number(self) -> int:
        """Increment the quote counter, seeding it from the highest stored number."""
        counter = await self.session.get(QuoteCounter, QUOTE_COUNTER, with_for_update=True)
        if counter is None:
            result = await self.session.execute(select(func.max(QuoteRecord.sequence_number)))
            highest = result.scalar() or 0
            counter = QuoteCounter(name=QUOTE_COUNTER, last_value=highest)
            self.session.add(counter)
            logger.info("Quote counter initialized at %d", highest)

        counter.last_value += 1
        await self.session.flush()
        return counter.last_value

    async def aggregate_stats(self) -> QuoteStatistics:
        result = await self.session.execute(
            select(
                QuoteRecord.status,
                func.count(QuoteRecord.id),
                func.coalesce(func.sum(QuoteRecord.total_value), 0),
            ).group_by(QuoteRecord.status)
        )
        stats = QuoteStatistics()
        for status, count, value in result.all():
            stats.total += count
            if status == QuoteStatus.OPEN.value:
                stats.open = count
            elif status == QuoteStatus.ACCEPTED.value:
                stats.accepted = count
                stats.accepted_value = Decimal(str(value))
            elif status == QuoteStatus.DECLINED.value:
                stats.declined = count
            elif status == QuoteStatus.EXPIRED.value:
                stats.expired = count
        return stats

    async def _require(self, quote_id: uuid.UUID) -> QuoteRecord:
        row = await self.session.get(QuoteRecord, quote_id)
        if row is None:
            raise NotFoundError("Quote not found")
        return row


# ── Clients ──────────────────────────────────────────────────────────


class SqlClientDirectory:
    """ClientDirectory backed by the ``clients`` table."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_by_id(self, client_id: uuid.UUID) -> Client:
        row = await self.session.get(ClientRecord, client_id)
        if row is None:
            raise NotFoundError("Client not found")
        return Client.model_validate(row)

    async def find_all(self) -> list[Client]:
        result = await self.session.execute(select(ClientRecord).order_by(ClientRecord.legal_name))
        return [Client.model_validate(row) for row in result.scalars().all()]

    async def count(self) -> int:
        result = await self.session.execute(select(func.count(ClientRecord.id)))
        return result.scalar() or 0


# ── General settings ─────────────────────────────────────────────────


class SqlSettingsProvider:
    """Reads the single general-settings row; unset values fall back to QuoteDefaults."""

    def __init__(self, session: AsyncSession, defaults: QuoteDefaults | None = None) -> None:
        self.session = session
        self.defaults = defaults or settings.quotes

    async def get(self) -> GeneralSettings:
        result = await self.session.execute(
            select(GeneralSettingsRecord).order_by(GeneralSettingsRecord.created_at).limit(1)
        )
        row = result.scalars().first()

        values = self.defaults.model_dump(
            include={
                "validity_days",
                "max_installments",
                "min_installment_value",
                "interest_free_threshold",
                "interest_rate_per_installment",
            }
        )
        if row is not None:
            for name in values:
                stored = getattr(row, name)
                if stored:
                    values[name] = stored
        return GeneralSettings(**values)
