"""Quotes API: FastAPI router over QuoteService and the payment calculators.

All routes require HTTP Basic Auth via the verify_api_user dependency.
Successful responses are wrapped as ``{"success": true, "data": ...}``;
errors are rendered by ``quoteflow.api.errors``.
"""
# ruff: noqa: B008

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from quoteflow.api.auth import verify_api_user
from quoteflow.calculators import (
    calculate_discount,
    calculate_installment_plan,
    describe_installment_plan,
)
from quoteflow.db.engine import get_session, on_commit
from quoteflow.events.bus import EventBus, PendingEvents
from quoteflow.models.enums import QuoteStatus
from quoteflow.quotes.service import QuoteService
from quoteflow.schemas.calculators import (
    DiscountPreviewRequest,
    InstallmentPreview,
    InstallmentPreviewRequest,
)
from quoteflow.schemas.quote import QuoteCreate, QuoteUpdate, StatusChangeRequest
from quoteflow.store.base import SettingsProvider
from quoteflow.store.sql import SqlClientDirectory, SqlQuoteStore, SqlSettingsProvider

router = APIRouter(prefix="/quotes", tags=["quotes"])


# ── Dependencies ─────────────────────────────────────────────────────


def get_event_bus(request: Request) -> EventBus:
    """The application-wide bus created in the lifespan."""
    return request.app.state.event_bus


def get_settings_provider(db: AsyncSession = Depends(get_session)) -> SettingsProvider:
    return SqlSettingsProvider(db)


def get_quote_service(
    db: AsyncSession = Depends(get_session),
    bus: EventBus = Depends(get_event_bus),
) -> QuoteService:
    """Request-scoped service over the request's database session.

    Its events reach the bus only once the request transaction has committed.
    """
    pending = PendingEvents(bus)
    on_commit(db, pending.flush)
    return QuoteService(
        store=SqlQuoteStore(db),
        clients=SqlClientDirectory(db),
        settings_provider=SqlSettingsProvider(db),
        publisher=pending,
    )


def _ok(data: Any) -> dict[str, Any]:
    return {"success": True, "data": data}


# ── Reads ────────────────────────────────────────────────────────────


@router.get("/")
async def list_quotes(
    service: QuoteService = Depends(get_quote_service),
    _user: str = Depends(verify_api_user),
) -> dict[str, Any]:
    return _ok(await service.list_quotes())


@router.get("/page")
async def list_quotes_page(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: QuoteStatus | None = None,
    client_id: uuid.UUID | None = None,
    search: str | None = None,
    service: QuoteService = Depends(get_quote_service),
    _user: str = Depends(verify_api_user),
) -> dict[str, Any]:
    result = await service.list_paginated(
        page, limit, status=status, client_id=client_id, search=search
    )
    return _ok(result)


@router.get("/stats")
async def quote_statistics(
    service: QuoteService = Depends(get_quote_service),
    _user: str = Depends(verify_api_user),
) -> dict[str, Any]:
    return _ok(await service.statistics())


@router.get("/dashboard")
async def dashboard(
    service: QuoteService = Depends(get_quote_service),
    _user: str = Depends(verify_api_user),
) -> dict[str, Any]:
    return _ok(await service.dashboard_stats())


@router.get("/period")
async def quotes_by_period(
    start: str = Query(..., description="First issue date, ISO-8601"),
    end: str = Query(..., description="Last issue date (inclusive), ISO-8601"),
    service: QuoteService = Depends(get_quote_service),
    _user: str = Depends(verify_api_user),
) -> dict[str, Any]:
    return _ok(await service.find_by_date_range(start, end))


@router.get("/status/{status}")
async def quotes_by_status(
    status: QuoteStatus,
    service: QuoteService = Depends(get_quote_service),
    _user: str = Depends(verify_api_user),
) -> dict[str, Any]:
    return _ok(await service.find_by_status(status))


@router.get("/client/{client_id}")
async def quotes_by_client(
    client_id: uuid.UUID,
    service: QuoteService = Depends(get_quote_service),
    _user: str = Depends(verify_api_user),
) -> dict[str, Any]:
    return _ok(await service.find_by_client(client_id))


@router.get("/client/{client_id}/history")
async def client_history(
    client_id: uuid.UUID,
    limit: int = Query(5, ge=1, le=50),
    service: QuoteService = Depends(get_quote_service),
    _user: str = Depends(verify_api_user),
) -> dict[str, Any]:
    return _ok(await service.client_history(client_id, limit))


@router.get("/{quote_id}")
async def get_quote(
    quote_id: uuid.UUID,
    service: QuoteService = Depends(get_quote_service),
    _user: str = Depends(verify_api_user),
) -> dict[str, Any]:
    return _ok(await service.find_by_id(quote_id))


# ── Writes ───────────────────────────────────────────────────────────


@router.post("/", status_code=201)
async def create_quote(
    body: QuoteCreate,
    service: QuoteService = Depends(get_quote_service),
    user: str = Depends(verify_api_user),
) -> dict[str, Any]:
    return _ok(await service.create(body, actor_id=user))


@router.put("/{quote_id}")
async def update_quote(
    quote_id: uuid.UUID,
    body: QuoteUpdate,
    service: QuoteService = Depends(get_quote_service),
    user: str = Depends(verify_api_user),
) -> dict[str, Any]:
    return _ok(await service.update(quote_id, body, actor_id=user))


@router.patch("/{quote_id}/status")
async def change_status(
    quote_id: uuid.UUID,
    body: StatusChangeRequest,
    service: QuoteService = Depends(get_quote_service),
    _user: str = Depends(verify_api_user),
) -> dict[str, Any]:
    return _ok(await service.transition_status(quote_id, body.status))


@router.delete("/{quote_id}")
async def delete_quote(
    quote_id: uuid.UUID,
    service: QuoteService = Depends(get_quote_service),
    user: str = Depends(verify_api_user),
) -> dict[str, Any]:
    await service.delete(quote_id, actor_id=user)
    return {"success": True}


@router.post("/{quote_id}/duplicate", status_code=201)
async def duplicate_quote(
    quote_id: uuid.UUID,
    service: QuoteService = Depends(get_quote_service),
    user: str = Depends(verify_api_user),
) -> dict[str, Any]:
    return _ok(await service.duplicate(quote_id, actor_id=user))


@router.post("/verify-expired")
async def verify_expired(
    service: QuoteService = Depends(get_quote_service),
    _user: str = Depends(verify_api_user),
) -> dict[str, Any]:
    return _ok(await service.verify_expired())


# ── Calculator previews ──────────────────────────────────────────────


@router.post("/installments/preview")
async def installments_preview(
    body: InstallmentPreviewRequest,
    provider: SettingsProvider = Depends(get_settings_provider),
    _user: str = Depends(verify_api_user),
) -> dict[str, Any]:
    """Installment options and payment text for a total, using saved settings."""
    config = (await provider.get()).installment_config()
    plan = calculate_installment_plan(
        body.total_value,
        body.entry_percent,
        config,
        body.selected_installments,
    )
    return _ok(InstallmentPreview(plan=plan, text=describe_installment_plan(plan, config)))


@router.post("/discount/preview")
async def discount_preview(
    body: DiscountPreviewRequest,
    _user: str = Depends(verify_api_user),
) -> dict[str, Any]:
    """Cash discount for a total; ``data`` is null when the percent is zero."""
    return _ok(calculate_discount(body.total_value, body.percent))
