"""Tests for the quotes API.

Covers:
- HTTP Basic Auth (401 without or with wrong credentials, 503 when unconfigured)
- Success envelope on reads and writes
- Error mapping (400 validation, 404 not found, 500 unexpected)
- Installment and discount previews
"""

from __future__ import annotations

import base64
import uuid
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from conftest import StaticSettingsProvider
from quoteflow.api.errors import INTERNAL_ERROR_MESSAGE, register_error_handlers
from quoteflow.api.routes import get_quote_service, get_settings_provider, router
from quoteflow.schemas.events import EventType
from quoteflow.schemas.general_settings import GeneralSettings


def _make_auth_header(username: str = "admin", password: str = "testpass123") -> dict[str, str]:
    """Build HTTP Basic Auth header."""
    credentials = base64.b64encode(f"{username}:{password}".encode()).decode()
    return {"Authorization": f"Basic {credentials}"}


def _item(quantity: str = "2") -> dict[str, str]:
    return {
        "category_id": "cat-1",
        "description": "ABC extinguisher 6kg",
        "quantity": quantity,
        "unit_labor_price": "50",
        "unit_material_price": "200",
    }


@pytest.fixture
def mock_settings():
    """Patch settings to use test password."""
    with patch("quoteflow.api.auth.settings") as mock:
        mock.security.api_password = "testpass123"
        yield mock


def _build_app(quote_service) -> FastAPI:
    test_app = FastAPI()
    test_app.include_router(router)
    register_error_handlers(test_app)
    test_app.dependency_overrides[get_quote_service] = lambda: quote_service
    test_app.dependency_overrides[get_settings_provider] = lambda: StaticSettingsProvider(GeneralSettings())
    return test_app


@pytest.fixture
def client(mock_settings, service):
    return TestClient(_build_app(service))


class TestAuth:
    def test_401_without_credentials(self, client):
        assert client.get("/quotes/").status_code == 401

    def test_401_wrong_password(self, client):
        resp = client.get("/quotes/", headers=_make_auth_header(password="wrong"))
        assert resp.status_code == 401

    def test_503_when_password_unset(self, service):
        with patch("quoteflow.api.auth.settings") as mock:
            mock.security.api_password = ""
            resp = TestClient(_build_app(service)).get("/quotes/", headers=_make_auth_header())
        assert resp.status_code == 503

    def test_200_correct_credentials(self, client):
        resp = client.get("/quotes/", headers=_make_auth_header())
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "data": []}


class TestQuoteRoutes:
    def test_create_then_fetch(self, client, client_record, publisher):
        resp = client.post(
            "/quotes/",
            json={"client_id": str(client_record.id), "service_id": "svc-1", "items": [_item()]},
            headers=_make_auth_header(),
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["success"] is True
        created = body["data"]
        assert created["sequence_number"] == 1
        assert created["status"] == "open"
        assert Decimal(str(created["total_value"])) == Decimal("500")

        event = publisher.events[-1]
        assert event.event_type == EventType.QUOTE_CREATED
        assert event.actor_id == "admin"

        resp = client.get(f"/quotes/{created['id']}", headers=_make_auth_header())
        assert resp.status_code == 200
        assert resp.json()["data"]["client"]["name"] == "Acme Fire Safety Ltda"

    def test_create_without_items_is_400(self, client, client_record, store):
        resp = client.post(
            "/quotes/",
            json={"client_id": str(client_record.id), "service_id": "svc-1", "items": []},
            headers=_make_auth_header(),
        )
        assert resp.status_code == 400
        assert resp.json() == {"success": False, "error": "A quote must have at least one item"}
        assert store.writes == []

    def test_unknown_quote_is_404(self, client):
        resp = client.get(f"/quotes/{uuid.uuid4()}", headers=_make_auth_header())
        assert resp.status_code == 404
        assert resp.json() == {"success": False, "error": "Quote not found"}

    def test_status_change_and_invalid_transition(self, client, client_record):
        created = client.post(
            "/quotes/",
            json={"client_id": str(client_record.id), "service_id": "svc-1", "items": [_item()]},
            headers=_make_auth_header(),
        ).json()["data"]

        resp = client.patch(
            f"/quotes/{created['id']}/status",
            json={"status": "accepted"},
            headers=_make_auth_header(),
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "accepted"
        assert resp.json()["data"]["accepted_date"] is not None

        resp = client.patch(
            f"/quotes/{created['id']}/status",
            json={"status": "declined"},
            headers=_make_auth_header(),
        )
        assert resp.status_code == 400
        assert "Invalid status transition" in resp.json()["error"]

    def test_update_without_changes_keeps_version(self, client, client_record, store):
        created = client.post(
            "/quotes/",
            json={"client_id": str(client_record.id), "service_id": "svc-1", "items": [_item()]},
            headers=_make_auth_header(),
        ).json()["data"]

        resp = client.put(
            f"/quotes/{created['id']}",
            json={"service_id": "svc-1"},
            headers=_make_auth_header(),
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["version"] == 0
        assert [w[0] for w in store.writes] == ["create"]

    def test_delete(self, client, client_record, store):
        created = client.post(
            "/quotes/",
            json={"client_id": str(client_record.id), "service_id": "svc-1", "items": [_item()]},
            headers=_make_auth_header(),
        ).json()["data"]

        resp = client.delete(f"/quotes/{created['id']}", headers=_make_auth_header())
        assert resp.status_code == 200
        assert resp.json() == {"success": True}
        assert store.quotes == {}

    def test_page_rejects_oversized_limit(self, client):
        resp = client.get("/quotes/page?limit=500", headers=_make_auth_header())
        assert resp.status_code == 422

    def test_period_with_bad_dates_is_400(self, client):
        resp = client.get("/quotes/period?start=yesterday&end=today", headers=_make_auth_header())
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid dates"

    def test_unexpected_failure_is_500(self, mock_settings):
        broken = MagicMock()
        broken.list_quotes = AsyncMock(side_effect=RuntimeError("connection refused"))
        client = TestClient(_build_app(broken), raise_server_exceptions=False)

        resp = client.get("/quotes/", headers=_make_auth_header())

        assert resp.status_code == 500
        assert resp.json() == {"success": False, "error": INTERNAL_ERROR_MESSAGE}


class TestPreviews:
    def test_installment_preview(self, client):
        resp = client.post(
            "/quotes/installments/preview",
            json={"total_value": "10000", "entry_percent": 20},
            headers=_make_auth_header(),
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["text"].startswith("Entry of 20% (2.000,00)")
        assert len(data["plan"]["options"]) == 6

    def test_installment_preview_rejects_odd_percent(self, client):
        resp = client.post(
            "/quotes/installments/preview",
            json={"total_value": "10000", "entry_percent": 12},
            headers=_make_auth_header(),
        )
        assert resp.status_code == 400
        assert resp.json()["error"].startswith("Entry percent must be one of")

    def test_discount_preview(self, client):
        resp = client.post(
            "/quotes/discount/preview",
            json={"total_value": "1500", "percent": "10"},
            headers=_make_auth_header(),
        )
        data = resp.json()["data"]
        assert Decimal(str(data["discount_value"])) == Decimal("150")
        assert Decimal(str(data["final_value"])) == Decimal("1350")

    def test_zero_discount_preview_is_null(self, client):
        resp = client.post(
            "/quotes/discount/preview",
            json={"total_value": "1500", "percent": "0"},
            headers=_make_auth_header(),
        )
        assert resp.json() == {"success": True, "data": None}
