"""Tests for quoteflow/store/sql.py: row mapping and counter handling."""

from __future__ import annotations

import contextlib
import uuid
from datetime import UTC, datetime
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from conftest import NOW, InMemoryClientDirectory, RecordingPublisher, StaticSettingsProvider
from sqlalchemy.exc import IntegrityError, PendingRollbackError

from quoteflow.calculators import calculate_discount
from quoteflow.config import QuoteDefaults
from quoteflow.errors import NotFoundError
from quoteflow.models.enums import PaymentCondition, QuoteStatus
from quoteflow.models.quote import QuoteCounter, QuoteRecord
from quoteflow.quotes.service import QuoteService
from quoteflow.quotes.totals import compute_items
from quoteflow.schemas.client import ClientSnapshot
from quoteflow.schemas.quote import QuoteItemInput
from quoteflow.store.sql import (
    QUOTE_COUNTER,
    SqlClientDirectory,
    SqlQuoteStore,
    SqlSettingsProvider,
    quote_from_record,
    record_values,
)


@pytest.fixture
def mock_db():
    """Create a mock async DB session."""
    db = AsyncMock()
    db.add = MagicMock()
    return db


def _make_row(**overrides) -> QuoteRecord:
    values = {
        "id": uuid.uuid4(),
        "sequence_number": 7,
        "version": 1,
        "status": "accepted",
        "client_id": uuid.uuid4(),
        "client_snapshot": {"name": "Padaria Central", "tax_id": "12345678901"},
        "issue_date": "2026-03-02T10:00:00",
        "expiry_date": datetime(2026, 4, 1, tzinfo=UTC),
        "accepted_date": None,
        "service_id": "svc-1",
        "service_description": None,
        "items": [
            {
                "category_id": "cat-1",
                "description": "Smoke detector",
                "quantity": "3",
                "unit_labor_price": "20",
                "unit_material_price": "60",
                "labor_total": "60",
                "material_total": "180",
                "total": "240",
            }
        ],
        "limitation_ids": [],
        "execution_deadline_days": None,
        "inspection_deadline_days": None,
        "payment_condition": "cash",
        "installment_text": None,
        "installment_plan": None,
        "discount": None,
        "show_detailed_values": False,
        "labor_total": Decimal("60"),
        "material_total": Decimal("180"),
        "total_value": None,
        "notes": None,
        "consultant": None,
        "contact": None,
        "email": None,
        "phone": None,
        "service_address": None,
        "created_at": datetime(2026, 3, 2, 10, 0, tzinfo=UTC),
        "updated_at": None,
    }
    values.update(overrides)
    return QuoteRecord(**values)


class TestRowMapping:
    def test_quote_from_record_normalizes(self):
        row = _make_row()
        quote = quote_from_record(row)

        assert quote.id == row.id
        assert quote.status == QuoteStatus.ACCEPTED
        assert quote.client.name == "Padaria Central"
        assert quote.issue_date == datetime(2026, 3, 2, 10, 0, tzinfo=UTC)
        assert quote.total_value == Decimal("0")
        assert quote.items[0].total == Decimal("240")
        assert quote.payment_condition == PaymentCondition.CASH

    def test_record_values_dumps_documents(self):
        items = compute_items([
            QuoteItemInput(
                category_id="cat-1",
                description="Smoke detector",
                quantity=Decimal("3"),
                unit_labor_price=Decimal("20"),
                unit_material_price=Decimal("60"),
            )
        ])
        columns = record_values({
            "client": ClientSnapshot(name="Padaria Central"),
            "items": items,
            "discount": calculate_discount(Decimal("240"), 5),
            "status": QuoteStatus.OPEN,
            "notes": "Rear entrance",
        })

        assert columns["client_snapshot"]["name"] == "Padaria Central"
        assert "client" not in columns
        assert columns["items"][0]["description"] == "Smoke detector"
        assert isinstance(columns["items"][0]["quantity"], str)
        assert columns["discount"]["final_value"] == "228"
        assert columns["status"] == "open"
        assert columns["notes"] == "Rear entrance"

    def test_record_values_keeps_cleared_documents(self):
        assert record_values({"installment_plan": None, "limitation_ids": []}) == {
            "installment_plan": None,
            "limitation_ids": [],
        }

    def test_amount_columns_store_item_sums_exactly(self):
        items = compute_items([
            QuoteItemInput(
                category_id="cat-1",
                description="Cable tray",
                quantity=Decimal("2.375"),
                unit_labor_price=Decimal("10.125"),
                unit_material_price=Decimal("0.3333"),
            )
        ])
        # 2.375 * 10.4583 has seven decimal places
        assert items[0].total == Decimal("24.83846250")
        for name in ("labor_total", "material_total", "total_value"):
            column_type = QuoteRecord.__table__.c[name].type
            assert column_type.precision is None
            assert column_type.scale is None


class TestSqlQuoteStore:
    @pytest.mark.asyncio
    async def test_find_by_id_missing(self, mock_db):
        mock_db.get.return_value = None
        assert await SqlQuoteStore(mock_db).find_by_id(uuid.uuid4()) is None

    @pytest.mark.asyncio
    async def test_update_missing_raises(self, mock_db):
        mock_db.get.return_value = None
        with pytest.raises(NotFoundError):
            await SqlQuoteStore(mock_db).update(uuid.uuid4(), {"notes": "x"})

    @pytest.mark.asyncio
    async def test_update_sets_columns(self, mock_db):
        row = _make_row(status="open")
        mock_db.get.return_value = row

        quote = await SqlQuoteStore(mock_db).update(row.id, {"notes": "Rear entrance", "version": 2})

        assert row.notes == "Rear entrance"
        assert quote.version == 2
        mock_db.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_update_status_stamps_accepted_date(self, mock_db):
        row = _make_row(status="open")
        mock_db.get.return_value = row
        accepted = datetime(2026, 3, 10, tzinfo=UTC)

        quote = await SqlQuoteStore(mock_db).update_status(
            row.id, QuoteStatus.ACCEPTED, accepted_date=accepted
        )

        assert row.status == "accepted"
        assert quote.accepted_date == accepted

    @pytest.mark.asyncio
    async def test_next_sequence_increments_counter(self, mock_db):
        counter = QuoteCounter(name=QUOTE_COUNTER, last_value=41)
        mock_db.get.return_value = counter

        assert await SqlQuoteStore(mock_db).next_sequence_number() == 42
        assert counter.last_value == 42
        mock_db.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_next_sequence_seeds_from_highest(self, mock_db):
        mock_db.get.return_value = None
        max_result = MagicMock()
        max_result.scalar.return_value = 83
        mock_db.execute.return_value = max_result

        assert await SqlQuoteStore(mock_db).next_sequence_number() == 84
        counter = mock_db.add.call_args[0][0]
        assert isinstance(counter, QuoteCounter)
        assert counter.name == QUOTE_COUNTER

    @pytest.mark.asyncio
    async def test_aggregate_stats(self, mock_db):
        result = MagicMock()
        result.all.return_value = [
            ("open", 3, Decimal("900")),
            ("accepted", 2, Decimal("4500.50")),
            ("expired", 1, Decimal("100")),
        ]
        mock_db.execute.return_value = result

        stats = await SqlQuoteStore(mock_db).aggregate_stats()

        assert stats.total == 6
        assert stats.open == 3
        assert stats.accepted == 2
        assert stats.accepted_value == Decimal("4500.50")
        assert stats.declined == 0
        assert stats.expired == 1


class TestSqlClientDirectory:
    @pytest.mark.asyncio
    async def test_missing_client(self, mock_db):
        mock_db.get.return_value = None
        with pytest.raises(NotFoundError, match="Client not found"):
            await SqlClientDirectory(mock_db).find_by_id(uuid.uuid4())


class TestSqlSettingsProvider:
    @pytest.mark.asyncio
    async def test_defaults_without_row(self, mock_db):
        result = MagicMock()
        result.scalars.return_value.first.return_value = None
        mock_db.execute.return_value = result

        general = await SqlSettingsProvider(mock_db, QuoteDefaults(validity_days=15)).get()

        assert general.validity_days == 15
        assert general.max_installments == 6

    @pytest.mark.asyncio
    async def test_saved_values_override(self, mock_db):
        row = SimpleNamespace(
            validity_days=45,
            max_installments=None,
            min_installment_value=Decimal("500"),
            interest_free_threshold=None,
            interest_rate_per_installment=Decimal("0"),
        )
        result = MagicMock()
        result.scalars.return_value.first.return_value = row
        mock_db.execute.return_value = result

        general = await SqlSettingsProvider(mock_db, QuoteDefaults()).get()

        assert general.validity_days == 45
        assert general.min_installment_value == Decimal("500")
        assert general.max_installments == 6
        assert general.interest_rate_per_installment == Decimal("2.5")


class _SavepointSession:
    """Session double that fails like AsyncSession: after a failed flush every
    later call raises PendingRollbackError unless a savepoint rolled it back."""

    def __init__(self, rows: list[QuoteRecord], failing_id: uuid.UUID) -> None:
        self.rows = {row.id: row for row in rows}
        self.failing_id = failing_id
        self.needs_rollback = False
        self.savepoints = 0
        self._current: uuid.UUID | None = None

    async def execute(self, statement):
        self._check()
        result = MagicMock()
        result.scalars.return_value.all.return_value = list(self.rows.values())
        return result

    async def get(self, model, key):
        self._check()
        self._current = key
        return self.rows.get(key)

    async def flush(self):
        self._check()
        if self._current == self.failing_id:
            self.needs_rollback = True
            raise IntegrityError("UPDATE quotes SET status", {}, Exception("check constraint violated"))

    async def refresh(self, row):
        self._check()

    @contextlib.asynccontextmanager
    async def begin_nested(self):
        self._check()
        self.savepoints += 1
        try:
            yield
        except Exception:
            self.needs_rollback = False
            self.rows[self._current].status = QuoteStatus.OPEN.value
            raise

    def _check(self) -> None:
        if self.needs_rollback:
            raise PendingRollbackError("Session's transaction has been rolled back")


class TestExpirySweepOnSession:
    @pytest.mark.asyncio
    async def test_failed_write_does_not_poison_later_quotes(self):
        first = _make_row(id=uuid.uuid4(), status="open", sequence_number=1)
        broken = _make_row(id=uuid.uuid4(), status="open", sequence_number=2)
        last = _make_row(id=uuid.uuid4(), status="open", sequence_number=3)
        session = _SavepointSession([first, broken, last], failing_id=broken.id)
        service = QuoteService(
            store=SqlQuoteStore(session),
            clients=InMemoryClientDirectory(),
            settings_provider=StaticSettingsProvider(),
            publisher=RecordingPublisher(),
            now=lambda: NOW,
        )

        report = await service.verify_expired()

        assert report.expired == 2
        assert [f.quote_id for f in report.failures] == [broken.id]
        assert "check constraint" in report.failures[0].error
        assert first.status == "expired"
        assert broken.status == "open"
        assert last.status == "expired"
        assert session.savepoints == 3
        assert not session.needs_rollback
