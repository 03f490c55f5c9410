"""Initial schema: clients, quotes, settings, reminders and audit log.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from __future__ import annotations

from typing import Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, tuple[str, ...], None] = None
depends_on: Union[str, tuple[str, ...], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("id", postgresql.UUID(as_uuid=True), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "audit_log",
        sa.Column("event_type", sa.String(100), nullable=False, index=True),
        sa.Column("quote_id", postgresql.UUID(as_uuid=True), index=True),
        sa.Column("actor_id", sa.String(100), comment="API user or 'system'"),
        sa.Column("data", postgresql.JSONB(astext_type=sa.Text())),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_audit_log"),
    )

    op.create_table(
        "clients",
        sa.Column("legal_name", sa.String(200), nullable=False),
        sa.Column("trade_name", sa.String(200)),
        sa.Column("tax_id", sa.String(20), index=True, comment="CPF or CNPJ"),
        sa.Column("person_type", sa.String(20)),
        sa.Column("address", sa.String(300)),
        sa.Column("city", sa.String(100)),
        sa.Column("state", sa.String(2)),
        sa.Column("zip_code", sa.String(10)),
        sa.Column("phone", sa.String(30)),
        sa.Column("email", sa.String(255)),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_clients"),
    )

    op.create_table(
        "general_settings",
        sa.Column("company_name", sa.String(200)),
        sa.Column("validity_days", sa.Integer(), nullable=False),
        sa.Column("max_installments", sa.Integer()),
        sa.Column("min_installment_value", sa.Numeric(12, 2)),
        sa.Column("interest_free_threshold", sa.Integer(), comment="First installment count that carries interest"),
        sa.Column("interest_rate_per_installment", sa.Numeric(5, 2), comment="Percent per installment with interest"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_general_settings"),
    )

    op.create_table(
        "quote_counters",
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("last_value", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("name", name="pk_quote_counters"),
    )

    op.create_table(
        "quotes",
        sa.Column("sequence_number", sa.Integer(), nullable=False, index=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, index=True),
        sa.Column("client_id", postgresql.UUID(as_uuid=True), nullable=False, index=True),
        sa.Column("client_snapshot", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("issue_date", sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column("expiry_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("accepted_date", sa.DateTime(timezone=True)),
        sa.Column("service_id", sa.String(64)),
        sa.Column("service_description", sa.Text()),
        sa.Column("items", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("limitation_ids", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("execution_deadline_days", sa.Integer()),
        sa.Column("inspection_deadline_days", sa.Integer()),
        sa.Column("payment_condition", sa.String(20)),
        sa.Column("installment_text", sa.Text()),
        sa.Column("installment_plan", postgresql.JSONB(astext_type=sa.Text())),
        sa.Column("discount", postgresql.JSONB(astext_type=sa.Text())),
        sa.Column("show_detailed_values", sa.Boolean(), nullable=False),
        sa.Column("labor_total", sa.Numeric(), nullable=False),
        sa.Column("material_total", sa.Numeric(), nullable=False),
        sa.Column("total_value", sa.Numeric(), nullable=False),
        sa.Column("notes", sa.Text()),
        sa.Column("consultant", sa.String(200)),
        sa.Column("contact", sa.String(200)),
        sa.Column("email", sa.String(255)),
        sa.Column("phone", sa.String(30)),
        sa.Column("service_address", sa.String(300)),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_quotes"),
        sa.UniqueConstraint("sequence_number", name="uq_quotes_sequence_number"),
    )

    op.create_table(
        "follow_up_keywords",
        sa.Column("word", sa.String(100), nullable=False),
        sa.Column("due_days", sa.Integer(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_follow_up_keywords"),
        sa.UniqueConstraint("word", name="uq_follow_up_keywords_word"),
    )

    op.create_table(
        "reminders",
        sa.Column("quote_id", postgresql.UUID(as_uuid=True), nullable=False, index=True),
        sa.Column("quote_number", sa.Integer(), nullable=False),
        sa.Column("quote_issue_date", sa.DateTime(timezone=True)),
        sa.Column("client_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("client_name", sa.String(200), nullable=False),
        sa.Column("item_description", sa.String(500), nullable=False),
        sa.Column("keyword", sa.String(100), nullable=False),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=False, index=True),
        sa.Column("read", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_reminders"),
    )


def downgrade() -> None:
    op.drop_table("reminders")
    op.drop_table("follow_up_keywords")
    op.drop_table("quotes")
    op.drop_table("quote_counters")
    op.drop_table("general_settings")
    op.drop_table("clients")
    op.drop_table("audit_log")
