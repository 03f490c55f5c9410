"""Follow-up keyword and reminder models.

A keyword such as "extinguisher" with ``due_days=345`` means: when a quote
containing an item that mentions it is accepted, remind the team to get back
to the client 345 days later.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from quoteflow.models.base import Base, TimestampMixin


class FollowUpKeyword(TimestampMixin, Base):
    """Word matched against item descriptions of accepted quotes."""

    __tablename__ = "follow_up_keywords"

    word: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    due_days: Mapped[int] = mapped_column(Integer, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<FollowUpKeyword {self.word} +{self.due_days}d>"


class Reminder(TimestampMixin, Base):
    """A follow-up due for one item of an accepted quote."""

    __tablename__ = "reminders"

    quote_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    quote_number: Mapped[int] = mapped_column(Integer, nullable=False)
    quote_issue_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    client_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    client_name: Mapped[str] = mapped_column(String(200), nullable=False)
    item_description: Mapped[str] = mapped_column(String(500), nullable=False)
    keyword: Mapped[str] = mapped_column(String(100), nullable=False)
    due_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<Reminder quote={self.quote_number} keyword={self.keyword} due={self.due_date:%Y-%m-%d}>"
