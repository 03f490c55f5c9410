"""ClientRecord model: the businesses and people quotes are addressed to."""

from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from quoteflow.models.base import Base, TimestampMixin


class ClientRecord(TimestampMixin, Base):
    """A client. Quotes copy a snapshot of these fields when issued."""

    __tablename__ = "clients"

    legal_name: Mapped[str] = mapped_column(String(200), nullable=False)
    trade_name: Mapped[str | None] = mapped_column(String(200))
    tax_id: Mapped[str | None] = mapped_column(String(20), index=True, comment="CPF or CNPJ")
    person_type: Mapped[str | None] = mapped_column(String(20))

    # Address and contact
    address: Mapped[str | None] = mapped_column(String(300))
    city: Mapped[str | None] = mapped_column(String(100))
    state: Mapped[str | None] = mapped_column(String(2))
    zip_code: Mapped[str | None] = mapped_column(String(10))
    phone: Mapped[str | None] = mapped_column(String(30))
    email: Mapped[str | None] = mapped_column(String(255))

    def __repr__(self) -> str:
        return f"<ClientRecord id={self.id} legal_name={self.legal_name}>"
