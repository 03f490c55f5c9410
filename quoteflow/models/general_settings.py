"""GeneralSettingsRecord model: tenant-wide quoting parameters (single row)."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from quoteflow.models.base import Base, TimestampMixin


class GeneralSettingsRecord(TimestampMixin, Base):
    """Validity and installment parameters used when issuing quotes."""

    __tablename__ = "general_settings"

    company_name: Mapped[str | None] = mapped_column(String(200))
    validity_days: Mapped[int] = mapped_column(Integer, nullable=False)

    # Installments
    max_installments: Mapped[int | None] = mapped_column(Integer)
    min_installment_value: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    interest_free_threshold: Mapped[int | None] = mapped_column(
        Integer, comment="First installment count that carries interest"
    )
    interest_rate_per_installment: Mapped[Decimal | None] = mapped_column(
        Numeric(5, 2), comment="Percent per installment with interest"
    )

    def __repr__(self) -> str:
        return f"<GeneralSettingsRecord validity_days={self.validity_days}>"
