"""General settings contract consumed by the quote engine."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from quoteflow.schemas.calculators import InstallmentConfig


class GeneralSettings(BaseModel):
    """Validity and installment parameters (see config.QuoteDefaults for fallbacks)."""

    model_config = ConfigDict(from_attributes=True)

    validity_days: int = Field(default=30, ge=1, le=365)
    max_installments: int = 6
    min_installment_value: Decimal = Decimal("1000")
    interest_free_threshold: int = 3
    interest_rate_per_installment: Decimal = Decimal("2.5")

    def installment_config(self) -> InstallmentConfig:
        return InstallmentConfig(
            max_installments=self.max_installments,
            interest_free_threshold=self.interest_free_threshold,
            interest_rate=self.interest_rate_per_installment,
            min_installment_value=self.min_installment_value,
        )
