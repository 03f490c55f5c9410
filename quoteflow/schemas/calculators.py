"""Pydantic schemas for calculator inputs and results.

Pure data classes with no business logic beyond display selection. Used by the
installment planner and the cash-discount calculator, and embedded in quotes.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_DISPLAYED_INSTALLMENTS: tuple[int, ...] = (1, 2)


class InstallmentConfig(BaseModel):
    """Tiered-interest parameters for the installment planner."""

    model_config = ConfigDict(frozen=True)

    max_installments: int = Field(default=6, ge=1)
    interest_free_threshold: int = Field(default=3, ge=1)
    interest_rate: Decimal = Field(default=Decimal("2.5"), ge=0)
    min_installment_value: Decimal = Field(default=Decimal("1000"), ge=0)


class InstallmentOption(BaseModel):
    """Paying the remaining balance in ``installment_number`` payments."""

    installment_number: int
    value: Decimal
    has_interest: bool
    rate: Decimal  # applied % per installment, 0 when interest-free
    plan_total: Decimal  # entry + remaining balance with interest
    below_minimum: bool = False


class InstallmentPlan(BaseModel):
    """Entry payment plus the full schedule of installment options."""

    entry_percent: int
    entry_value: Decimal
    remaining_value: Decimal
    options: list[InstallmentOption] = Field(default_factory=list)
    selected_installments: list[int] | None = None

    def displayed_options(self) -> list[InstallmentOption]:
        """Options to print: the caller's selection, else 1x and 2x."""
        wanted = self.selected_installments or list(DEFAULT_DISPLAYED_INSTALLMENTS)
        return [opt for opt in self.options if opt.installment_number in wanted]


class DiscountInfo(BaseModel):
    """Cash-payment discount."""

    percent: Decimal
    discount_value: Decimal
    final_value: Decimal


class InstallmentPreviewRequest(BaseModel):
    """Ask for the installment options of a total before saving a quote."""

    total_value: Decimal = Field(ge=0)
    entry_percent: int = 20
    selected_installments: list[int] | None = None


class InstallmentPreview(BaseModel):
    plan: InstallmentPlan
    text: str


class DiscountPreviewRequest(BaseModel):
    total_value: Decimal = Field(ge=0)
    percent: Decimal = Decimal("0")
