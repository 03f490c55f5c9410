"""Payment calculators: installment plans and cash discounts."""

from quoteflow.calculators.discount import calculate_discount
from quoteflow.calculators.installments import (
    ENTRY_PERCENT_OPTIONS,
    calculate_installment_plan,
    describe_installment_plan,
)

__all__ = [
    "ENTRY_PERCENT_OPTIONS",
    "calculate_discount",
    "calculate_installment_plan",
    "describe_installment_plan",
]
