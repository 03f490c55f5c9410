"""Installment planner with tiered simple interest.

Pure Python, Decimal arithmetic. Business rules:
- The client pays an entry of 10% to 50% (steps of 5) up front
- The remaining balance can be split into 1..max_installments payments
- From ``interest_free_threshold`` payments on, simple interest is charged
  once per payment beyond the threshold (inclusive):
  adjusted = remaining * (1 + rate/100 * (n - threshold + 1))
- Amounts are exact Decimals; rounding to cents happens only for display
- Options whose payment falls below ``min_installment_value`` are flagged,
  never removed, so they stay selectable
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from quoteflow.errors import ValidationError
from quoteflow.formatters import format_currency
from quoteflow.schemas.calculators import InstallmentConfig, InstallmentOption, InstallmentPlan

ENTRY_PERCENT_OPTIONS: tuple[int, ...] = tuple(range(10, 55, 5))

# Shown when no option clears the minimum payment.
SINGLE_PAYMENT_TEXT = "single payment in 30 days"


def _normalize_selection(selected: Iterable[int] | None, max_installments: int) -> list[int] | None:
    """Sorted, de-duplicated selection within 1..max; None when nothing is left."""
    if not selected:
        return None
    cleaned = sorted({n for n in selected if 1 <= n <= max_installments})
    return cleaned or None


def calculate_installment_plan(
    total_value: Decimal,
    entry_percent: int,
    config: InstallmentConfig | None = None,
    selected_installments: Iterable[int] | None = None,
) -> InstallmentPlan:
    """Build every installment option for a quote total.

    Args:
        total_value: Quote total the plan is computed for.
        entry_percent: Up-front share, one of ENTRY_PERCENT_OPTIONS.
        config: Interest and limit parameters (defaults: 6x, interest from 3x
                at 2.5% per installment, minimum payment 1000).
        selected_installments: Options to print; empty means 1x and 2x.

    Returns:
        InstallmentPlan with one option per installment count.

    Raises:
        ValidationError: entry_percent is not an offered option.
    """
    if entry_percent not in ENTRY_PERCENT_OPTIONS:
        msg = f"Entry percent must be one of {list(ENTRY_PERCENT_OPTIONS)}, got {entry_percent}"
        raise ValidationError(msg)

    config = config or InstallmentConfig()
    entry_value = total_value * entry_percent / Decimal("100")
    remaining = total_value - entry_value

    options: list[InstallmentOption] = []
    for n in range(1, config.max_installments + 1):
        has_interest = n >= config.interest_free_threshold
        rate = config.interest_rate if has_interest else Decimal("0")
        adjusted = remaining
        if has_interest:
            # Simple interest for every installment from the threshold on
            charged = n - config.interest_free_threshold + 1
            adjusted = remaining * (1 + rate / Decimal("100") * charged)
        value = adjusted / n
        options.append(
            InstallmentOption(
                installment_number=n,
                value=value,
                has_interest=has_interest,
                rate=rate,
                plan_total=entry_value + adjusted,
                below_minimum=value < config.min_installment_value,
            )
        )

    return InstallmentPlan(
        entry_percent=entry_percent,
        entry_value=entry_value,
        remaining_value=remaining,
        options=options,
        selected_installments=_normalize_selection(selected_installments, config.max_installments),
    )


def describe_installment_plan(plan: InstallmentPlan, config: InstallmentConfig | None = None) -> str:
    """Payment-condition text printed on the quote.

    Example: "Entry of 20% (2.000,00) + balance in up to 6x
    (2.5% interest per installment from 3x)".
    """
    config = config or InstallmentConfig()
    text = f"Entry of {plan.entry_percent}% ({format_currency(plan.entry_value)})"

    available = [opt for opt in plan.options if not opt.below_minimum]
    if not available:
        return f"{text} + {SINGLE_PAYMENT_TEXT}"

    text += f" + balance in up to {available[-1].installment_number}x"
    if any(opt.has_interest for opt in available):
        rate = f"{config.interest_rate.normalize():f}"
        text += f" ({rate}% interest per installment from {config.interest_free_threshold}x)"
    return text
