"""Display formatting for amounts, dates and quote numbers.

Amounts use the Brazilian separators ("1.234,50"); quote numbers follow the
YYNNNN_vVV pattern printed on proposals.
"""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal


def format_currency(value: Decimal | float | int | None) -> str:
    """Format as Brazilian amount: 1234.5 -> "1.234,50"."""
    if value is None:
        return "-"
    d = Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    formatted = f"{d:,.2f}"
    # US: 1,234.50 -> BR: 1.234,50
    return formatted.replace(",", "X").replace(".", ",").replace("X", ".")


def format_date(value: datetime | None) -> str:
    """Format as DD/MM/YYYY."""
    if value is None:
        return "-"
    return value.strftime("%d/%m/%Y")


def format_quote_number(sequence_number: int, issue_date: datetime, version: int = 0) -> str:
    """Year, sequence and version: (84, 2026-..., 0) -> "260084_v00"."""
    return f"{format_quote_number_short(sequence_number, issue_date)}_v{version:02d}"


def format_quote_number_short(sequence_number: int, issue_date: datetime | None) -> str:
    """Year and sequence only, for reports. Just the sequence when the date is missing."""
    if issue_date is None:
        return str(sequence_number)
    return f"{issue_date.year % 100:02d}{sequence_number:04d}"
