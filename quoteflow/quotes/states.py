"""Quote status definitions and transition map.

A quote starts open. Any closed status (accepted, declined, expired) can only
go back to open; open is the only status from which a quote can close.
"""

from __future__ import annotations

from quoteflow.models.enums import QuoteStatus

# Transition map: {current_status: {allowed target statuses}}
TRANSITIONS: dict[QuoteStatus, frozenset[QuoteStatus]] = {
    QuoteStatus.OPEN: frozenset(
        {QuoteStatus.ACCEPTED, QuoteStatus.DECLINED, QuoteStatus.EXPIRED}
    ),
    QuoteStatus.ACCEPTED: frozenset({QuoteStatus.OPEN}),
    QuoteStatus.DECLINED: frozenset({QuoteStatus.OPEN}),
    QuoteStatus.EXPIRED: frozenset({QuoteStatus.OPEN}),
}

# Only open quotes accept content edits.
EDITABLE_STATUSES: frozenset[QuoteStatus] = frozenset({QuoteStatus.OPEN})

# Accepted quotes may carry follow-ups and cannot be removed.
UNDELETABLE_STATUSES: frozenset[QuoteStatus] = frozenset({QuoteStatus.ACCEPTED})
