"""Domain error kinds raised by the quote engine.

The API layer maps ``status_code`` onto the HTTP response; anything that is
not a ``QuoteFlowError`` is treated as an internal failure.
"""

from __future__ import annotations


class QuoteFlowError(Exception):
    """Base class for expected, user-facing failures."""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(QuoteFlowError):
    """Malformed input, illegal status transition or business-rule violation."""

    status_code = 400


class NotFoundError(QuoteFlowError):
    """A referenced entity does not exist."""

    status_code = 404
