"""Security module: API authentication lives in quoteflow.api.auth, the audit trail here."""

from quoteflow.security.audit import audit_on_event

__all__ = ["audit_on_event"]
