"""
Error taxonomy for session, refund and reschedule rules.

Each error carries a stable ``code`` and the HTTP status it maps to, so the
handler in ``clinic.main`` can tell the caller exactly why a request was
rejected (re-quote, re-read, fix input, or give up).
"""

from typing import Any, Dict, Optional


class ClinicError(Exception):
    """Base class for rule violations surfaced to the caller."""
    code = "CLINIC_ERROR"
    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.code, "detail": self.message, **self.details}


class InvalidInput(ClinicError):
    """Malformed or out-of-range argument."""
    code = "INVALID_INPUT"
    status_code = 400


class InvalidTimestamp(InvalidInput):
    """A timestamp could not be parsed."""
    code = "INVALID_TIMESTAMP"


class QuoteMismatch(ClinicError):
    """Client refund preview disagrees with the server recomputation."""
    code = "QUOTE_MISMATCH"
    status_code = 409


class ConcurrentModification(ClinicError):
    """Session changed between read and commit."""
    code = "CONCURRENT_MODIFICATION"
    status_code = 409


class NotEligible(ClinicError):
    """Status or policy forbids the requested action."""
    code = "NOT_ELIGIBLE"
    status_code = 400
