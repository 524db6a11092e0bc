from __future__ import annotations


class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400
    code = "domain_error"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "validation_error"


class AuthenticationError(DomainError):
    """Raised when the caller carries no identity."""

    status_code = 401
    code = "authentication_required"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403
    code = "forbidden"


class NotFoundError(DomainError):
    status_code = 404
    code = "not_found"


class AlreadyCheckedIn(DomainError):
    """Check-in attempted while today's cycle is still open."""

    status_code = 409
    code = "already_checked_in"


class NoActiveCheckIn(DomainError):
    """Check-out or lunch break attempted without an open check-in."""

    status_code = 409
    code = "no_active_check_in"


class LunchBreakAlreadyActive(DomainError):
    status_code = 409
    code = "lunch_break_already_active"


class LunchBreakNotActive(DomainError):
    status_code = 409
    code = "lunch_break_not_active"


class TransactionConflict(DomainError):
    """Concurrent writers kept colliding on the same document; safe to retry."""

    status_code = 409
    code = "transaction_conflict"


class BackendUnavailable(DomainError):
    """The document store could not be reached; always retryable."""

    status_code = 503
    code = "backend_unavailable"


class IndexMissing(DomainError):
    """Ordered query has no server-side index. Views recover by sorting in memory."""

    status_code = 500
    code = "index_missing"
