"""Domain exceptions for the storefront core.

Every error carries the HTTP status it maps to, a machine-checkable
``reason`` and optional extra fields that are rendered next to ``error``
in the response body.
"""


class StorefrontError(Exception):
    """Base exception for all storefront errors."""

    status_code = 500
    reason = "error"

    def __init__(self, message: str, reason: str | None = None, **extra):
        super().__init__(message)
        self.message = message
        if reason:
            self.reason = reason
        self.extra = extra


class ValidationError(StorefrontError):
    """Raised when a request is missing fields or carries bad values."""

    status_code = 400
    reason = "invalid_request"


class NotFoundError(StorefrontError):
    """Raised when a coupon, product or order does not exist."""

    status_code = 404
    reason = "not_found"


class BusinessRuleViolation(StorefrontError):
    """Raised when a request is well formed but breaks a store rule."""

    status_code = 400
    reason = "business_rule"


class PersistenceError(StorefrontError):
    """Raised when the underlying store fails. Never exposes the cause."""

    status_code = 500
    reason = "persistence"

    def __init__(self, message: str = "Unexpected storage failure"):
        super().__init__(message)
