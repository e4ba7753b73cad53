"""
Error taxonomy shared by services and routes.

Services raise these; `payview.main` renders every one of them as
``{"error": message}`` with the class's status code.
"""


class PaywallError(Exception):
    status_code = 400
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(PaywallError):
    """Malformed or out-of-range input, rejected before any write or external call."""


class NotPurchasableError(ValidationError):
    pass


class AuthorizationError(PaywallError):
    """Unauthenticated or not allowed. Never says whether the resource exists."""

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class SignatureError(PaywallError):
    pass


class NotFoundError(PaywallError):
    pass


class UpstreamError(PaywallError):
    """Stripe or object storage failed or timed out. Safe for the caller to retry."""

    status_code = 503
    retryable = True


class StorageError(PaywallError):
    """The relational store is unavailable."""

    status_code = 503
    retryable = True
