"""
Exception Classes - typed hierarchy for the purchase and webhook paths.

Messages on client-facing errors are shown to shoppers as-is; upstream
detail lives on attributes and is only logged.
"""

from typing import Optional


class StorefrontError(Exception):
    """Base exception for all storefront errors."""

    pass


class ValidationError(StorefrontError):
    """Raised when a purchase request fails an input rule."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class RateLimitError(StorefrontError):
    """Raised when a phone number exceeded its purchase attempt allowance."""

    def __init__(self, phone_number: str, attempts_last_hour: int, attempts_last_month: int) -> None:
        self.phone_number = phone_number
        self.attempts_last_hour = attempts_last_hour
        self.attempts_last_month = attempts_last_month
        super().__init__(
            f"Too many purchase attempts: {attempts_last_hour} in the last hour, "
            f"{attempts_last_month} in the last 30 days"
        )


class AuthError(StorefrontError):
    """Raised when the payment gateway rejects our client credentials."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Gateway authentication failed: {detail}")


class GatewayError(StorefrontError):
    """Raised when a charge could not be created upstream."""

    def __init__(self, message: str, detail: Optional[str] = None, status_code: Optional[int] = None) -> None:
        self.message = message
        self.detail = detail
        self.status_code = status_code
        super().__init__(f"Payment gateway error: {message}")


class SignatureError(StorefrontError):
    """Raised when a webhook signature is missing or does not match."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Webhook signature rejected: {reason}")


class MalformedPayloadError(StorefrontError):
    """Raised when a verified webhook body lacks required fields."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Malformed webhook payload: {reason}")


class NotFoundError(StorefrontError):
    """Raised when a referenced record doesn't exist."""

    def __init__(self, resource: str, identifier: object) -> None:
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")


class InvalidTransitionError(StorefrontError):
    """Raised when a purchase status change would move backwards."""

    def __init__(self, current: str, requested: str) -> None:
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move purchase from {current} to {requested}")


class PersistenceError(StorefrontError):
    """Raised when the purchase store fails; the enclosing unit is rolled back."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Persistence error: {message}")
