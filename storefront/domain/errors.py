"""Business error taxonomy shared by the storefront services.

Every error carries the HTTP status it maps to and a stable, client-safe
message. The API layer renders them as ``{"success": false, "message": ...}``.
"""

from typing import Optional


class StorefrontError(Exception):
    """Base class for expected, client-facing failures."""

    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(StorefrontError, ValueError):
    """A required field is missing, blank or out of range."""

    status_code = 400
    default_message = "Invalid request"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class PayloadTooLarge(ValidationFailed):
    status_code = 413
    default_message = "Photo should be less than 1mb"


class DuplicateUser(StorefrontError):
    # expected input, reported as a logical failure rather than an HTTP error
    status_code = 200
    default_message = "Already Register please login"


class DuplicateCategory(StorefrontError):
    status_code = 200
    default_message = "Category already exists"


class InvalidCredentials(StorefrontError):
    """Login failed. Subclasses never change the message or status."""

    status_code = 401
    default_message = "Invalid email or password"

    def __init__(self) -> None:
        super().__init__(self.default_message)


class UserNotFound(InvalidCredentials):
    pass


class WrongPassword(InvalidCredentials):
    pass


class NoMatch(StorefrontError):
    status_code = 404
    default_message = "Wrong Email Or Answer"


class NotFound(StorefrontError):
    status_code = 404
    default_message = "Not found"


class Unauthenticated(StorefrontError):
    status_code = 401
    default_message = "Invalid or expired token"


class Unauthorized(StorefrontError):
    status_code = 403
    default_message = "UnAuthorized Access"


class OutOfStock(StorefrontError):
    status_code = 409
    default_message = "Insufficient stock"


class InvalidTransition(StorefrontError):
    status_code = 409
    default_message = "Order status cannot be changed"


class PaymentDeclined(StorefrontError):
    status_code = 402
    default_message = "Payment was declined"


class PaymentGatewayError(StorefrontError):
    status_code = 502
    default_message = "Payment gateway unavailable"
