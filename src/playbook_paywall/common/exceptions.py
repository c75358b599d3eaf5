"""Playbook Paywall exception hierarchy."""


class PaywallError(Exception):
    """Base exception for all paywall errors."""

    def __init__(self, message: str = "", code: str = "PAYWALL_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class UnauthenticatedError(PaywallError):
    """Raised when a bearer credential is missing or does not resolve to a user."""

    def __init__(self, message: str = "Unauthenticated"):
        super().__init__(message, code="UNAUTHENTICATED")


class NotFoundError(PaywallError):
    """Raised when a referenced product does not exist."""

    def __init__(self, message: str = "Not found", code: str = "NOT_FOUND"):
        super().__init__(message, code=code)


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id: str = ""):
        self.product_id = product_id
        super().__init__(f"Unknown product: {product_id!r}", code="PRODUCT_NOT_FOUND")


class InvalidRequestError(PaywallError):
    """Raised when caller-supplied input fails validation."""

    def __init__(self, message: str = "Invalid request", code: str = "INVALID_REQUEST"):
        super().__init__(message, code=code)


class UnsupportedCurrencyError(InvalidRequestError):
    def __init__(self, currency: str = ""):
        self.currency = currency
        super().__init__(f"Unsupported currency: {currency!r}", code="UNSUPPORTED_CURRENCY")


class ConfigurationError(PaywallError):
    """Raised when price or environment configuration is missing."""

    def __init__(self, message: str = "Server misconfigured"):
        super().__init__(message, code="CONFIGURATION_ERROR")


class ProfileWriteError(PaywallError):
    """Raised when persisting a profile fails. Safe to retry."""

    def __init__(self, message: str = "Failed to update profile"):
        super().__init__(message, code="WRITE_ERROR")


class UnauthorizedError(PaywallError):
    """Raised when a debug grant is attempted where it is not allowed."""

    def __init__(self, message: str = "Debug grants are disabled"):
        super().__init__(message, code="UNAUTHORIZED")


class IdentityProviderError(PaywallError):
    """Raised when the identity provider is unreachable or answers garbage."""

    def __init__(self, message: str = "Identity provider unavailable"):
        super().__init__(message, code="IDENTITY_PROVIDER_ERROR")


class PaymentProviderError(PaywallError):
    """Raised when the payment provider fails or times out."""

    def __init__(self, message: str = "Payment provider request failed"):
        super().__init__(message, code="PAYMENT_PROVIDER_ERROR")
