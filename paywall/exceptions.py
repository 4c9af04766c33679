"""Errors raised by the paywall and rendered as ``{"error": message}``."""


class PaywallError(Exception):
    """Base class carrying the HTTP status the error maps to."""

    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ValidationError(PaywallError):
    """Missing or malformed input."""

    status_code = 400


class NotFoundError(PaywallError):
    status_code = 404


class PaymentRequiredError(PaywallError):
    """The caller has not completed payment for the resource."""

    status_code = 402


class ProviderError(PaywallError):
    """The payment provider failed or answered with an error."""

    status_code = 500
