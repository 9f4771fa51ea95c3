"""Failure taxonomy for the checkout flow.

Everything except `ConfigurationError` is caught at the orchestrator boundary
and turned into a failed `PaymentResult`.
"""

from typing import Any


class GatewayError(Exception):
    """Base class for request-scoped checkout failures."""

    status_code = 500

    def __init__(self, message: str, body: Any = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.body = body
        if status_code is not None:
            self.status_code = status_code


class ValidationError(GatewayError):
    """Caller payload is malformed or incomplete; nothing was sent."""

    status_code = 400

    def __init__(self, message: str, body: Any = None, missing_fields: list[str] | None = None) -> None:
        super().__init__(message, body=body)
        self.missing_fields = missing_fields or []


class EnvelopeError(GatewayError):
    """Envelope could not be sealed or opened."""


class EncodingError(EnvelopeError):
    """Input is not valid hex, not block aligned, or not UTF-8."""


class PaddingError(EnvelopeError):
    """Decrypted text failed the processor's padding-length check."""


class ProcessorError(GatewayError):
    """Processor answered with a falsy status."""

    status_code = 400


class TokenMissingError(GatewayError):
    """Processor reported success but returned no payment token."""


class TransportError(GatewayError):
    """Processor could not be reached or answered with a non-2xx status."""


class ConfigurationError(Exception):
    """Process-wide configuration is missing or invalid. Fatal at startup."""
