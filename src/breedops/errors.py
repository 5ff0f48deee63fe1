"""Summary: Error taxonomy shared by services and the HTTP layer.

Importance: Separates client mistakes, missing configuration, and provider failures.
Alternatives: Raise ValueError and RuntimeError everywhere and inspect messages.
"""

from __future__ import annotations


class BreedOpsError(Exception):
    """Base class for application errors."""


class ValidationError(BreedOpsError):
    """Summary: A request is missing or has invalid required fields.

    Importance: Maps to a 400 response with nothing logged or sent.
    Alternatives: Rely on Pydantic validation errors alone.
    """


class ConfigurationError(BreedOpsError):
    """Summary: A required credential or setting is absent.

    Importance: Retrying is pointless until an operator fixes configuration.
    Alternatives: Treat missing credentials as transient provider failures.
    """


class ProviderError(BreedOpsError):
    """Summary: An external provider rejected the call or timed out.

    Importance: Preserves the provider message for audit and retry decisions.
    Alternatives: Surface raw urllib or smtplib exceptions.
    """


class MailDeliveryError(ProviderError):
    """Raised when the mail provider fails to accept a message."""


class RenderError(BreedOpsError):
    """Summary: The document rendering capability failed or timed out.

    Importance: Stops quote generation from reporting success without a document.
    Alternatives: Return an empty PDF and continue.
    """


class QuoteDeliveryError(BreedOpsError):
    """Summary: A quote document was generated but could not be emailed.

    Importance: Lets callers report partial success distinctly from total failure.
    Alternatives: Collapse every quote failure into one generic error.
    """

    def __init__(self, quote_number: str, message: str) -> None:
        super().__init__(message)
        self.quote_number = quote_number
