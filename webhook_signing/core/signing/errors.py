"""
Webhook Authentication Errors

Every failure of an inbound webhook check raises exactly one of the
WebhookAuthenticationError subclasses below. They are terminal: the values
carried in `context` come from an unverified request and are for operator
diagnosis only.
"""

from enum import Enum
from typing import Any, Dict, Optional


class VerificationError(Enum):
    """Enumeration of possible authentication failures."""
    HEADER_PARSE_ERROR = "header_parse_error"
    INVALID_HEADER = "invalid_header"
    SIGNATURE_MISMATCH = "signature_mismatch"
    STALE_SIGNATURE = "stale_signature"


class WebhookAuthenticationError(Exception):
    """
    Base class for rejected webhooks.

    Attributes:
        error: Machine-readable failure type
        context: Untrusted request values (uri, submission_id, form_id, epoch, signature)
    """
    error: VerificationError

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}


class HeaderParseError(WebhookAuthenticationError):
    """Header text does not follow the k=v,k=v,... grammar."""
    error = VerificationError.HEADER_PARSE_ERROR


class InvalidHeaderError(WebhookAuthenticationError):
    """Header parsed but a required field is missing or the epoch is not a number."""
    error = VerificationError.INVALID_HEADER


class SignatureMismatchError(WebhookAuthenticationError):
    """Signature did not verify against the base string."""
    error = VerificationError.SIGNATURE_MISMATCH


class StaleSignatureError(WebhookAuthenticationError):
    """Epoch is outside the replay window (too old or not in the past)."""
    error = VerificationError.STALE_SIGNATURE


class SigningUnavailableError(RuntimeError):
    """Signing was requested but no webhook secret key is configured."""


class UnknownModeError(KeyError):
    """No public key is registered for the requested mode."""
