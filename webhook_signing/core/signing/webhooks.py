"""
Webhook Authentication and Signing

Verifies inbound webhooks and signs outbound ones.

Authentication performs the following checks in order:
1. Parse the signature header
2. Require epoch, submission ID, form ID and signature
3. Verify the Ed25519 signature over the base string
4. Check the epoch is within the replay window

Freshness is only evaluated once the signature is authentic, since an
unauthenticated epoch claim carries no trust.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from webhook_signing.core.signing.basestring import create_base_string
from webhook_signing.core.signing.errors import (
    InvalidHeaderError,
    SignatureMismatchError,
    SigningUnavailableError,
    StaleSignatureError,
)
from webhook_signing.core.signing.header import SignedHeader, encode_header, parse_signature_header
from webhook_signing.core.signing.keys import (
    PrivateKeyLike,
    PublicKeyLike,
    as_private_key,
    as_public_key,
    sign,
    verify,
)
from webhook_signing.core.signing.registry import ModeLike, PublicKeyRegistry, get_public_key
from webhook_signing.core.signing.replay import DEFAULT_REPLAY_WINDOW_MS, is_fresh, now_ms

logger = logging.getLogger(__name__)


def _describe(uri: str, header: SignedHeader) -> str:
    return (
        f"uri={uri} submissionId={header.submission_id} formId={header.form_id} "
        f"epoch={header.epoch} signature={header.signature}"
    )


def _context(uri: str, header: SignedHeader) -> dict:
    return {
        "uri": uri,
        "submission_id": header.submission_id,
        "form_id": header.form_id,
        "epoch": header.epoch,
        "signature": header.signature,
    }


class WebhookAuthenticator:
    """
    Verifies X-FormSG-Signature headers against a public key.

    Stateless apart from the key; safe to share between threads.
    """

    def __init__(
        self,
        public_key: PublicKeyLike,
        replay_window_ms: int = DEFAULT_REPLAY_WINDOW_MS,
        clock: Callable[[], int] = now_ms,
    ):
        """
        Args:
            public_key: Ed25519 public key or its base64 form
            replay_window_ms: Maximum signature age in milliseconds
            clock: Returns the current time in milliseconds
        """
        self.public_key = as_public_key(public_key)
        self.replay_window_ms = replay_window_ms
        self._clock = clock

    def authenticate(self, header: str, uri: str) -> None:
        """
        Authenticate an incoming webhook. Returns silently on success.

        Args:
            header: X-FormSG-Signature header value
            uri: The endpoint the webhook was POSTed to

        Raises:
            HeaderParseError: If the header is not k=v,k=v,...
            InvalidHeaderError: If a field is missing or the epoch is not a number
            SignatureMismatchError: If the signature cannot be verified
            StaleSignatureError: If the signature is not recent
        """
        parsed = parse_signature_header(header)

        if not parsed.is_complete():
            raise InvalidHeaderError(
                f"X-FormSG-Signature header is invalid: {_describe(uri, parsed)}",
                _context(uri, parsed),
            )

        base_string = create_base_string(uri, parsed.submission_id, parsed.form_id, parsed.epoch)
        if not verify(base_string, parsed.signature, self.public_key):
            raise SignatureMismatchError(
                f"Signature could not be verified for {_describe(uri, parsed)}",
                _context(uri, parsed),
            )

        if not is_fresh(parsed.epoch, self.replay_window_ms, now=self._clock()):
            raise StaleSignatureError(
                f"Signature is not recent for {_describe(uri, parsed)}",
                _context(uri, parsed),
            )

        logger.debug(f"Authenticated webhook submissionId={parsed.submission_id} formId={parsed.form_id}")


class WebhookSigner:
    """Signs outbound webhooks with a secret key."""

    def __init__(self, private_key: PrivateKeyLike, clock: Callable[[], int] = now_ms):
        """
        Args:
            private_key: Ed25519 private key or base64 secret key
            clock: Returns the current time in milliseconds
        """
        self._private_key = as_private_key(private_key)
        self._clock = clock

    def generate_signature(self, uri: str, submission_id: str, form_id: str, epoch: int) -> str:
        """
        Generate a signature based on the URI, submission ID, form ID and epoch.

        Returns:
            Base64-encoded signature
        """
        return sign(create_base_string(uri, submission_id, form_id, epoch), self._private_key)

    def sign(self, uri: str, submission_id: str, form_id: str, epoch: Optional[int] = None) -> SignedHeader:
        """
        Sign a webhook for delivery to `uri`.

        Args:
            uri: Full URL the webhook will be POSTed to
            submission_id: Submission identifier
            form_id: Form identifier
            epoch: Milliseconds since Jan 1, 1970 (default: now)

        Returns:
            SignedHeader ready for encode_header()
        """
        if epoch is None:
            epoch = self._clock()
        signature = self.generate_signature(uri, submission_id, form_id, epoch)
        return SignedHeader(
            epoch=int(epoch),
            submission_id=submission_id,
            form_id=form_id,
            signature=signature,
        )

    def construct_header(self, uri: str, submission_id: str, form_id: str, epoch: Optional[int] = None) -> str:
        """Sign and encode the X-FormSG-Signature header value."""
        return encode_header(self.sign(uri, submission_id, form_id, epoch))


@dataclass(frozen=True)
class Webhooks:
    """
    Configured webhook capabilities.

    Attributes:
        authenticator: Verifies inbound webhooks
        signer: Signs outbound webhooks; None for verify-only deployments
    """
    authenticator: WebhookAuthenticator
    signer: Optional[WebhookSigner] = None

    @property
    def can_sign(self) -> bool:
        """Whether a secret key was configured."""
        return self.signer is not None

    def authenticate(self, header: str, uri: str) -> None:
        """See WebhookAuthenticator.authenticate."""
        self.authenticator.authenticate(header, uri)

    def require_signer(self) -> WebhookSigner:
        """
        Get the signer.

        Raises:
            SigningUnavailableError: If no webhook secret key was configured
        """
        if self.signer is None:
            raise SigningUnavailableError("Signing is unavailable: no webhook secret key configured")
        return self.signer


def create_webhooks(
    mode: Optional[ModeLike] = None,
    webhook_secret_key: Optional[PrivateKeyLike] = None,
    public_key: Optional[PublicKeyLike] = None,
    replay_window_ms: Optional[int] = None,
    registry: Optional[PublicKeyRegistry] = None,
    settings=None,
) -> Webhooks:
    """
    Build the webhook capabilities for a deployment.

    Explicit arguments win over settings. The public key is taken from
    `public_key`, then settings.webhook_public_key (only when `mode` is
    unset or equals settings.webhook_mode), then the registry entry for the
    mode.

    Args:
        mode: Deployment mode selecting the public key
        webhook_secret_key: Secret key enabling signing
        public_key: Explicit verification key
        replay_window_ms: Maximum signature age in milliseconds
        registry: Registry to look the mode up in (default: global registry)
        settings: Settings instance (default: get_settings())

    Returns:
        Webhooks with a signer only if a secret key is available

    Raises:
        UnknownModeError: If no public key is available for the mode
    """
    if settings is None:
        from webhook_signing.core.config import get_settings
        settings = get_settings()

    # settings.webhook_public_key belongs to settings.webhook_mode only
    if mode is None or mode == settings.webhook_mode:
        mode = settings.webhook_mode
        public_key = public_key or settings.webhook_public_key
    public_key = public_key or get_public_key(mode, registry)
    secret_key = webhook_secret_key or settings.webhook_secret_key
    window = replay_window_ms or settings.webhook_replay_window_ms

    authenticator = WebhookAuthenticator(public_key, replay_window_ms=window)
    signer = WebhookSigner(secret_key) if secret_key else None

    logger.info(
        f"Webhooks configured: mode={getattr(mode, 'value', mode)} "
        f"signing={'enabled' if signer else 'disabled'} replay_window_ms={window}"
    )
    return Webhooks(authenticator=authenticator, signer=signer)
