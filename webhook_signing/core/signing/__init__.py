"""
Webhook Signing Module

Ed25519-based signatures for webhook callbacks. The sender signs
"{uri}.{submission_id}.{form_id}.{epoch}" and sends the result in the
X-FormSG-Signature header; the receiver rebuilds the same base string,
verifies the signature, and rejects signatures outside the replay window.
"""

from webhook_signing.core.signing.basestring import (
    create_base_string,
    normalize_uri,
)
from webhook_signing.core.signing.errors import (
    VerificationError,
    WebhookAuthenticationError,
    HeaderParseError,
    InvalidHeaderError,
    SignatureMismatchError,
    StaleSignatureError,
    SigningUnavailableError,
    UnknownModeError,
)
from webhook_signing.core.signing.header import (
    SIGNATURE_HEADER,
    SignedHeader,
    encode_header,
    parse_signature_header,
)
from webhook_signing.core.signing.keys import (
    generate_keypair,
    load_private_key,
    load_public_key,
    public_key_to_base64,
    base64_to_public_key,
    private_key_to_base64,
    base64_to_private_key,
    sign,
    verify,
)
from webhook_signing.core.signing.registry import (
    Mode,
    PublicKeyRegistry,
    get_public_key,
    load_public_keys,
)
from webhook_signing.core.signing.replay import (
    DEFAULT_REPLAY_WINDOW_MS,
    is_fresh,
    now_ms,
)
from webhook_signing.core.signing.webhooks import (
    WebhookAuthenticator,
    WebhookSigner,
    Webhooks,
    create_webhooks,
)

__all__ = [
    # Base string
    "create_base_string",
    "normalize_uri",
    # Errors
    "VerificationError",
    "WebhookAuthenticationError",
    "HeaderParseError",
    "InvalidHeaderError",
    "SignatureMismatchError",
    "StaleSignatureError",
    "SigningUnavailableError",
    "UnknownModeError",
    # Header
    "SIGNATURE_HEADER",
    "SignedHeader",
    "encode_header",
    "parse_signature_header",
    # Keys
    "generate_keypair",
    "load_private_key",
    "load_public_key",
    "public_key_to_base64",
    "base64_to_public_key",
    "private_key_to_base64",
    "base64_to_private_key",
    "sign",
    "verify",
    # Registry
    "Mode",
    "PublicKeyRegistry",
    "get_public_key",
    "load_public_keys",
    # Replay
    "DEFAULT_REPLAY_WINDOW_MS",
    "is_fresh",
    "now_ms",
    # Facade
    "WebhookAuthenticator",
    "WebhookSigner",
    "Webhooks",
    "create_webhooks",
]
