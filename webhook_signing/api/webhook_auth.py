"""
Webhook Authentication Dependency for FastAPI

Verifies the X-FormSG-Signature header of incoming webhooks against the full
request URL. Every failure is answered with 401; the specific reason is only
logged.

Example:
    @app.post("/hooks/submissions")
    async def receive(header: SignedHeader = Depends(verify_webhook_request)):
        ...
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from webhook_signing.core.config import get_settings
from webhook_signing.core.signing import (
    SIGNATURE_HEADER,
    SignedHeader,
    WebhookAuthenticationError,
    Webhooks,
    create_webhooks,
    load_public_keys,
    parse_signature_header,
)

logger = logging.getLogger(__name__)


VERIFICATION_FAILED_DETAIL = "Webhook signature verification failed"

_webhooks: Optional[Webhooks] = None


def init_webhook_auth() -> Webhooks:
    """
    Initialize webhook authentication from settings.

    Call this during FastAPI startup.
    """
    global _webhooks
    settings = get_settings()
    registry = load_public_keys(settings.signing_keys_file)
    _webhooks = create_webhooks(settings=settings, registry=registry)
    logger.info("Webhook auth initialized")
    return _webhooks


def get_webhooks() -> Webhooks:
    """Dependency returning the configured Webhooks (initialized on first use)."""
    if _webhooks is None:
        return init_webhook_auth()
    return _webhooks


def resolve_request_uri(request: Request, public_url: Optional[str] = None) -> str:
    """
    URI the sender signed for this request.

    Behind a proxy the URL seen by the app differs from the one the sender
    POSTed to, so the configured public base URL replaces scheme and host.
    """
    if not public_url:
        return str(request.url)
    uri = f"{public_url.rstrip('/')}{request.url.path}"
    if request.url.query:
        uri = f"{uri}?{request.url.query}"
    return uri


async def verify_webhook_request(
    request: Request,
    webhooks: Webhooks = Depends(get_webhooks),
) -> SignedHeader:
    """
    Authenticate an incoming webhook.

    Returns:
        The verified signature header

    Raises:
        HTTPException: 401 if the header is missing or fails verification
    """
    header = request.headers.get(SIGNATURE_HEADER)
    if not header:
        logger.warning(f"Webhook rejected: missing {SIGNATURE_HEADER} header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=VERIFICATION_FAILED_DETAIL,
        )

    uri = resolve_request_uri(request, get_settings().webhook_public_url)

    try:
        webhooks.authenticate(header, uri)
    except WebhookAuthenticationError as e:
        logger.warning(f"Webhook rejected ({e.error.value}): {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=VERIFICATION_FAILED_DETAIL,
        )

    return parse_signature_header(header)
