"""
Signature Header Codec

Wire format of the X-FormSG-Signature header:
    t={epoch},s={submission_id},f={form_id},v1={signature}

Where:
    - epoch: milliseconds since the Unix epoch, base 10
    - submission_id / form_id: opaque identifiers
    - signature: base64 Ed25519 signature over the base string

No escaping is done. Values must not contain ",". Each segment is split on its
first "=" so base64 padding in the signature is kept intact.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from webhook_signing.core.signing.errors import HeaderParseError

logger = logging.getLogger(__name__)


SIGNATURE_HEADER = "X-FormSG-Signature"

# Wire keys in their fixed order
KEY_EPOCH = "t"
KEY_SUBMISSION_ID = "s"
KEY_FORM_ID = "f"
KEY_SIGNATURE = "v1"

# Millisecond epochs have 13 digits until the year 2286
MAX_EPOCH_DIGITS = 16


@dataclass(frozen=True)
class SignedHeader:
    """
    Decoded contents of a signature header.

    A header built by the signer always has every field set. A decoded header
    may have any field set to None when the sender left it out; callers must
    check `is_complete()` before trusting it.

    Attributes:
        epoch: Milliseconds since Jan 1, 1970
        submission_id: Submission identifier
        form_id: Form identifier
        signature: Base64-encoded signature
    """
    epoch: Optional[int]
    submission_id: Optional[str]
    form_id: Optional[str]
    signature: Optional[str]

    def is_complete(self) -> bool:
        """Check that all four fields are present and the epoch is a positive integer."""
        return bool(
            self.epoch
            and self.epoch > 0
            and self.submission_id
            and self.form_id
            and self.signature
        )


def encode_header(header: SignedHeader) -> str:
    """
    Serialize a header to its wire form.

    Args:
        header: Header to encode

    Returns:
        Header string, e.g. "t=1583136171649,s=abc,f=def,v1=c2ln..."
    """
    return (
        f"{KEY_EPOCH}={header.epoch},"
        f"{KEY_SUBMISSION_ID}={header.submission_id},"
        f"{KEY_FORM_ID}={header.form_id},"
        f"{KEY_SIGNATURE}={header.signature}"
    )


def _split_pairs(text: str) -> Dict[str, str]:
    pairs: Dict[str, str] = {}
    for segment in text.split(","):
        key, sep, value = segment.partition("=")
        if not sep or not key:
            raise HeaderParseError(f"Malformed signature header segment: '{segment}'")
        pairs[key] = value
    return pairs


def _parse_epoch(value: Optional[str]) -> Optional[int]:
    if value is None or not (value.isascii() and value.isdigit()):
        return None
    if len(value) > MAX_EPOCH_DIGITS:
        return None
    return int(value)


def parse_signature_header(text: str) -> SignedHeader:
    """
    Parse a signature header into its fields.

    Missing keys are not an error here; they come back as None.

    Args:
        text: Raw header value

    Returns:
        SignedHeader with whatever fields were present

    Raises:
        HeaderParseError: If the text is not a list of key=value pairs

    Example:
        >>> parse_signature_header("t=123,s=abc,f=def,v1=c2ln")
        SignedHeader(epoch=123, submission_id='abc', form_id='def', signature='c2ln')
    """
    if not isinstance(text, str) or not text:
        raise HeaderParseError(f"Signature header is empty or not a string: {text!r}")

    pairs = _split_pairs(text)
    logger.debug(f"Parsed signature header keys: {sorted(pairs)}")

    return SignedHeader(
        epoch=_parse_epoch(pairs.get(KEY_EPOCH)),
        submission_id=pairs.get(KEY_SUBMISSION_ID),
        form_id=pairs.get(KEY_FORM_ID),
        signature=pairs.get(KEY_SIGNATURE),
    )
