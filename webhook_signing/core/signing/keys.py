"""
Ed25519 Keys and Signatures

Key generation, (de)serialization, and the sign/verify primitive used for
webhook signatures. Uses the cryptography library for all cryptographic
operations.

Webhook secret keys are distributed as base64 of the 64-byte NaCl secret key
(32-byte seed followed by the 32-byte public key). A bare 32-byte seed is
accepted too.
"""

import base64
import binascii
from pathlib import Path
from typing import Tuple, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

PublicKeyLike = Union[Ed25519PublicKey, str]
PrivateKeyLike = Union[Ed25519PrivateKey, str]

SEED_LENGTH = 32
PUBLIC_KEY_LENGTH = 32
NACL_SECRET_KEY_LENGTH = 64
SIGNATURE_LENGTH = 64


def generate_keypair() -> Tuple[Ed25519PrivateKey, Ed25519PublicKey]:
    """
    Generate a new Ed25519 keypair.

    Returns:
        Tuple of (private_key, public_key)

    Example:
        >>> private_key, public_key = generate_keypair()
        >>> pub_b64 = public_key_to_base64(public_key)
    """
    private_key = Ed25519PrivateKey.generate()
    return private_key, private_key.public_key()


def _public_bytes(public_key: Ed25519PublicKey) -> bytes:
    return public_key.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


def public_key_to_base64(public_key: Ed25519PublicKey) -> str:
    """
    Serialize a public key to base64-encoded string.

    Returns:
        Base64-encoded public key string (44 characters)
    """
    return base64.b64encode(_public_bytes(public_key)).decode("ascii")


def base64_to_public_key(b64_key: str) -> Ed25519PublicKey:
    """
    Deserialize a base64-encoded public key string.

    Raises:
        ValueError: If the key is invalid or wrong length
    """
    try:
        raw_bytes = base64.b64decode(b64_key, validate=True)
    except (binascii.Error, TypeError) as e:
        raise ValueError(f"Invalid public key: {e}") from e
    if len(raw_bytes) != PUBLIC_KEY_LENGTH:
        raise ValueError(
            f"Invalid public key length: {len(raw_bytes)} bytes (expected {PUBLIC_KEY_LENGTH})"
        )
    return Ed25519PublicKey.from_public_bytes(raw_bytes)


def private_key_to_base64(private_key: Ed25519PrivateKey) -> str:
    """
    Serialize a private key as a base64 NaCl secret key (seed + public key).

    WARNING: The result is a secret! Handle with care.
    """
    seed = private_key.private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return base64.b64encode(seed + _public_bytes(private_key.public_key())).decode("ascii")


def base64_to_private_key(b64_key: str) -> Ed25519PrivateKey:
    """
    Deserialize a base64 secret key.

    Args:
        b64_key: Base64 of a 64-byte NaCl secret key or a 32-byte seed

    Returns:
        Ed25519 private key object

    Raises:
        ValueError: If the key is invalid, wrong length, or its public half
                    does not belong to the seed
    """
    try:
        raw_bytes = base64.b64decode(b64_key, validate=True)
    except (binascii.Error, TypeError) as e:
        raise ValueError(f"Invalid secret key: {e}") from e

    if len(raw_bytes) not in (SEED_LENGTH, NACL_SECRET_KEY_LENGTH):
        raise ValueError(
            f"Invalid secret key length: {len(raw_bytes)} bytes "
            f"(expected {SEED_LENGTH} or {NACL_SECRET_KEY_LENGTH})"
        )

    private_key = Ed25519PrivateKey.from_private_bytes(raw_bytes[:SEED_LENGTH])
    if len(raw_bytes) == NACL_SECRET_KEY_LENGTH:
        if _public_bytes(private_key.public_key()) != raw_bytes[SEED_LENGTH:]:
            raise ValueError("Invalid secret key: public half does not match seed")
    return private_key


def load_private_key(path: Path) -> Ed25519PrivateKey:
    """
    Load a private key from a PEM file.

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If key is invalid
    """
    path = Path(path)
    pem_data = path.read_bytes()

    try:
        private_key = serialization.load_pem_private_key(pem_data, password=None)
    except (ValueError, TypeError) as e:
        raise ValueError(f"Failed to load private key from {path}: {e}") from e
    if not isinstance(private_key, Ed25519PrivateKey):
        raise ValueError(f"Not an Ed25519 key: {type(private_key)}")
    return private_key


def load_public_key(path: Path) -> Ed25519PublicKey:
    """
    Load a public key from a base64 file.

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If key is invalid
    """
    return base64_to_public_key(Path(path).read_text().strip())


def as_public_key(key: PublicKeyLike) -> Ed25519PublicKey:
    """Accept a key object or its base64 form."""
    if isinstance(key, Ed25519PublicKey):
        return key
    return base64_to_public_key(key)


def as_private_key(key: PrivateKeyLike) -> Ed25519PrivateKey:
    """Accept a key object or its base64 form."""
    if isinstance(key, Ed25519PrivateKey):
        return key
    return base64_to_private_key(key)


def sign(message: str, private_key: PrivateKeyLike) -> str:
    """
    Sign a message.

    Args:
        message: Message to sign (UTF-8 encoded before signing)
        private_key: Ed25519 private key or base64 secret key

    Returns:
        Base64-encoded detached signature
    """
    signature = as_private_key(private_key).sign(message.encode("utf-8"))
    return base64.b64encode(signature).decode("ascii")


def verify(message: str, signature_b64: str, public_key: PublicKeyLike) -> bool:
    """
    Verify a detached signature.

    Malformed or wrong-length signatures count as a failed verification.

    Args:
        message: Message that was signed
        signature_b64: Base64-encoded signature
        public_key: Ed25519 public key or its base64 form

    Returns:
        True if the signature is valid
    """
    try:
        signature = base64.b64decode(signature_b64, validate=True)
    except (binascii.Error, TypeError, ValueError):
        return False
    if len(signature) != SIGNATURE_LENGTH:
        return False

    try:
        as_public_key(public_key).verify(signature, message.encode("utf-8"))
    except InvalidSignature:
        return False
    return True
