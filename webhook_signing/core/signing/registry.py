"""
Public Key Registry

Maps a deployment mode to the public key that verifies its webhooks.
Loaded from YAML configuration.

Configuration format (config/signing_keys.yaml):
```yaml
modes:
  production:
    public_key: "base64-encoded-public-key"
  staging:
    public_key: "base64-encoded-public-key"
```
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

import yaml
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from webhook_signing.core.paths import get_config_path
from webhook_signing.core.signing.errors import UnknownModeError
from webhook_signing.core.signing.keys import PublicKeyLike, as_public_key

logger = logging.getLogger(__name__)


SIGNING_KEYS_FILENAME = "signing_keys.yaml"


class Mode(str, Enum):
    """Deployment modes, each verified with its own key."""
    PRODUCTION = "production"
    STAGING = "staging"
    DEVELOPMENT = "development"
    TEST = "test"


ModeLike = Union[Mode, str]


def _as_mode(mode: ModeLike) -> Mode:
    try:
        return Mode(mode)
    except ValueError:
        raise UnknownModeError(f"Unknown mode: '{mode}'") from None


class PublicKeyRegistry:
    """
    Registry of verification keys by mode.

    Thread-safe for reads (immutable after load).
    """

    def __init__(self):
        self._keys: Dict[Mode, Ed25519PublicKey] = {}
        self._loaded = False

    def load_from_yaml(self, config_path: Path) -> None:
        """
        Load mode keys from a YAML file.

        Args:
            config_path: Path to signing_keys.yaml

        Raises:
            ValueError: If config is invalid
        """
        config_path = Path(config_path)

        if not config_path.exists():
            logger.warning(f"Signing keys config not found: {config_path}")
            self._loaded = True
            return

        with open(config_path) as f:
            config = yaml.safe_load(f) or {}

        for mode_name, mode_data in (config.get("modes") or {}).items():
            try:
                self.register(mode_name, (mode_data or {})["public_key"])
            except (KeyError, ValueError) as e:
                logger.error(f"Failed to load key for mode '{mode_name}': {e}")
                raise ValueError(f"Invalid signing key config for '{mode_name}': {e}") from e

        self._loaded = True
        logger.info(f"Loaded {len(self._keys)} signing keys from {config_path}")

    def register(self, mode: ModeLike, public_key: PublicKeyLike) -> None:
        """Set the verification key for a mode."""
        self._keys[_as_mode(mode)] = as_public_key(public_key)

    def get_public_key(self, mode: ModeLike) -> Ed25519PublicKey:
        """
        Get the verification key for a mode.

        Raises:
            UnknownModeError: If the mode is unknown or has no key
        """
        resolved = _as_mode(mode)
        try:
            return self._keys[resolved]
        except KeyError:
            raise UnknownModeError(f"No public key registered for mode '{resolved.value}'") from None

    def list_modes(self) -> List[Mode]:
        """Get modes that have a key."""
        return list(self._keys)

    @property
    def is_loaded(self) -> bool:
        """Check if registry has been loaded."""
        return self._loaded


# Global registry instance
public_key_registry = PublicKeyRegistry()


def load_public_keys(config_path: Optional[Path] = None) -> PublicKeyRegistry:
    """
    Load the global registry from configuration.

    Args:
        config_path: Path to signing_keys.yaml. If None, uses get_config_path().

    Returns:
        The loaded registry
    """
    if config_path is None:
        config_path = get_config_path(SIGNING_KEYS_FILENAME)
        if config_path is None:
            logger.info(f"No {SIGNING_KEYS_FILENAME} found - keys must be registered explicitly")
            return public_key_registry

    public_key_registry.load_from_yaml(config_path)
    return public_key_registry


def get_public_key(mode: ModeLike, registry: Optional[PublicKeyRegistry] = None) -> Ed25519PublicKey:
    """
    Get the verification key for a mode, loading the global registry on first use.

    Raises:
        UnknownModeError: If the mode has no key
    """
    if registry is None:
        registry = public_key_registry
        if not registry.is_loaded:
            load_public_keys()
    return registry.get_public_key(mode)
