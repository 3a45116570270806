"""
Configuration Management

Centralized configuration using Pydantic Settings.
All settings loaded from environment variables with sensible defaults.
"""
from typing import Optional
from pydantic import Field, ConfigDict, field_validator
from pydantic_settings import BaseSettings

from webhook_signing.core.signing.registry import Mode
from webhook_signing.core.signing.replay import DEFAULT_REPLAY_WINDOW_MS


class Settings(BaseSettings):
    """Webhook signing settings loaded from environment variables."""

    # Ignore extra environment variables that aren't defined in the model
    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ============================================================
    # Key selection
    # ============================================================
    webhook_mode: Mode = Field(Mode.PRODUCTION, description="Deployment mode; selects the verification key")
    webhook_public_key: Optional[str] = Field(
        None,
        description="Base64 public key; overrides the registry entry for webhook_mode"
    )
    signing_keys_file: Optional[str] = Field(
        None,
        description="Path to signing_keys.yaml (default: resolved from CONFIG_DIR)"
    )

    # ============================================================
    # Signing (optional - verify-only deployments leave this unset)
    # ============================================================
    webhook_secret_key: Optional[str] = Field(
        None,
        description="Base64 Ed25519 secret key (64-byte NaCl key or 32-byte seed)"
    )

    # ============================================================
    # Verification
    # ============================================================
    webhook_replay_window_ms: int = Field(
        DEFAULT_REPLAY_WINDOW_MS,
        description="Maximum signature age in milliseconds"
    )
    webhook_public_url: Optional[str] = Field(
        None,
        description="External base URL of this service when behind a proxy (e.g. https://hooks.example.com)"
    )

    @field_validator("webhook_replay_window_ms")
    @classmethod
    def _positive_window(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("webhook_replay_window_ms must be positive")
        return value

    @property
    def signing_enabled(self) -> bool:
        """Whether a secret key is configured."""
        return bool(self.webhook_secret_key)


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get application settings (singleton).

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Reload settings from environment (useful for testing)."""
    global _settings
    _settings = Settings()
    return _settings
