"""
Shared fixtures for webhook signing tests.
"""
from types import SimpleNamespace

import pytest

from webhook_signing.core import config
from webhook_signing.core.signing import (
    WebhookAuthenticator,
    WebhookSigner,
    generate_keypair,
)


# RFC 8032 section 7.1, test 1
RFC_SEED_B64 = "nWGxne/9WmC6hEr0kuwsxERJxWl7MmkZcDusAxyuf2A="
RFC_PUBLIC_KEY_B64 = "11qYAYKxCrfVS/7TyWQHOg7hcvPapiMlrwIaaPcHURo="
RFC_NACL_SECRET_KEY_B64 = (
    "nWGxne/9WmC6hEr0kuwsxERJxWl7MmkZcDusAxyuf2DXWpgBgrEKt9VL/tPJZAc6DuFy89qmIyWvAhpo9wdRGg=="
)

# Signature by the RFC key over "https://example.com/hook.sub1.form1.1583136171649"
SAMPLE_URI = "https://example.com/hook"
SAMPLE_SUBMISSION_ID = "sub1"
SAMPLE_FORM_ID = "form1"
SAMPLE_EPOCH = 1583136171649
SAMPLE_SIGNATURE = (
    "CPSX2tYnINX4JuSMRdI/cUF1VcPkCrZrMsa93mS5hpvLK2CnJWnBtjuJzApA9z/1qd/P2t8rkt7gLnxzNMtbDw=="
)

WEBHOOK_ENV_VARS = (
    "WEBHOOK_MODE",
    "WEBHOOK_PUBLIC_KEY",
    "WEBHOOK_SECRET_KEY",
    "WEBHOOK_REPLAY_WINDOW_MS",
    "WEBHOOK_PUBLIC_URL",
    "SIGNING_KEYS_FILE",
    "CONFIG_DIR",
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keep the developer's environment and .env out of the tests."""
    for name in WEBHOOK_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config, "_settings", config.Settings(_env_file=None))
    yield


@pytest.fixture
def rfc_vector():
    """Known key material and a signature over the sample base string."""
    return SimpleNamespace(
        seed=RFC_SEED_B64,
        public_key=RFC_PUBLIC_KEY_B64,
        secret_key=RFC_NACL_SECRET_KEY_B64,
        uri=SAMPLE_URI,
        submission_id=SAMPLE_SUBMISSION_ID,
        form_id=SAMPLE_FORM_ID,
        epoch=SAMPLE_EPOCH,
        signature=SAMPLE_SIGNATURE,
    )


@pytest.fixture
def keypair():
    """Fresh Ed25519 keypair."""
    return generate_keypair()


class FakeClock:
    """Settable millisecond clock."""

    def __init__(self, now: int):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock():
    """Clock starting one second after SAMPLE_EPOCH."""
    return FakeClock(SAMPLE_EPOCH + 1000)


@pytest.fixture
def signer(keypair, clock):
    private_key, _ = keypair
    return WebhookSigner(private_key, clock=clock)


@pytest.fixture
def authenticator(keypair, clock):
    _, public_key = keypair
    return WebhookAuthenticator(public_key, clock=clock)
