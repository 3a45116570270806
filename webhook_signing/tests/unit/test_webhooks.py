"""
Unit tests for webhook authentication and signing.
"""
import pytest

from webhook_signing.core.config import Settings
from webhook_signing.core.signing import (
    HeaderParseError,
    InvalidHeaderError,
    PublicKeyRegistry,
    SignatureMismatchError,
    SignedHeader,
    SigningUnavailableError,
    StaleSignatureError,
    UnknownModeError,
    VerificationError,
    WebhookAuthenticator,
    WebhookSigner,
    create_webhooks,
    encode_header,
    generate_keypair,
    now_ms,
    parse_signature_header,
    private_key_to_base64,
    public_key_to_base64,
)

URI = "https://example.com/hook"


def _flip(value: str) -> str:
    """Change the first character of a value."""
    return ("B" if value[0] == "A" else "A") + value[1:]


class TestWebhookSigner:
    """Test outbound signing."""

    def test_sign_returns_complete_header(self, signer, clock):
        header = signer.sign(URI, "sub1", "form1")
        assert header.epoch == clock.now
        assert header.submission_id == "sub1"
        assert header.form_id == "form1"
        assert header.is_complete()

    def test_explicit_epoch(self, signer):
        assert signer.sign(URI, "sub1", "form1", epoch=42).epoch == 42

    def test_known_vector(self, rfc_vector):
        signer = WebhookSigner(rfc_vector.secret_key)
        assert signer.generate_signature(
            rfc_vector.uri, rfc_vector.submission_id, rfc_vector.form_id, rfc_vector.epoch
        ) == rfc_vector.signature

    def test_construct_header(self, rfc_vector):
        signer = WebhookSigner(rfc_vector.seed)
        header = signer.construct_header(
            rfc_vector.uri, rfc_vector.submission_id, rfc_vector.form_id, rfc_vector.epoch
        )
        assert header == f"t=1583136171649,s=sub1,f=form1,v1={rfc_vector.signature}"


class TestWebhookAuthenticator:
    """Test inbound verification."""

    def test_sign_then_authenticate(self, signer, authenticator, clock):
        header = signer.construct_header(URI, "sub1", "form1")
        clock.advance(1)
        assert authenticator.authenticate(header, URI) is None

    def test_known_vector(self, rfc_vector, clock):
        authenticator = WebhookAuthenticator(rfc_vector.public_key, clock=clock)
        header = encode_header(SignedHeader(
            epoch=rfc_vector.epoch,
            submission_id=rfc_vector.submission_id,
            form_id=rfc_vector.form_id,
            signature=rfc_vector.signature,
        ))
        authenticator.authenticate(header, rfc_vector.uri)

    def test_uri_normalized_on_both_sides(self, signer, authenticator, clock):
        header = signer.construct_header("https://Example.com", "sub1", "form1")
        clock.advance(1)
        authenticator.authenticate(header, "https://example.com/")

    def test_stale_after_window(self, signer, authenticator, clock):
        """Authenticating 301 seconds later fails even though the signature is valid."""
        header = signer.construct_header(URI, "sub1", "form1")
        clock.advance(301000)
        with pytest.raises(StaleSignatureError) as exc_info:
            authenticator.authenticate(header, URI)
        assert exc_info.value.error == VerificationError.STALE_SIGNATURE
        assert "Signature is not recent" in str(exc_info.value)

    def test_same_instant_is_stale(self, signer, authenticator):
        """An epoch equal to now is not accepted."""
        header = signer.construct_header(URI, "sub1", "form1")
        with pytest.raises(StaleSignatureError):
            authenticator.authenticate(header, URI)

    def test_future_epoch_is_stale(self, signer, authenticator, clock):
        header = signer.construct_header(URI, "sub1", "form1", epoch=clock.now + 1000)
        with pytest.raises(StaleSignatureError):
            authenticator.authenticate(header, URI)

    def test_custom_replay_window(self, signer, keypair, clock):
        _, public_key = keypair
        authenticator = WebhookAuthenticator(public_key, replay_window_ms=1000, clock=clock)
        header = signer.construct_header(URI, "sub1", "form1")
        clock.advance(1500)
        with pytest.raises(StaleSignatureError):
            authenticator.authenticate(header, URI)

    def test_missing_form_id(self, authenticator):
        with pytest.raises(InvalidHeaderError) as exc_info:
            authenticator.authenticate("t=123,s=abc,v1=sig", URI)
        assert exc_info.value.error == VerificationError.INVALID_HEADER

    def test_non_numeric_epoch(self, authenticator):
        with pytest.raises(InvalidHeaderError):
            authenticator.authenticate("t=abc,s=sub1,f=form1,v1=sig", URI)

    def test_overlong_epoch(self, authenticator):
        """A huge epoch is an invalid header, not a conversion error."""
        with pytest.raises(InvalidHeaderError):
            authenticator.authenticate("t=" + "1" * 5000 + ",s=sub1,f=form1,v1=c2ln", URI)

    def test_malformed_header(self, authenticator):
        with pytest.raises(HeaderParseError):
            authenticator.authenticate("not-a-header", URI)

    @pytest.mark.parametrize("field", ["submission_id", "form_id", "signature"])
    def test_tampered_field(self, signer, authenticator, clock, field):
        header = signer.sign(URI, "sub1", "form1")
        values = dict(
            epoch=header.epoch,
            submission_id=header.submission_id,
            form_id=header.form_id,
            signature=header.signature,
        )
        values[field] = _flip(values[field])
        clock.advance(1)
        with pytest.raises(SignatureMismatchError):
            authenticator.authenticate(encode_header(SignedHeader(**values)), URI)

    def test_tampered_epoch(self, signer, authenticator, clock):
        header = signer.sign(URI, "sub1", "form1")
        clock.advance(10)
        forged = encode_header(SignedHeader(
            epoch=header.epoch + 5,
            submission_id=header.submission_id,
            form_id=header.form_id,
            signature=header.signature,
        ))
        with pytest.raises(SignatureMismatchError):
            authenticator.authenticate(forged, URI)

    def test_different_uri(self, signer, authenticator, clock):
        header = signer.construct_header(URI, "sub1", "form1")
        clock.advance(1)
        with pytest.raises(SignatureMismatchError) as exc_info:
            authenticator.authenticate(header, "https://example.com/other")
        assert exc_info.value.context["uri"] == "https://example.com/other"
        assert "submissionId=sub1" in str(exc_info.value)

    def test_wrong_key(self, signer, clock):
        _, other_public = generate_keypair()
        header = signer.construct_header(URI, "sub1", "form1")
        clock.advance(1)
        with pytest.raises(SignatureMismatchError):
            WebhookAuthenticator(other_public, clock=clock).authenticate(header, URI)

    def test_signature_checked_before_freshness(self, signer, authenticator, clock):
        """A stale forged header is reported as a mismatch, not as stale."""
        header = signer.sign(URI, "sub1", "form1")
        clock.advance(600000)
        forged = encode_header(SignedHeader(
            epoch=header.epoch,
            submission_id="other",
            form_id=header.form_id,
            signature=header.signature,
        ))
        with pytest.raises(SignatureMismatchError):
            authenticator.authenticate(forged, URI)


class TestCreateWebhooks:
    """Test configuration of the webhooks facade."""

    @pytest.fixture
    def registry(self, keypair):
        _, public_key = keypair
        registry = PublicKeyRegistry()
        registry.register("production", public_key)
        return registry

    def test_verify_only(self, registry):
        webhooks = create_webhooks(mode="production", registry=registry)
        assert webhooks.signer is None
        assert not webhooks.can_sign
        with pytest.raises(SigningUnavailableError):
            webhooks.require_signer()

    def test_signing_enabled(self, registry, keypair):
        private_key, _ = keypair
        webhooks = create_webhooks(
            mode="production",
            webhook_secret_key=private_key_to_base64(private_key),
            registry=registry,
        )
        assert webhooks.can_sign
        header = webhooks.require_signer().sign(URI, "sub1", "form1", epoch=1)
        parsed = parse_signature_header(encode_header(header))
        assert parsed == header

    def test_end_to_end_with_wall_clock(self, registry, keypair):
        private_key, _ = keypair
        webhooks = create_webhooks(mode="production", webhook_secret_key=private_key, registry=registry)
        header = webhooks.require_signer().construct_header(URI, "sub1", "form1", epoch=now_ms() - 1000)
        webhooks.authenticate(header, URI)

    def test_unknown_mode(self, registry):
        with pytest.raises(UnknownModeError):
            create_webhooks(mode="staging", registry=registry)

    def test_settings_supply_keys(self, keypair):
        private_key, public_key = keypair
        settings = Settings(
            _env_file=None,
            webhook_mode="staging",
            webhook_public_key=public_key_to_base64(public_key),
            webhook_secret_key=private_key_to_base64(private_key),
            webhook_replay_window_ms=1000,
        )
        webhooks = create_webhooks(settings=settings, registry=PublicKeyRegistry())
        assert webhooks.can_sign
        assert webhooks.authenticator.replay_window_ms == 1000

    def test_explicit_mode_ignores_settings_key(self, keypair):
        """The settings key belongs to the settings mode; another mode uses the registry."""
        _, production_key = keypair
        _, staging_key = generate_keypair()
        settings = Settings(
            _env_file=None,
            webhook_mode="production",
            webhook_public_key=public_key_to_base64(production_key),
        )
        registry = PublicKeyRegistry()
        registry.register("staging", staging_key)

        webhooks = create_webhooks(mode="staging", settings=settings, registry=registry)
        assert public_key_to_base64(webhooks.authenticator.public_key) == public_key_to_base64(staging_key)

    def test_settings_key_used_for_matching_mode(self, keypair):
        _, production_key = keypair
        settings = Settings(
            _env_file=None,
            webhook_mode="production",
            webhook_public_key=public_key_to_base64(production_key),
        )
        webhooks = create_webhooks(mode="production", settings=settings, registry=PublicKeyRegistry())
        assert public_key_to_base64(webhooks.authenticator.public_key) == public_key_to_base64(production_key)

    def test_explicit_public_key_wins(self, keypair):
        _, public_key = keypair
        webhooks = create_webhooks(mode="test", public_key=public_key, registry=PublicKeyRegistry())
        assert public_key_to_base64(webhooks.authenticator.public_key) == public_key_to_base64(public_key)
