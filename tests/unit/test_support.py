"""
Unit tests for settings, log helpers and error mapping
"""

import json

import pytest

from payguard.config.settings import SecuritySettings, get_settings, reload_settings
from payguard.models.errors import (
    AuthenticationFailedError,
    ConfigurationError,
    ErrorCode,
    FormatError,
    PayloadFormatError,
    UnsupportedProviderError,
)
from payguard.models.security import VerdictStatus, WebhookProvider, WebhookVerdict
from payguard.services.credential_store import InMemoryCredentialStore
from payguard.utils import encryption
from payguard.utils.error_handling import (
    HTTP_STATUS_BY_CODE,
    error_json_response,
    sanitize_error_message,
    verdict_to_error,
)
from payguard.utils.logger import REDACT_VALUE, get_logger, log, mask_secret, redact_headers
from payguard.utils.webhook_verification import get_webhook_authenticator
from tests.utils import TEST_MASTER_SECRET, capture_logs


class TestSettings:
    @pytest.fixture(autouse=True)
    def clean_cache(self):
        get_settings.cache_clear()
        encryption.reset_secret_codec()
        yield
        get_settings.cache_clear()
        encryption.reset_secret_codec()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("ENCRYPTION_KEY", TEST_MASTER_SECRET)
        monkeypatch.setenv("META_APP_SECRET", "app-secret")
        monkeypatch.setenv("APP_ENV", "production")

        settings = SecuritySettings.from_env()

        assert settings.encryption_key == TEST_MASTER_SECRET
        assert settings.meta_app_secret == "app-secret"
        assert settings.is_production

    def test_blank_values_mean_not_configured(self, monkeypatch):
        monkeypatch.setenv("ENCRYPTION_KEY", "   ")
        monkeypatch.setenv("META_VERIFY_TOKEN", "")

        settings = SecuritySettings.from_env()

        assert settings.encryption_key is None
        assert settings.meta_verify_token is None

    def test_settings_are_immutable(self):
        settings = SecuritySettings(encryption_key="k")
        with pytest.raises(Exception):
            settings.encryption_key = "other"

    def test_reload_settings(self, monkeypatch):
        monkeypatch.setenv("EVOLUTION_WEBHOOK_SECRET", "first")
        assert get_settings().evolution_webhook_secret == "first"

        monkeypatch.setenv("EVOLUTION_WEBHOOK_SECRET", "second")
        assert get_settings().evolution_webhook_secret == "first"
        assert reload_settings().evolution_webhook_secret == "second"

    def test_process_wide_codec_reads_settings(self, monkeypatch):
        monkeypatch.setenv("ENCRYPTION_KEY", TEST_MASTER_SECRET)

        sealed = encryption.encrypt_secret("from settings")

        assert encryption.get_secret_codec() is encryption.get_secret_codec()
        assert encryption.decrypt_secret(sealed) == "from settings"

    def test_process_wide_users_follow_master_secret_change(self, monkeypatch):
        monkeypatch.setenv("ENCRYPTION_KEY", "first-master-secret")
        authenticator = get_webhook_authenticator()
        store = InMemoryCredentialStore()
        assert authenticator.codec.master_secret == "first-master-secret"
        sealed_with_first = store.codec.encrypt("p_key")

        monkeypatch.setenv("ENCRYPTION_KEY", "second-master-secret")
        reload_settings()
        encryption.reset_secret_codec()

        assert authenticator.codec.master_secret == "second-master-secret"
        assert store.codec.master_secret == "second-master-secret"
        assert get_webhook_authenticator().codec is encryption.get_secret_codec()
        with pytest.raises(AuthenticationFailedError):
            authenticator.codec.decrypt(sealed_with_first)

    def test_process_wide_codec_without_key(self, monkeypatch):
        monkeypatch.delenv("ENCRYPTION_KEY", raising=False)

        with pytest.raises(ConfigurationError):
            encryption.encrypt_secret("nothing to seal with")


class TestLogHelpers:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, ""),
            ("", ""),
            ("abc", "***"),
            ("abcd", "***"),
            ("sk_live_123456", "sk_l***"),
        ],
    )
    def test_mask_secret(self, value, expected):
        assert mask_secret(value) == expected

    def test_redact_headers(self):
        headers = {
            "X-Hub-Signature-256": "sha256=abc",
            "Authorization": "Bearer t",
            "X-Evolution-Token": "tok",
            "Content-Type": "application/json",
        }
        redacted = redact_headers(headers)

        assert redacted["X-Hub-Signature-256"] == REDACT_VALUE
        assert redacted["Authorization"] == REDACT_VALUE
        assert redacted["X-Evolution-Token"] == REDACT_VALUE
        assert redacted["Content-Type"] == "application/json"

    def test_json_lines_default_event_type_and_redact_key_material(self):
        with capture_logs() as logs:
            log.info("plain line")
            log.warning(
                "with extras",
                extra={"event_type": "credential_check", "app_secret": "s3cr3t", "provider": "meta"},
            )

        plain, extras = logs.get_logs()
        assert plain["event_type"] == "log"
        assert plain["service"] == "payguard"
        assert extras["event_type"] == "credential_check"
        assert extras["app_secret"] == "[REDACTED]"
        assert extras["provider"] == "meta"
        assert "s3cr3t" not in logs.raw

    def test_module_loggers_share_the_top_level_handler(self):
        module_logger = get_logger("payguard.api.webhooks")

        assert module_logger.handlers == []
        assert module_logger.getEffectiveLevel() == log.getEffectiveLevel()
        assert len(log.handlers) == 1


class TestErrorMapping:
    def test_sanitize_hides_secrets(self):
        message = 'failed with secret="p_key_live_9" and token=abc123'
        sanitized = sanitize_error_message(message)

        assert "p_key_live_9" not in sanitized
        assert "abc123" not in sanitized

    def test_sanitize_hides_encrypted_values(self, codec):
        sealed = codec.encrypt("value")
        assert sealed not in sanitize_error_message(f"cannot open {sealed}")

    def test_sanitize_limits_length(self):
        assert len(sanitize_error_message("x" * 2000)) == 500

    @pytest.mark.parametrize(
        "error,status",
        [
            (ConfigurationError("missing"), 500),
            (FormatError("bad"), 500),
            (AuthenticationFailedError("tag"), 500),
            (UnsupportedProviderError("paypal"), 404),
            (PayloadFormatError("not json"), 400),
        ],
    )
    def test_core_errors_map_to_status(self, error, status):
        assert HTTP_STATUS_BY_CODE[error.code] == status
        assert error_json_response(error).status_code == status

    def test_authentic_verdict_has_no_error(self):
        verdict = WebhookVerdict(status=VerdictStatus.AUTHENTIC, provider=WebhookProvider.META)
        assert verdict_to_error(verdict) is None

    @pytest.mark.parametrize(
        "status,code",
        [
            (VerdictStatus.REJECTED, ErrorCode.WEBHOOK_SIGNATURE_INVALID),
            (VerdictStatus.MISSING_SIGNATURE, ErrorCode.WEBHOOK_SIGNATURE_INVALID),
            (VerdictStatus.MALFORMED_SIGNATURE, ErrorCode.WEBHOOK_SIGNATURE_INVALID),
            (VerdictStatus.MISSING_FIELDS, ErrorCode.WEBHOOK_PAYLOAD_INVALID),
            (VerdictStatus.MISSING_CREDENTIAL, ErrorCode.WEBHOOK_NOT_CONFIGURED),
        ],
    )
    def test_blocking_verdicts_map_to_errors(self, status, code):
        verdict = WebhookVerdict(status=status, provider=WebhookProvider.WOMPI, reason="r")
        error = verdict_to_error(verdict)

        assert error.code == code
        assert error.details["provider"] == "wompi"
        assert error.details["status"] == status.value

    def test_error_envelope(self):
        response = error_json_response(UnsupportedProviderError("paypal"))
        body = json.loads(response.body)

        assert body["ok"] is False
        assert body["error"]["code"] == "UNSUPPORTED_PROVIDER"
        assert body["error"]["details"] == {"provider": "paypal"}
        assert "timestamp" in body
