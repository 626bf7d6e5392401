"""
Webhook signature verification for ePayco, Wompi, Meta and Evolution API
"""

from typing import Dict, Optional, Union

from ..integrations import (
    EpaycoSignatureScheme,
    HubSignatureScheme,
    SignatureScheme,
    WompiSignatureScheme,
)
from ..models.errors import ConfigurationError, UnsupportedProviderError
from ..models.security import (
    ProviderCredential,
    ProviderSecrets,
    VerdictStatus,
    WebhookProvider,
    WebhookSignatureContext,
    WebhookVerdict,
)
from .encryption import SecretCodec, get_secret_codec
from .logger import log
from .metrics import record_verification

SCHEMES: Dict[WebhookProvider, SignatureScheme] = {
    WebhookProvider.EPAYCO: EpaycoSignatureScheme(),
    WebhookProvider.WOMPI: WompiSignatureScheme(),
    WebhookProvider.META: HubSignatureScheme(WebhookProvider.META),
    WebhookProvider.EVOLUTION: HubSignatureScheme(WebhookProvider.EVOLUTION),
}

_unregistered = set(WebhookProvider) - set(SCHEMES)
if _unregistered:
    raise RuntimeError(f"No signature scheme registered for: {sorted(_unregistered)}")


def coerce_provider(provider: Union[WebhookProvider, str]) -> WebhookProvider:
    """Turn a provider name into the enum, rejecting unknown names"""
    if isinstance(provider, WebhookProvider):
        return provider
    try:
        return WebhookProvider(str(provider).lower())
    except ValueError:
        raise UnsupportedProviderError(provider)


def raise_for_missing_credential(verdict: WebhookVerdict) -> WebhookVerdict:
    """Raise ConfigurationError for MISSING_CREDENTIAL, return verdict otherwise"""
    if verdict.status == VerdictStatus.MISSING_CREDENTIAL:
        raise ConfigurationError(
            verdict.reason or "Webhook secret not configured",
            {"provider": verdict.provider.value},
        )
    return verdict


class WebhookAuthenticator:
    """Decides whether an inbound webhook really comes from its provider"""

    def __init__(
        self,
        codec: Optional[SecretCodec] = None,
        schemes: Optional[Dict[WebhookProvider, SignatureScheme]] = None,
    ):
        """
        Args:
            codec: Codec used to open stored credentials (defaults to the
                process-wide codec, looked up on every use so a
                reset after a settings change takes effect)
            schemes: Provider to scheme registry (defaults to SCHEMES)
        """
        self._codec = codec
        self.schemes = schemes if schemes is not None else SCHEMES

    @property
    def codec(self) -> SecretCodec:
        if self._codec is None:
            return get_secret_codec()
        return self._codec

    def verify(self, context: WebhookSignatureContext) -> WebhookVerdict:
        """
        Verify one webhook

        Returns a verdict for every routine outcome, including forged or
        unsigned requests. Raises only when verification cannot be attempted
        (unsupported provider, undecodable body).
        """
        scheme = self.schemes.get(context.provider)
        if scheme is None:
            raise UnsupportedProviderError(context.provider)

        verdict = scheme.verify(context)
        self._log_verdict(verdict)
        return verdict

    def verify_payload(
        self,
        provider: Union[WebhookProvider, str],
        raw_body: bytes,
        signature: Optional[str] = None,
        secrets: Optional[ProviderSecrets] = None,
    ) -> WebhookVerdict:
        """Verify a raw body with already decrypted secrets"""
        context = WebhookSignatureContext(
            provider=coerce_provider(provider),
            raw_body=raw_body,
            signature=signature,
            secrets=secrets or ProviderSecrets(),
        )
        return self.verify(context)

    def verify_credential(
        self,
        provider: Union[WebhookProvider, str],
        raw_body: bytes,
        signature: Optional[str],
        credential: Optional[ProviderCredential],
    ) -> WebhookVerdict:
        """
        Verify a raw body against a tenant's stored credential

        Absent, inactive, or other-provider credentials give a
        MISSING_CREDENTIAL verdict. Codec errors while opening the stored
        secrets propagate.
        """
        provider = coerce_provider(provider)

        if credential is None or not credential.is_active or credential.provider != provider:
            reason = "Payment gateway not configured"
            if credential is not None and not credential.is_active:
                reason = "Payment gateway disabled"
            verdict = WebhookVerdict(
                status=VerdictStatus.MISSING_CREDENTIAL, provider=provider, reason=reason
            )
            self._log_verdict(verdict)
            return verdict

        secrets = self.secrets_for(credential)
        return self.verify_payload(provider, raw_body, signature, secrets)

    def secrets_for(self, credential: ProviderCredential) -> ProviderSecrets:
        """Decrypt the stored secrets a provider's scheme needs"""
        if credential.provider == WebhookProvider.EPAYCO:
            return ProviderSecrets(
                customer_id=self._open(credential.integrity_secret),
                shared_secret=self._open(credential.encryption_key),
            )
        return ProviderSecrets(shared_secret=self._open(credential.integrity_secret))

    def _open(self, stored: Optional[str]) -> Optional[str]:
        if not stored:
            return None
        return self.codec.decrypt(stored)

    def _log_verdict(self, verdict: WebhookVerdict) -> None:
        record_verification(verdict.provider.value, verdict.status.value)

        extra = {
            "provider": verdict.provider.value,
            "status": verdict.status.value,
            "reason": verdict.reason,
        }
        if verdict.is_authentic:
            log.info("Webhook signature verified",
                     extra={"event_type": "webhook_signature_verified", **extra})
        elif verdict.can_verify:
            log.warning("Webhook signature rejected",
                        extra={"event_type": "webhook_signature_rejected", **extra})
        else:
            log.warning("Webhook signature could not be verified",
                        extra={"event_type": "webhook_signature_unverifiable", **extra})


# Global authenticator instance
_authenticator: Optional[WebhookAuthenticator] = None


def get_webhook_authenticator() -> WebhookAuthenticator:
    """
    Get or create global webhook authenticator instance

    Returns:
        WebhookAuthenticator instance
    """
    global _authenticator
    if _authenticator is None:
        _authenticator = WebhookAuthenticator()
    return _authenticator


def verify_webhook_signature(
    provider: Union[WebhookProvider, str],
    raw_body: bytes,
    signature: Optional[str],
    secrets: Optional[ProviderSecrets] = None,
) -> WebhookVerdict:
    """
    Verify webhook signature for a specific provider

    Args:
        provider: Webhook provider
        raw_body: Raw request body bytes
        signature: Signature header value or claimed signature
        secrets: Decrypted provider secrets

    Returns:
        WebhookVerdict with verification status
    """
    return get_webhook_authenticator().verify_payload(provider, raw_body, signature, secrets)
