"""
Credential Store
Encrypts provider credentials before storage and looks them up per tenant
"""

from typing import Dict, Optional, Protocol, Tuple
from uuid import UUID
from threading import Lock

from ..models.security import ProviderCredential, WebhookProvider
from ..utils.encryption import SecretCodec, get_secret_codec
from ..utils.logger import log_event

_SECRET_FIELDS = ("private_key", "integrity_secret", "encryption_key")


class CredentialStore(Protocol):
    """Lookup used by webhook handlers to find a tenant's credential"""

    def get_credential(
        self, org_slug: str, provider: WebhookProvider
    ) -> Optional[ProviderCredential]:
        ...


class InMemoryCredentialStore:
    """Process-local credential store, keyed by organization slug and provider"""

    def __init__(self, codec: Optional[SecretCodec] = None):
        self._codec = codec
        self._credentials: Dict[Tuple[str, WebhookProvider], ProviderCredential] = {}
        self._lock = Lock()

    @property
    def codec(self) -> SecretCodec:
        """Injected codec, or the current process-wide one"""
        if self._codec is None:
            return get_secret_codec()
        return self._codec

    def save_credential(
        self,
        org_slug: str,
        organization_id: UUID,
        provider: WebhookProvider,
        public_key: Optional[str] = None,
        private_key: Optional[str] = None,
        integrity_secret: Optional[str] = None,
        encryption_key: Optional[str] = None,
        is_test_mode: bool = True,
        is_active: bool = True,
    ) -> ProviderCredential:
        """
        Encrypt and store a provider credential

        Secret fields that are already EncryptedSecret values are kept as-is.
        Raises ConfigurationError when no master secret is configured, so
        nothing is ever stored in plaintext.
        """
        provider = WebhookProvider(provider)
        plaintext = {
            "private_key": private_key,
            "integrity_secret": integrity_secret,
            "encryption_key": encryption_key,
        }
        encrypted = {
            field: self.codec.encrypt_if_needed(value) if value else None
            for field, value in plaintext.items()
        }

        credential = ProviderCredential(
            organization_id=organization_id,
            provider=provider,
            public_key=public_key,
            is_test_mode=is_test_mode,
            is_active=is_active,
            **encrypted,
        )

        with self._lock:
            self._credentials[(org_slug, provider)] = credential

        log_event(
            "provider_credential_stored",
            "Provider credential stored",
            organization_id=str(organization_id),
            provider=provider.value,
            secret_fields=[f for f in _SECRET_FIELDS if encrypted[f]],
        )
        return credential

    def get_credential(
        self, org_slug: str, provider: WebhookProvider
    ) -> Optional[ProviderCredential]:
        with self._lock:
            return self._credentials.get((org_slug, provider))

    def delete_credential(self, org_slug: str, provider: WebhookProvider) -> bool:
        with self._lock:
            return self._credentials.pop((org_slug, provider), None) is not None
