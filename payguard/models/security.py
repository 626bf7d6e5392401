"""
Security models for credential encryption and webhook verification
"""

from pydantic import BaseModel, Field, SecretStr
from typing import Optional
from uuid import UUID
from enum import Enum


class WebhookProvider(str, Enum):
    """Webhook provider enumeration"""

    EPAYCO = "epayco"
    WOMPI = "wompi"
    META = "meta"
    EVOLUTION = "evolution"


class VerdictStatus(str, Enum):
    """Outcome of a single signature verification"""

    AUTHENTIC = "authentic"
    REJECTED = "rejected"
    MISSING_CREDENTIAL = "missing_credential"
    MISSING_SIGNATURE = "missing_signature"
    MALFORMED_SIGNATURE = "malformed_signature"
    MISSING_FIELDS = "missing_fields"


# Statuses where a signature was actually recomputed and compared
_VERIFIED_STATUSES = {VerdictStatus.AUTHENTIC, VerdictStatus.REJECTED}


class WebhookVerdict(BaseModel):
    """Result of webhook signature verification"""

    status: VerdictStatus
    provider: WebhookProvider
    reason: Optional[str] = None

    model_config = {"frozen": True}

    @property
    def is_authentic(self) -> bool:
        return self.status == VerdictStatus.AUTHENTIC

    @property
    def can_verify(self) -> bool:
        """False when verification could not even be attempted"""
        return self.status in _VERIFIED_STATUSES

    def __bool__(self) -> bool:
        return self.is_authentic


class ProviderSecrets(BaseModel):
    """Decrypted secrets needed to recompute a provider signature"""

    customer_id: Optional[SecretStr] = None
    shared_secret: Optional[SecretStr] = None

    model_config = {"frozen": True}

    def customer_id_value(self) -> str:
        return self.customer_id.get_secret_value() if self.customer_id else ""

    def shared_secret_value(self) -> str:
        return self.shared_secret.get_secret_value() if self.shared_secret else ""


class WebhookSignatureContext(BaseModel):
    """
    Everything one verification call needs.

    raw_body holds the bytes exactly as received; schemes never
    re-serialize it.
    """

    provider: WebhookProvider
    raw_body: bytes
    signature: Optional[str] = None
    secrets: ProviderSecrets = Field(default_factory=ProviderSecrets)

    model_config = {"frozen": True}


class ProviderCredential(BaseModel):
    """Tenant-scoped payment/messaging provider configuration.

    private_key, integrity_secret and encryption_key hold EncryptedSecret
    strings (iv:tag:ciphertext); only the SecretCodec turns them back into
    plaintext.
    """

    organization_id: UUID
    provider: WebhookProvider
    public_key: Optional[str] = None
    private_key: Optional[str] = Field(None, repr=False)
    integrity_secret: Optional[str] = Field(None, repr=False)
    encryption_key: Optional[str] = Field(None, repr=False)
    is_test_mode: bool = True
    is_active: bool = True
