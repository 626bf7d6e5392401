"""
Shared plumbing for provider webhook signature schemes
"""

import hmac
import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ..models.errors import PayloadFormatError
from ..models.security import (
    VerdictStatus,
    WebhookProvider,
    WebhookSignatureContext,
    WebhookVerdict,
)


def signatures_match(expected: str, claimed: str) -> bool:
    """Constant-time comparison of two signature strings"""
    return hmac.compare_digest(expected.encode("utf-8"), claimed.encode("utf-8"))


def field_text(value: Any) -> str:
    """
    Render a payload field the way providers concatenate it

    Whole-number floats lose their ".0" so 10000.0 signs as "10000".
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def decode_text(raw_body: bytes, provider: WebhookProvider) -> str:
    try:
        return raw_body.decode("utf-8")
    except UnicodeDecodeError:
        raise PayloadFormatError(
            "Webhook body is not valid UTF-8", {"provider": provider.value}
        )


def decode_json_object(raw_body: bytes, provider: WebhookProvider) -> Dict[str, Any]:
    """Parse the raw body as a JSON object, for reading fields only"""
    text = decode_text(raw_body, provider)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise PayloadFormatError(
            "Webhook body is not valid JSON",
            {"provider": provider.value, "reason": e.msg},
        )
    if not isinstance(data, dict):
        raise PayloadFormatError(
            "Webhook body must be a JSON object", {"provider": provider.value}
        )
    return data


class SignatureScheme(ABC):
    """One provider's way of signing webhooks"""

    provider: WebhookProvider

    @abstractmethod
    def verify(self, context: WebhookSignatureContext) -> WebhookVerdict:
        """Recompute the expected signature and compare it with the claim"""

    def verdict(self, status: VerdictStatus, reason: Optional[str] = None) -> WebhookVerdict:
        return WebhookVerdict(status=status, provider=self.provider, reason=reason)

    def compare(self, expected: str, claimed: str) -> WebhookVerdict:
        if signatures_match(expected, claimed):
            return self.verdict(VerdictStatus.AUTHENTIC)
        return self.verdict(VerdictStatus.REJECTED, "Invalid signature")
