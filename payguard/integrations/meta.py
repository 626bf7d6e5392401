"""
Meta Cloud API and Evolution API webhooks (X-Hub-Signature-256)
"""

import hashlib
import hmac
import re

from ..models.security import (
    VerdictStatus,
    WebhookProvider,
    WebhookSignatureContext,
    WebhookVerdict,
)
from .base import SignatureScheme

SIGNATURE_HEADER = "X-Hub-Signature-256"
SUPPORTED_ALGORITHM = "sha256"

_SHA256_HEX = re.compile(r"[0-9a-fA-F]{64}")


def compute_hub_signature(raw_body: bytes, app_secret: str) -> str:
    """
    Compute the X-Hub-Signature-256 header value for a body

    Returns:
        "sha256=" followed by the hex HMAC-SHA256 of the raw bytes
    """
    digest = hmac.new(app_secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
    return f"{SUPPORTED_ALGORITHM}={digest}"


class HubSignatureScheme(SignatureScheme):
    """HMAC-SHA256 over the raw request body, sent as "sha256=<hex>" """

    def __init__(self, provider: WebhookProvider = WebhookProvider.META):
        self.provider = provider

    def verify(self, context: WebhookSignatureContext) -> WebhookVerdict:
        app_secret = context.secrets.shared_secret_value()
        if not app_secret:
            return self.verdict(VerdictStatus.MISSING_CREDENTIAL, "Missing app secret")

        header = (context.signature or "").strip()
        if not header:
            return self.verdict(
                VerdictStatus.MISSING_SIGNATURE, f"Missing {SIGNATURE_HEADER} header"
            )

        algorithm, sep, digest = header.partition("=")
        if not sep:
            return self.verdict(
                VerdictStatus.MALFORMED_SIGNATURE, "Signature has no algorithm prefix"
            )
        if algorithm.lower() != SUPPORTED_ALGORITHM:
            return self.verdict(
                VerdictStatus.MALFORMED_SIGNATURE,
                f"Unsupported signature algorithm: {algorithm}",
            )
        if not _SHA256_HEX.fullmatch(digest):
            return self.verdict(
                VerdictStatus.MALFORMED_SIGNATURE, "Signature digest is not sha256 hex"
            )

        expected = compute_hub_signature(context.raw_body, app_secret)
        return self.compare(expected, f"{SUPPORTED_ALGORITHM}={digest.lower()}")
