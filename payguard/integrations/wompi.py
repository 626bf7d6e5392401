"""
Wompi event webhooks: checksum check and event normalization
"""

import hashlib
from typing import Any, Dict, Iterable, List, Optional

from ..models.payments import TransactionStatus, WebhookEvent
from ..models.security import (
    VerdictStatus,
    WebhookProvider,
    WebhookSignatureContext,
    WebhookVerdict,
)
from .base import SignatureScheme, decode_json_object, field_text

WOMPI_STATUS_MAP = {
    "APPROVED": TransactionStatus.APPROVED,
    "DECLINED": TransactionStatus.DECLINED,
    "VOIDED": TransactionStatus.VOIDED,
    "ERROR": TransactionStatus.ERROR,
    "PENDING": TransactionStatus.PENDING,
}

_MISSING = object()


def resolve_property(data: Dict[str, Any], path: str) -> Any:
    """Resolve a dotted path such as "transaction.id" inside data"""
    value: Any = data
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return _MISSING
        value = value[part]
    return value


def compute_wompi_checksum(
    data: Dict[str, Any],
    properties: Iterable[str],
    timestamp: Any,
    integrity_secret: str,
) -> str:
    """
    Compute the Wompi event checksum

    SHA256 over the listed property values, then the timestamp, then the
    integrity secret. Properties absent from data are skipped; properties
    present with a null value contribute "null".
    """
    values: List[str] = []
    for prop in properties:
        value = resolve_property(data, prop)
        if value is _MISSING:
            continue
        values.append("null" if value is None else field_text(value))
    values.append(field_text(timestamp))
    values.append(integrity_secret)
    return hashlib.sha256("".join(values).encode("utf-8")).hexdigest()


def map_wompi_status(status: Optional[Any]) -> TransactionStatus:
    """Map a Wompi transaction status to the platform status"""
    if not isinstance(status, str):
        return TransactionStatus.PENDING
    return WOMPI_STATUS_MAP.get(status, TransactionStatus.PENDING)


class WompiSignatureScheme(SignatureScheme):
    """Checksum scheme used by Wompi event notifications"""

    provider = WebhookProvider.WOMPI

    def verify(self, context: WebhookSignatureContext) -> WebhookVerdict:
        integrity_secret = context.secrets.shared_secret_value()
        if not integrity_secret:
            return self.verdict(
                VerdictStatus.MISSING_CREDENTIAL, "Missing integrity secret"
            )

        payload = decode_json_object(context.raw_body, self.provider)
        signature = payload.get("signature")
        if not isinstance(signature, dict):
            signature = {}

        claimed = signature.get("checksum") or context.signature
        if not claimed:
            return self.verdict(VerdictStatus.MISSING_SIGNATURE, "Missing checksum")

        properties = signature.get("properties")
        data = payload.get("data")
        timestamp = payload.get("timestamp")
        if (
            not isinstance(properties, list)
            or not all(isinstance(prop, str) for prop in properties)
            or not isinstance(data, dict)
            or timestamp is None
        ):
            return self.verdict(
                VerdictStatus.MISSING_FIELDS,
                "Missing or invalid signature.properties, data or timestamp",
            )

        expected = compute_wompi_checksum(data, properties, timestamp, integrity_secret)
        # Wompi sends the checksum in upper case hex
        return self.compare(expected, field_text(claimed).lower())


def normalize_wompi_event(raw_body: bytes) -> WebhookEvent:
    """Build a WebhookEvent from an authenticated Wompi body"""
    payload = decode_json_object(raw_body, WebhookProvider.WOMPI)
    data = payload.get("data") if isinstance(payload.get("data"), dict) else {}
    transaction = data.get("transaction") if isinstance(data.get("transaction"), dict) else {}

    amount = transaction.get("amount_in_cents")
    reference = transaction.get("reference")
    currency = transaction.get("currency")
    return WebhookEvent(
        provider=WebhookProvider.WOMPI,
        transaction_id=field_text(transaction.get("id", "")),
        reference=field_text(reference) if reference is not None else None,
        status=map_wompi_status(transaction.get("status")),
        amount=field_text(amount) if amount is not None else None,
        currency=field_text(currency) if currency is not None else None,
        is_test=payload.get("environment") == "test",
        raw_payload=payload,
    )
