"""
ePayco confirmation webhooks: signature check and event normalization
"""

import hashlib
from typing import Any, Dict, Optional
from urllib.parse import parse_qsl

from ..models.errors import PayloadFormatError
from ..models.payments import TransactionStatus, WebhookEvent
from ..models.security import (
    VerdictStatus,
    WebhookProvider,
    WebhookSignatureContext,
    WebhookVerdict,
)
from .base import SignatureScheme, decode_json_object, decode_text, field_text

# Payload fields covered by the signature, in signing order
SIGNED_FIELDS = ("x_ref_payco", "x_transaction_id", "x_amount", "x_currency_code")
SIGNATURE_FIELD = "x_signature"

# x_cod_response: 1 Aceptada, 2 Rechazada, 3 Pendiente, 4 Fallida, 6 Reversada
EPAYCO_STATUS_MAP = {
    "1": TransactionStatus.APPROVED,
    "2": TransactionStatus.DECLINED,
    "3": TransactionStatus.PENDING,
    "4": TransactionStatus.ERROR,
    "6": TransactionStatus.VOIDED,
}


def compute_epayco_signature(
    customer_id: str,
    secret: str,
    ref_payco: str,
    transaction_id: str,
    amount: str,
    currency_code: str,
) -> str:
    """
    Compute the ePayco confirmation signature

    SHA256(p_cust_id_cliente + p_key + x_ref_payco + x_transaction_id +
    x_amount + x_currency_code), lowercase hex.
    """
    string_to_sign = "".join(
        [customer_id, secret, ref_payco, transaction_id, amount, currency_code]
    )
    return hashlib.sha256(string_to_sign.encode("utf-8")).hexdigest()


def parse_epayco_body(raw_body: bytes) -> Dict[str, Any]:
    """
    Read fields from an ePayco confirmation body

    ePayco posts either JSON or application/x-www-form-urlencoded.
    """
    text = decode_text(raw_body, WebhookProvider.EPAYCO)
    if text.lstrip().startswith("{"):
        return decode_json_object(raw_body, WebhookProvider.EPAYCO)

    try:
        return dict(parse_qsl(text, keep_blank_values=True, strict_parsing=bool(text)))
    except ValueError:
        raise PayloadFormatError(
            "Webhook body is neither JSON nor form encoded",
            {"provider": WebhookProvider.EPAYCO.value},
        )


def map_epayco_status(cod_response: Optional[Any]) -> TransactionStatus:
    """Map x_cod_response to the platform transaction status"""
    if cod_response is None:
        return TransactionStatus.PENDING
    return EPAYCO_STATUS_MAP.get(field_text(cod_response), TransactionStatus.PENDING)


class EpaycoSignatureScheme(SignatureScheme):
    """Keyed concatenation + SHA-256 scheme used by ePayco"""

    provider = WebhookProvider.EPAYCO

    def verify(self, context: WebhookSignatureContext) -> WebhookVerdict:
        customer_id = context.secrets.customer_id_value()
        secret = context.secrets.shared_secret_value()
        if not customer_id or not secret:
            return self.verdict(
                VerdictStatus.MISSING_CREDENTIAL,
                "Missing P_CUST_ID_CLIENTE or P_KEY",
            )

        payload = parse_epayco_body(context.raw_body)

        claimed = payload.get(SIGNATURE_FIELD) or context.signature
        if not claimed:
            return self.verdict(VerdictStatus.MISSING_SIGNATURE, "Missing x_signature")

        missing = [
            name for name in SIGNED_FIELDS
            if payload.get(name) is None or field_text(payload.get(name)) == ""
        ]
        if missing:
            return self.verdict(
                VerdictStatus.MISSING_FIELDS,
                f"Missing fields: {', '.join(missing)}",
            )

        expected = compute_epayco_signature(
            customer_id,
            secret,
            *(field_text(payload[name]) for name in SIGNED_FIELDS),
        )
        return self.compare(expected, field_text(claimed))


def normalize_epayco_event(raw_body: bytes) -> WebhookEvent:
    """Build a WebhookEvent from an authenticated ePayco body"""
    payload = parse_epayco_body(raw_body)
    reference = payload.get("x_id_invoice") or payload.get("x_extra1")

    amount = payload.get("x_amount")
    currency = payload.get("x_currency_code")

    return WebhookEvent(
        provider=WebhookProvider.EPAYCO,
        transaction_id=field_text(payload.get("x_ref_payco", "")),
        reference=field_text(reference) if reference else None,
        status=map_epayco_status(payload.get("x_cod_response")),
        amount=field_text(amount) if amount is not None else None,
        currency=field_text(currency) if currency is not None else None,
        is_test=field_text(payload.get("x_test_request", "")).upper() == "TRUE",
        raw_payload=payload,
    )
