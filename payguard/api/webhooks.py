"""
Payment and messaging webhook endpoints
Authenticate inbound webhooks and hand back the decision as data
"""

import hmac
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse

from ..config.settings import SecuritySettings, get_settings
from ..integrations import SIGNATURE_HEADER, normalize_epayco_event, normalize_wompi_event
from ..models.errors import APIError, ErrorCode, SecurityCoreError
from ..models.security import ProviderSecrets, WebhookProvider
from ..services.credential_store import CredentialStore, InMemoryCredentialStore
from ..utils.error_handling import error_json_response, verdict_to_error
from ..utils.logger import get_logger, log_error, mask_secret, redact_headers
from ..utils.webhook_verification import (
    WebhookAuthenticator,
    get_webhook_authenticator,
    raise_for_missing_credential,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])

_credential_store: Optional[InMemoryCredentialStore] = None

NORMALIZERS = {
    WebhookProvider.EPAYCO: normalize_epayco_event,
    WebhookProvider.WOMPI: normalize_wompi_event,
}


def get_credential_store() -> CredentialStore:
    """Credential lookup dependency; hosts override it with their storage"""
    global _credential_store
    if _credential_store is None:
        _credential_store = InMemoryCredentialStore()
    return _credential_store


def get_authenticator() -> WebhookAuthenticator:
    return get_webhook_authenticator()


async def _handle_payment_webhook(
    provider: WebhookProvider,
    request: Request,
    org: Optional[str],
    store: CredentialStore,
    authenticator: WebhookAuthenticator,
):
    if not org:
        logger.warning(
            "Payment webhook without org parameter",
            extra={"provider": provider.value, "event_type": "payment_webhook_rejected"},
        )
        return error_json_response(
            APIError(ErrorCode.VALIDATION_ERROR, "Missing org parameter")
        )

    # Signatures cover the exact bytes on the wire
    raw_body = await request.body()

    try:
        credential = store.get_credential(org, provider)
        verdict = authenticator.verify_credential(provider, raw_body, None, credential)
        error = verdict_to_error(verdict)
        if error:
            return error_json_response(error)
        event = NORMALIZERS[provider](raw_body)
    except SecurityCoreError as e:
        log_error(
            "payment_webhook_error",
            "Payment webhook could not be verified",
            provider=provider.value,
            org=org,
            error_code=e.code.value,
        )
        return error_json_response(e)

    logger.info(
        "Payment webhook authenticated",
        extra={
            "provider": provider.value,
            "org": org,
            "transaction_id": event.transaction_id,
            "status": event.status.value,
            "event_type": "payment_webhook_authenticated",
        },
    )
    return {"ok": True, "data": event.model_dump(mode="json"), "message": "Webhook authenticated"}


@router.post("/payments/epayco")
async def handle_epayco_webhook(
    request: Request,
    org: Optional[str] = Query(None),
    store: CredentialStore = Depends(get_credential_store),
    authenticator: WebhookAuthenticator = Depends(get_authenticator),
):
    """ePayco confirmation URL (JSON or form encoded body)"""
    return await _handle_payment_webhook(
        WebhookProvider.EPAYCO, request, org, store, authenticator
    )


@router.post("/payments/wompi")
async def handle_wompi_webhook(
    request: Request,
    org: Optional[str] = Query(None),
    store: CredentialStore = Depends(get_credential_store),
    authenticator: WebhookAuthenticator = Depends(get_authenticator),
):
    """Wompi event URL"""
    return await _handle_payment_webhook(
        WebhookProvider.WOMPI, request, org, store, authenticator
    )


async def _handle_hub_webhook(
    provider: WebhookProvider,
    app_secret: Optional[str],
    request: Request,
    authenticator: WebhookAuthenticator,
):
    raw_body = await request.body()
    signature = request.headers.get(SIGNATURE_HEADER)

    logger.debug(
        "Hub webhook received",
        extra={
            "provider": provider.value,
            "headers": redact_headers(dict(request.headers)),
            "event_type": "hub_webhook_received",
        },
    )

    try:
        verdict = raise_for_missing_credential(
            authenticator.verify_payload(
                provider, raw_body, signature, ProviderSecrets(shared_secret=app_secret)
            )
        )
    except SecurityCoreError as e:
        logger.error(
            "Hub webhook secret not configured",
            extra={"provider": provider.value, "event_type": "hub_webhook_error"},
        )
        return error_json_response(e)

    error = verdict_to_error(verdict)
    if error:
        return error_json_response(error)

    return {"ok": True, "data": {"received": True, "provider": provider.value}}


@router.post("/whatsapp-meta")
async def handle_meta_webhook(
    request: Request,
    settings: SecuritySettings = Depends(get_settings),
    authenticator: WebhookAuthenticator = Depends(get_authenticator),
):
    """Meta platform events (WhatsApp Cloud API, Instagram, Messenger)"""
    return await _handle_hub_webhook(
        WebhookProvider.META, settings.meta_app_secret, request, authenticator
    )


@router.post("/whatsapp")
async def handle_evolution_webhook(
    request: Request,
    settings: SecuritySettings = Depends(get_settings),
    authenticator: WebhookAuthenticator = Depends(get_authenticator),
):
    """Evolution API events"""
    return await _handle_hub_webhook(
        WebhookProvider.EVOLUTION, settings.evolution_webhook_secret, request, authenticator
    )


@router.get("/whatsapp-meta")
async def handle_meta_verification(
    hub_mode: Optional[str] = Query(None, alias="hub.mode"),
    hub_verify_token: Optional[str] = Query(None, alias="hub.verify_token"),
    hub_challenge: Optional[str] = Query(None, alias="hub.challenge"),
    settings: SecuritySettings = Depends(get_settings),
):
    """
    Handle Meta webhook subscription (hub.challenge)
    Called by Meta when the callback URL is registered
    """
    logger.info(
        "Webhook verification request",
        extra={
            "hub_mode": hub_mode,
            "token_prefix": mask_secret(hub_verify_token),
            "event_type": "webhook_verification_request",
        },
    )

    if hub_mode != "subscribe" or not hub_verify_token or not hub_challenge:
        return PlainTextResponse("Missing parameters", status_code=400)

    if not settings.meta_verify_token:
        logger.error(
            "META_VERIFY_TOKEN not configured",
            extra={"event_type": "webhook_verification_failed"},
        )
        return PlainTextResponse("Not configured", status_code=500)

    if not hmac.compare_digest(
        hub_verify_token.encode("utf-8"), settings.meta_verify_token.encode("utf-8")
    ):
        logger.warning(
            "Invalid verify token",
            extra={"event_type": "webhook_verification_failed"},
        )
        return PlainTextResponse("Invalid verify token", status_code=403)

    logger.info("Verification successful", extra={"event_type": "webhook_verification_success"})
    return PlainTextResponse(hub_challenge, status_code=200)
