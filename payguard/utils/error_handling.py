"""
Error handling utilities for the PayGuard webhook security core
Provides sanitization and mapping of core errors and verdicts to responses
"""

import re
from typing import Dict, Any, Optional

from fastapi.responses import JSONResponse

from ..models.errors import APIError, ErrorCode, ErrorInfo, ErrorResponse
from ..models.security import VerdictStatus, WebhookVerdict


# Sensitive data patterns to redact
SENSITIVE_PATTERNS = [
    r'password["\s]*[:=]["\s]*[^"\s,}]+',  # password fields
    r'token["\s]*[:=]["\s]*[^"\s,}]+',     # token fields
    r'key["\s]*[:=]["\s]*[^"\s,}]+',       # key fields
    r'secret["\s]*[:=]["\s]*[^"\s,}]+',    # secret fields
    r'\b[0-9a-fA-F]{32}:[0-9a-fA-F]{32}:[0-9a-fA-F]*\b',  # EncryptedSecret values
]

REDACTION_PLACEHOLDER = "***REDACTED***"

HTTP_STATUS_BY_CODE = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.WEBHOOK_PAYLOAD_INVALID: 400,
    ErrorCode.WEBHOOK_NOT_CONFIGURED: 400,
    ErrorCode.UNSUPPORTED_PROVIDER: 404,
    ErrorCode.WEBHOOK_SIGNATURE_INVALID: 401,
    ErrorCode.CONFIGURATION_ERROR: 500,
    ErrorCode.ENCRYPTED_FORMAT_INVALID: 500,
    ErrorCode.DECRYPTION_FAILED: 500,
    ErrorCode.INTERNAL_ERROR: 500,
}

# Verdicts that block processing, with the error they surface as
VERDICT_ERRORS = {
    VerdictStatus.REJECTED: (ErrorCode.WEBHOOK_SIGNATURE_INVALID, "Invalid signature"),
    VerdictStatus.MISSING_SIGNATURE: (ErrorCode.WEBHOOK_SIGNATURE_INVALID, "Missing signature"),
    VerdictStatus.MALFORMED_SIGNATURE: (ErrorCode.WEBHOOK_SIGNATURE_INVALID, "Malformed signature"),
    VerdictStatus.MISSING_FIELDS: (ErrorCode.WEBHOOK_PAYLOAD_INVALID, "Missing signed fields"),
    VerdictStatus.MISSING_CREDENTIAL: (ErrorCode.WEBHOOK_NOT_CONFIGURED, "Payment gateway not configured"),
}


def sanitize_error_message(message: str) -> str:
    """
    Sanitize error message by removing sensitive information

    Args:
        message: Raw error message

    Returns:
        Sanitized error message
    """
    sanitized = message

    for pattern in SENSITIVE_PATTERNS:
        sanitized = re.sub(pattern, REDACTION_PLACEHOLDER, sanitized, flags=re.IGNORECASE)

    # Limit message length to prevent log flooding
    if len(sanitized) > 500:
        sanitized = sanitized[:497] + "..."

    return sanitized


def verdict_to_error(verdict: WebhookVerdict) -> Optional[APIError]:
    """Turn a non-authentic verdict into an APIError (None when authentic)"""
    if verdict.is_authentic:
        return None
    code, message = VERDICT_ERRORS[verdict.status]
    return APIError(
        code=code,
        message=message,
        details={
            "provider": verdict.provider.value,
            "status": verdict.status.value,
            "reason": verdict.reason,
        },
    )


def error_json_response(
    error: APIError, status_code: Optional[int] = None
) -> JSONResponse:
    """
    Build the standard error envelope for an APIError

    Args:
        error: Error to render
        status_code: Override for the HTTP status derived from the code

    Returns:
        JSONResponse with {"ok": false, "error": {...}, "timestamp": ...}
    """
    details: Dict[str, Any] = {
        key: sanitize_error_message(value) if isinstance(value, str) else value
        for key, value in error.details.items()
    }
    body = ErrorResponse(
        error=ErrorInfo(
            code=error.code.value,
            message=sanitize_error_message(error.message),
            details=details,
        )
    )
    return JSONResponse(
        status_code=status_code or HTTP_STATUS_BY_CODE.get(error.code, 500),
        content=body.model_dump(mode="json"),
    )
