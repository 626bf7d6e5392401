"""
Logger utility for the PayGuard webhook security core
Provides secret masking, header redaction, and structured logging helpers
"""

from typing import Dict, Any, Optional
from ..config.logging import build_logger

# Headers that should be redacted in logs
REDACT_HEADERS = {
    "authorization",
    "proxy-authorization",
    "cookie",
    "set-cookie",
    "x-api-key",
    "x-auth-token",
    "x-hub-signature",
    "x-hub-signature-256",
}

REDACT_VALUE = "[REDACTED]"

# Global logger instance
log = build_logger("payguard")


def get_logger(name: str = "payguard"):
    """
    Get a logger instance with the given name.

    Args:
        name: Logger name (defaults to "payguard")

    Returns:
        Logger instance configured with project settings
    """
    return build_logger(name)


def mask_secret(value: Optional[str], visible: int = 4) -> str:
    """
    Mask a secret for logging, keeping only a short prefix

    Args:
        value: Secret value (may be None)
        visible: Number of leading characters to keep

    Returns:
        Masked representation such as "abcd***"
    """
    if not value:
        return ""
    if len(value) <= visible:
        return "***"
    return value[:visible] + "***"


def redact_headers(headers: Dict[str, Any]) -> Dict[str, Any]:
    """
    Redact sensitive headers for logging

    Args:
        headers: Dictionary of HTTP headers

    Returns:
        Dictionary with sensitive values redacted
    """
    redacted = {}
    for key, value in headers.items():
        key_lower = key.lower()
        if key_lower in REDACT_HEADERS:
            redacted[key] = REDACT_VALUE
        elif any(
            sensitive in key_lower
            for sensitive in ["token", "secret", "key", "auth", "signature"]
        ):
            redacted[key] = REDACT_VALUE
        else:
            redacted[key] = value
    return redacted



def log_event(event_type: str, message: str, **kwargs):
    """
    Log a structured event with standardized fields

    Args:
        event_type: Type of event (e.g., 'provider_credential_stored')
        message: Human-readable message
        **kwargs: Additional context fields
    """
    extra = {"event_type": event_type, **kwargs}
    log.info(message, extra=extra)


def log_error(
    event_type: str, message: str, exception: Optional[Exception] = None, **kwargs
):
    """
    Log an error event with standardized fields

    Args:
        event_type: Type of error event
        message: Human-readable error message
        exception: Exception instance (optional)
        **kwargs: Additional context fields
    """
    extra = {"event_type": event_type, **kwargs}

    if exception:
        log.error(message, extra=extra, exc_info=exception)
    else:
        log.error(message, extra=extra)
