"""
Error models for the PayGuard webhook security core
Defines error codes, the exception taxonomy, and response envelopes
"""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from datetime import datetime, timezone
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for consistent error classification"""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    ENCRYPTED_FORMAT_INVALID = "ENCRYPTED_FORMAT_INVALID"
    DECRYPTION_FAILED = "DECRYPTION_FAILED"
    UNSUPPORTED_PROVIDER = "UNSUPPORTED_PROVIDER"
    WEBHOOK_PAYLOAD_INVALID = "WEBHOOK_PAYLOAD_INVALID"
    WEBHOOK_SIGNATURE_INVALID = "WEBHOOK_SIGNATURE_INVALID"
    WEBHOOK_NOT_CONFIGURED = "WEBHOOK_NOT_CONFIGURED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class APIError(Exception):
    """Structured API error exception with code, message, and optional details"""
    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ErrorInfo(BaseModel):
    """Error information for API responses"""
    code: str = Field(..., description="Error code")
    message: str = Field(..., description="Error message")
    details: Dict[str, Any] = Field(default_factory=dict, description="Error details")


class ErrorResponse(BaseModel):
    """Standard error response envelope for all API errors"""
    ok: bool = Field(False, description="Always false for error responses")
    error: ErrorInfo = Field(..., description="Error information")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Error timestamp"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "ok": False,
                "error": {
                    "code": "WEBHOOK_SIGNATURE_INVALID",
                    "message": "Invalid signature",
                    "details": {"provider": "epayco"}
                },
                "timestamp": "2025-01-27T10:00:00Z"
            }
        }
    }


# Exception taxonomy for the security core. Every class maps to an
# ErrorCode so callers can turn it into the standard envelope.
class SecurityCoreError(APIError):
    """Base class for failures where the core could not do its job"""
    code = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(self.code, message, details)


class ConfigurationError(SecurityCoreError):
    """Master secret or provider shared secret is not configured"""
    code = ErrorCode.CONFIGURATION_ERROR


class FormatError(SecurityCoreError):
    """Value handed to decrypt is not in iv:tag:ciphertext form"""
    code = ErrorCode.ENCRYPTED_FORMAT_INVALID


class AuthenticationFailedError(SecurityCoreError):
    """GCM tag check failed: wrong key or tampered data"""
    code = ErrorCode.DECRYPTION_FAILED


class UnsupportedProviderError(SecurityCoreError):
    """Provider identity has no registered signature scheme"""
    code = ErrorCode.UNSUPPORTED_PROVIDER

    def __init__(self, provider: Any):
        self.provider = provider
        super().__init__(
            f"Unsupported webhook provider: {provider}",
            {"provider": str(provider)},
        )


class PayloadFormatError(SecurityCoreError):
    """Raw webhook body cannot be decoded for the provider's scheme"""
    code = ErrorCode.WEBHOOK_PAYLOAD_INVALID
