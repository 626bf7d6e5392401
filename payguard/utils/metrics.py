"""
Prometheus metrics for the PayGuard webhook security core
Counts codec operations and webhook verification verdicts
"""

from prometheus_client import Counter

# Webhook verification outcomes (status is a VerdictStatus value)
WEBHOOK_VERIFICATIONS_TOTAL = Counter(
    "webhook_signature_verifications_total",
    "Total webhook signature verifications",
    ["provider", "status"]
)

# Codec operations; result: success/format_error/auth_failed/config_error
SECRET_CODEC_OPERATIONS_TOTAL = Counter(
    "secret_codec_operations_total",
    "Total secret codec operations",
    ["operation", "result"]
)


def record_verification(provider: str, status: str):
    """Record one webhook verification verdict"""
    WEBHOOK_VERIFICATIONS_TOTAL.labels(provider=provider, status=status).inc()


def record_codec_operation(operation: str, result: str):
    """Record one encrypt/decrypt call"""
    SECRET_CODEC_OPERATIONS_TOTAL.labels(operation=operation, result=result).inc()
