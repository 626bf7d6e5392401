"""
Pydantic models for normalized payment webhook events
"""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from enum import Enum

from .security import WebhookProvider


class TransactionStatus(str, Enum):
    """Platform transaction status shared by all gateways"""

    PENDING = "pending"
    APPROVED = "approved"
    DECLINED = "declined"
    VOIDED = "voided"
    ERROR = "error"


class WebhookEventType(str, Enum):
    """Normalized webhook event types"""

    TRANSACTION_UPDATED = "transaction.updated"


class WebhookEvent(BaseModel):
    """Provider-independent view of an authenticated payment webhook"""

    provider: WebhookProvider
    event_type: WebhookEventType = WebhookEventType.TRANSACTION_UPDATED
    transaction_id: str
    reference: Optional[str] = None
    status: TransactionStatus
    amount: Optional[str] = Field(None, description="Amount exactly as sent by the provider")
    currency: Optional[str] = None
    is_test: bool = False
    raw_payload: Dict[str, Any] = Field(default_factory=dict)
