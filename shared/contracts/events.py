from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class _EventPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")


class PaymentInitiatedPayload(_EventPayload):
    amount: Decimal
    currency: str
    merchant_id: str
    description: str


class PaymentLinkGeneratedPayload(_EventPayload):
    payment_url: str
    expires_at: datetime


class CustomerRedirectedPayload(_EventPayload):
    user_agent: str | None = None
    ip_address: str | None = None


class ProcessingStartedPayload(_EventPayload):
    provider_id: str
    provider_transaction_id: str


class PaymentCompletedPayload(_EventPayload):
    provider_id: str
    provider_transaction_id: str
    completed_at: datetime


class PaymentFailedPayload(_EventPayload):
    error_code: str
    error_message: str
    is_retryable: bool


class RetryRequestedPayload(_EventPayload):
    attempt_number: int
    reason: str


class PaymentCancelledPayload(_EventPayload):
    reason: str
    cancelled_by: str
