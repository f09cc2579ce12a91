from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from shared.contracts import (
    CustomerRedirectedPayload,
    PaymentCancelledPayload,
    PaymentCompletedPayload,
    PaymentEventType,
    PaymentFailedPayload,
    PaymentInitiatedPayload,
    PaymentLinkGeneratedPayload,
    ProcessingStartedPayload,
    RetryRequestedPayload,
)
from shared.utils import new_uuid, utc_now


class PaymentEvent(BaseModel):
    """Immutable fact about a payment. The log is append-only."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    payment_id: UUID
    type: PaymentEventType
    data: dict[str, Any]
    timestamp: datetime

    @classmethod
    def _record(
        cls, payment_id: UUID, event_type: PaymentEventType, payload: BaseModel
    ) -> PaymentEvent:
        return cls(
            id=new_uuid(),
            payment_id=payment_id,
            type=event_type,
            data=payload.model_dump(mode="json"),
            timestamp=utc_now(),
        )

    @classmethod
    def payment_initiated(
        cls,
        payment_id: UUID,
        *,
        amount: Decimal,
        currency: str,
        merchant_id: str,
        description: str,
    ) -> PaymentEvent:
        payload = PaymentInitiatedPayload(
            amount=amount, currency=currency, merchant_id=merchant_id, description=description
        )
        return cls._record(payment_id, PaymentEventType.PAYMENT_INITIATED, payload)

    @classmethod
    def payment_link_generated(
        cls, payment_id: UUID, *, payment_url: str, expires_at: datetime
    ) -> PaymentEvent:
        payload = PaymentLinkGeneratedPayload(payment_url=payment_url, expires_at=expires_at)
        return cls._record(payment_id, PaymentEventType.PAYMENT_LINK_GENERATED, payload)

    @classmethod
    def customer_redirected(
        cls, payment_id: UUID, *, user_agent: str | None = None, ip_address: str | None = None
    ) -> PaymentEvent:
        payload = CustomerRedirectedPayload(user_agent=user_agent, ip_address=ip_address)
        return cls._record(payment_id, PaymentEventType.CUSTOMER_REDIRECTED, payload)

    @classmethod
    def processing_started(
        cls, payment_id: UUID, *, provider_id: str, provider_transaction_id: str
    ) -> PaymentEvent:
        payload = ProcessingStartedPayload(
            provider_id=provider_id, provider_transaction_id=provider_transaction_id
        )
        return cls._record(payment_id, PaymentEventType.PAYMENT_PROCESSING_STARTED, payload)

    @classmethod
    def payment_completed(
        cls,
        payment_id: UUID,
        *,
        provider_id: str,
        provider_transaction_id: str,
        completed_at: datetime | None = None,
    ) -> PaymentEvent:
        payload = PaymentCompletedPayload(
            provider_id=provider_id,
            provider_transaction_id=provider_transaction_id,
            completed_at=completed_at or utc_now(),
        )
        return cls._record(payment_id, PaymentEventType.PAYMENT_COMPLETED, payload)

    @classmethod
    def payment_failed(
        cls, payment_id: UUID, *, error_code: str, error_message: str, is_retryable: bool
    ) -> PaymentEvent:
        payload = PaymentFailedPayload(
            error_code=error_code, error_message=error_message, is_retryable=is_retryable
        )
        return cls._record(payment_id, PaymentEventType.PAYMENT_FAILED, payload)

    @classmethod
    def retry_requested(cls, payment_id: UUID, *, attempt_number: int, reason: str) -> PaymentEvent:
        payload = RetryRequestedPayload(attempt_number=attempt_number, reason=reason)
        return cls._record(payment_id, PaymentEventType.PAYMENT_RETRY_REQUESTED, payload)

    @classmethod
    def payment_cancelled(
        cls, payment_id: UUID, *, reason: str, cancelled_by: str
    ) -> PaymentEvent:
        payload = PaymentCancelledPayload(reason=reason, cancelled_by=cancelled_by)
        return cls._record(payment_id, PaymentEventType.PAYMENT_CANCELLED, payload)
