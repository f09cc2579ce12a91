from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Request, status

from payments_orchestrator.api.dependencies import get_app_settings, get_orchestrator
from payments_orchestrator.core.config import Settings
from payments_orchestrator.core.errors import ValidationAppError
from payments_orchestrator.domain.events import PaymentEvent
from payments_orchestrator.domain.payment import Payment
from payments_orchestrator.services.orchestrator import PaymentOrchestrator
from shared.contracts import (
    CancelPaymentRequest,
    CancelPaymentResponse,
    CreatePaymentRequest,
    CreatePaymentResponse,
    CustomerRedirectResponse,
    PaymentEventResponse,
    PaymentEventsResponse,
    PaymentListResponse,
    PaymentResponse,
    RetryPaymentRequest,
    RetryPaymentResponse,
)
from shared.utils import ensure_supported_currency

router = APIRouter(prefix="/api/payments", tags=["payments"])


def to_payment_response(payment: Payment) -> PaymentResponse:
    return PaymentResponse.model_validate(payment, from_attributes=True)


def to_event_response(event: PaymentEvent) -> PaymentEventResponse:
    return PaymentEventResponse(
        id=event.id, type=event.type, data=event.data, timestamp=event.timestamp
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_payment(
    payload: CreatePaymentRequest,
    orchestrator: Annotated[PaymentOrchestrator, Depends(get_orchestrator)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> CreatePaymentResponse:
    try:
        currency = ensure_supported_currency(payload.currency, settings.supported_currencies)
    except ValueError as exc:
        raise ValidationAppError(str(exc)) from exc
    result = await orchestrator.create_payment(
        amount=payload.amount,
        currency=currency,
        merchant_id=payload.merchant_id,
        description=payload.description,
        provider_id=payload.provider_id,
    )
    return CreatePaymentResponse(payment_id=result.payment_id, payment_url=result.payment_url)


@router.get("")
async def list_payments(
    orchestrator: Annotated[PaymentOrchestrator, Depends(get_orchestrator)],
) -> PaymentListResponse:
    payments = await orchestrator.list_payments()
    return PaymentListResponse(
        count=len(payments), payments=[to_payment_response(payment) for payment in payments]
    )


@router.get("/{payment_id}")
async def get_payment(
    payment_id: UUID,
    orchestrator: Annotated[PaymentOrchestrator, Depends(get_orchestrator)],
) -> PaymentResponse:
    return to_payment_response(await orchestrator.get_payment(payment_id))


@router.get("/{payment_id}/events")
async def get_payment_events(
    payment_id: UUID,
    orchestrator: Annotated[PaymentOrchestrator, Depends(get_orchestrator)],
) -> PaymentEventsResponse:
    events = await orchestrator.get_payment_events(payment_id)
    return PaymentEventsResponse(
        payment_id=payment_id,
        events_count=len(events),
        events=[to_event_response(event) for event in events],
    )


@router.post("/{payment_id}/redirect")
async def record_customer_redirect(
    payment_id: UUID,
    request: Request,
    orchestrator: Annotated[PaymentOrchestrator, Depends(get_orchestrator)],
    user_agent: Annotated[str | None, Header(alias="User-Agent")] = None,
) -> CustomerRedirectResponse:
    await orchestrator.record_customer_redirect(
        payment_id,
        user_agent=user_agent,
        ip_address=request.client.host if request.client else None,
    )
    return CustomerRedirectResponse(payment_id=payment_id)


@router.post("/{payment_id}/retry")
async def retry_payment(
    payment_id: UUID,
    payload: RetryPaymentRequest,
    orchestrator: Annotated[PaymentOrchestrator, Depends(get_orchestrator)],
) -> RetryPaymentResponse:
    result = await orchestrator.retry_payment(payment_id, reason=payload.reason)
    return RetryPaymentResponse(payment_url=result.payment_url)


@router.post("/{payment_id}/cancel")
async def cancel_payment(
    payment_id: UUID,
    payload: CancelPaymentRequest,
    orchestrator: Annotated[PaymentOrchestrator, Depends(get_orchestrator)],
) -> CancelPaymentResponse:
    payment = await orchestrator.cancel_payment(
        payment_id, reason=payload.reason, cancelled_by=payload.cancelled_by
    )
    return CancelPaymentResponse(payment_id=payment.id, status=payment.status)
