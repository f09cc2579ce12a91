from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from payments_orchestrator.api.dependencies import get_orchestrator
from payments_orchestrator.services.orchestrator import PaymentOrchestrator
from shared.contracts import WebhookAcceptedResponse, WebhookRequest

router = APIRouter(prefix="/api/payments", tags=["webhooks"])


@router.post("/webhook/{provider_id}")
async def receive_webhook(
    provider_id: str,
    payload: WebhookRequest,
    orchestrator: Annotated[PaymentOrchestrator, Depends(get_orchestrator)],
) -> WebhookAcceptedResponse:
    await orchestrator.process_webhook(
        payment_id=payload.payment_id,
        provider_id=provider_id,
        provider_transaction_id=payload.provider_transaction_id,
        status=payload.status,
        error_code=payload.error_code,
        error_message=payload.error_message,
    )
    return WebhookAcceptedResponse()
