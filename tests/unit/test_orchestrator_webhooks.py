from __future__ import annotations

from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from payments_orchestrator.core.errors import (
    InvalidStateError,
    NotFoundError,
    ValidationAppError,
)
from payments_orchestrator.domain.payment import Payment
from payments_orchestrator.services.orchestrator import PaymentOrchestrator

from shared.contracts import PaymentStatus, WebhookOutcome
from tests.helpers import ScriptedProvider, event_types, make_orchestrator, make_payment


@pytest.fixture
def orchestrator() -> PaymentOrchestrator:
    return make_orchestrator(ScriptedProvider("fake"), ScriptedProvider("other"))


async def _open_payment(orchestrator: PaymentOrchestrator) -> UUID:
    result = await orchestrator.create_payment(
        amount=Decimal("1000"), currency="RUB", merchant_id="merchant-1", description="Order #1"
    )
    return result.payment_id


def _seed(orchestrator: PaymentOrchestrator, payment: Payment) -> None:
    orchestrator._payments.save(payment)


async def _webhook(
    orchestrator: PaymentOrchestrator, payment_id: UUID, status: str, **extra: str
) -> WebhookOutcome:
    return await orchestrator.process_webhook(
        payment_id=payment_id,
        provider_id=extra.pop("provider_id", "fake"),
        provider_transaction_id=extra.pop("provider_transaction_id", "tx-1"),
        status=status,
        **extra,
    )


@pytest.mark.asyncio
async def test_processing_then_completed_reaches_completed(
    orchestrator: PaymentOrchestrator,
) -> None:
    payment_id = await _open_payment(orchestrator)

    assert await _webhook(orchestrator, payment_id, "processing") == WebhookOutcome.APPLIED
    assert await _webhook(orchestrator, payment_id, "completed") == WebhookOutcome.APPLIED

    payment = await orchestrator.get_payment(payment_id)
    events = await orchestrator.get_payment_events(payment_id)
    assert payment.status == PaymentStatus.COMPLETED
    assert event_types(events)[-2:] == ["payment_processing_started", "payment_completed"]
    assert events[-1].data["provider_id"] == "fake"
    assert events[-1].data["provider_transaction_id"] == "tx-1"


@pytest.mark.asyncio
async def test_duplicate_processing_webhook_is_ignored(orchestrator: PaymentOrchestrator) -> None:
    payment_id = await _open_payment(orchestrator)

    await _webhook(orchestrator, payment_id, "processing")
    outcome = await _webhook(orchestrator, payment_id, "processing")

    events = await orchestrator.get_payment_events(payment_id)
    assert outcome == WebhookOutcome.IGNORED
    assert event_types(events).count("payment_processing_started") == 1


@pytest.mark.asyncio
async def test_completed_webhook_for_created_payment_is_rejected_without_changes(
    orchestrator: PaymentOrchestrator,
) -> None:
    payment = make_payment()
    _seed(orchestrator, payment)

    with pytest.raises(InvalidStateError):
        await _webhook(orchestrator, payment.id, "completed", provider_transaction_id="tx-9")

    stored = await orchestrator.get_payment(payment.id)
    assert stored.status == PaymentStatus.CREATED
    assert stored.provider_transaction_id is None
    assert await orchestrator.get_payment_events(payment.id) == []


@pytest.mark.asyncio
async def test_awaiting_webhook_promotes_created_payment_without_event(
    orchestrator: PaymentOrchestrator,
) -> None:
    payment = make_payment()
    _seed(orchestrator, payment)

    outcome = await _webhook(
        orchestrator, payment.id, "awaiting_payment", provider_transaction_id="tx-7"
    )

    stored = await orchestrator.get_payment(payment.id)
    assert outcome == WebhookOutcome.APPLIED
    assert stored.status == PaymentStatus.AWAITING_PAYMENT
    assert stored.provider_transaction_id == "tx-7"
    assert await orchestrator.get_payment_events(payment.id) == []


@pytest.mark.asyncio
async def test_awaiting_webhook_is_a_no_op_outside_created(
    orchestrator: PaymentOrchestrator,
) -> None:
    payment_id = await _open_payment(orchestrator)
    await _webhook(orchestrator, payment_id, "processing")

    outcome = await _webhook(orchestrator, payment_id, "awaiting_payment")

    assert outcome == WebhookOutcome.IGNORED
    assert (await orchestrator.get_payment(payment_id)).status == PaymentStatus.PROCESSING


@pytest.mark.asyncio
async def test_failed_webhook_records_retryable_failure_with_defaults(
    orchestrator: PaymentOrchestrator,
) -> None:
    payment_id = await _open_payment(orchestrator)

    await _webhook(orchestrator, payment_id, "failed")

    events = await orchestrator.get_payment_events(payment_id)
    assert (await orchestrator.get_payment(payment_id)).status == PaymentStatus.FAILED
    assert events[-1].data == {
        "error_code": "UNKNOWN_ERROR",
        "error_message": "Unknown error",
        "is_retryable": True,
    }


@pytest.mark.asyncio
async def test_failed_webhook_keeps_provider_error_details(
    orchestrator: PaymentOrchestrator,
) -> None:
    payment_id = await _open_payment(orchestrator)

    await _webhook(
        orchestrator, payment_id, "failed", error_code="51", error_message="Insufficient funds"
    )

    events = await orchestrator.get_payment_events(payment_id)
    assert events[-1].data["error_code"] == "51"
    assert events[-1].data["error_message"] == "Insufficient funds"


@pytest.mark.asyncio
async def test_cancelled_webhook_uses_provider_as_canceller(
    orchestrator: PaymentOrchestrator,
) -> None:
    payment_id = await _open_payment(orchestrator)

    await _webhook(orchestrator, payment_id, "cancelled")

    events = await orchestrator.get_payment_events(payment_id)
    assert (await orchestrator.get_payment(payment_id)).status == PaymentStatus.CANCELLED
    assert events[-1].data == {"reason": "Cancelled by provider", "cancelled_by": "fake"}


@pytest.mark.asyncio
async def test_webhook_after_terminal_state_is_rejected(orchestrator: PaymentOrchestrator) -> None:
    payment_id = await _open_payment(orchestrator)
    await _webhook(orchestrator, payment_id, "cancelled")

    with pytest.raises(InvalidStateError):
        await _webhook(orchestrator, payment_id, "failed")


@pytest.mark.asyncio
async def test_webhook_from_other_provider_is_rejected(orchestrator: PaymentOrchestrator) -> None:
    payment_id = await _open_payment(orchestrator)

    with pytest.raises(ValidationAppError):
        await _webhook(orchestrator, payment_id, "completed", provider_id="other")

    assert (await orchestrator.get_payment(payment_id)).status == PaymentStatus.AWAITING_PAYMENT


@pytest.mark.asyncio
async def test_unknown_provider_status_is_rejected_without_changes(
    orchestrator: PaymentOrchestrator,
) -> None:
    payment_id = await _open_payment(orchestrator)

    with pytest.raises(ValidationAppError):
        await _webhook(orchestrator, payment_id, "exploded")

    events = await orchestrator.get_payment_events(payment_id)
    assert event_types(events) == ["payment_initiated", "payment_link_generated"]


@pytest.mark.asyncio
async def test_webhook_for_unknown_payment_raises_not_found(
    orchestrator: PaymentOrchestrator,
) -> None:
    with pytest.raises(NotFoundError):
        await _webhook(orchestrator, uuid4(), "completed")


@pytest.mark.asyncio
async def test_webhook_does_not_replace_existing_transaction_id(
    orchestrator: PaymentOrchestrator,
) -> None:
    payment_id = await _open_payment(orchestrator)

    await _webhook(orchestrator, payment_id, "processing", provider_transaction_id="tx-other")

    assert (await orchestrator.get_payment(payment_id)).provider_transaction_id == "tx-1"
