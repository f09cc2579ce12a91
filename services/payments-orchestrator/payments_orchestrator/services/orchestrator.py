from __future__ import annotations

import asyncio
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from opentelemetry import trace

from payments_orchestrator.core.errors import (
    ExternalServiceError,
    InvalidStateError,
    NotFoundError,
    ValidationAppError,
)
from payments_orchestrator.core.metrics import (
    payment_cancellations_total,
    payment_failures_total,
    payment_retries_total,
    payments_created_total,
    remote_cancel_failures_total,
    webhooks_processed_total,
)
from payments_orchestrator.domain.events import PaymentEvent
from payments_orchestrator.domain.payment import MAX_RETRY_ATTEMPTS, Payment
from payments_orchestrator.providers.contracts import PaymentProvider
from payments_orchestrator.providers.registry import ProviderRegistry
from payments_orchestrator.storage.store import Store
from shared.contracts import PaymentStatus, ProviderPaymentRequest, WebhookOutcome
from shared.logging import PAYMENT_ID, PROVIDER_ID, get_logger, update_correlation_context
from shared.resilience import Bulkhead

logger = get_logger(__name__)

UNKNOWN_ERROR_CODE = "UNKNOWN_ERROR"
INTERRUPTED_ERROR_CODE = "REQUEST_CANCELLED"
INTERRUPTED_ERROR_MESSAGE = "Payment creation was interrupted"
UNKNOWN_ERROR_MESSAGE = "Unknown error"
PROVIDER_CANCELLED_REASON = "Cancelled by provider"


@dataclass(frozen=True)
class CreatePaymentResult:
    payment_id: UUID
    payment_url: str


@dataclass(frozen=True)
class RetryPaymentResult:
    payment_url: str


class PaymentOrchestrator:
    """Drives payment creation, webhook ingestion, retry and cancellation.

    Every operation touching a payment holds that payment's key in ``locks``
    (a ``Bulkhead`` with one slot per key), so provider awaits for the same
    payment never interleave. Stores hand out copies, so a failed operation
    leaves nothing persisted beyond what it saved explicitly.
    """

    def __init__(
        self,
        payment_store: Store[Payment],
        event_store: Store[PaymentEvent],
        registry: ProviderRegistry,
        callback_base_url: str,
        *,
        locks: Bulkhead | None = None,
        ignore_remote_cancel_failures: bool = True,
    ) -> None:
        self._payments = payment_store
        self._events = event_store
        self._registry = registry
        self._callback_base_url = callback_base_url.rstrip("/")
        self._locks = locks or Bulkhead(limit_per_key=1)
        self._ignore_remote_cancel_failures = ignore_remote_cancel_failures
        self._tracer = trace.get_tracer(__name__)

    @property
    def ignore_remote_cancel_failures(self) -> bool:
        return self._ignore_remote_cancel_failures

    def callback_url_for(self, provider_id: str) -> str:
        return f"{self._callback_base_url}/api/payments/webhook/{provider_id}"

    async def create_payment(
        self,
        *,
        amount: Decimal,
        currency: str,
        merchant_id: str,
        description: str,
        provider_id: str | None = None,
    ) -> CreatePaymentResult:
        provider = self._registry.get(provider_id) if provider_id else self._registry.get_default()
        if not provider.supports_currency(currency):
            raise ValidationAppError(
                f"Provider {provider.name} does not support currency {currency}",
                details={
                    "provider_id": provider.id,
                    "currency": currency,
                    "supported_currencies": sorted(provider.supported_currencies),
                },
            )

        payment = Payment.create(
            amount=amount,
            currency=currency,
            merchant_id=merchant_id,
            description=description,
            provider_id=provider.id,
        )
        update_correlation_context({PAYMENT_ID: str(payment.id), PROVIDER_ID: provider.id})

        with self._tracer.start_as_current_span("payment.create"):
            async with self._locks.limit(str(payment.id)):
                self._payments.save(payment)
                self._events.save(
                    PaymentEvent.payment_initiated(
                        payment.id,
                        amount=payment.amount,
                        currency=payment.currency,
                        merchant_id=payment.merchant_id,
                        description=payment.description,
                    )
                )
                try:
                    result = await provider.create_payment(self._provider_request(payment))
                except (Exception, asyncio.CancelledError) as exc:  # noqa: BLE001
                    self._fail_creation(payment, exc)
                    raise

                payment.set_payment_url(result.payment_url)
                payment.set_provider_transaction_id(result.provider_transaction_id)
                payment.update_status(PaymentStatus.AWAITING_PAYMENT)
                self._payments.save(payment)
                self._events.save(
                    PaymentEvent.payment_link_generated(
                        payment.id, payment_url=result.payment_url, expires_at=result.expires_at
                    )
                )

        payments_created_total.add(1, {"provider": provider.id, "currency": payment.currency})
        logger.info(
            "payment_created",
            extra={
                "extra_fields": {
                    "payment_id": str(payment.id),
                    "provider_id": provider.id,
                    "provider_transaction_id": result.provider_transaction_id,
                }
            },
        )
        return CreatePaymentResult(payment_id=payment.id, payment_url=result.payment_url)

    async def get_payment(self, payment_id: UUID) -> Payment:
        return self._load(payment_id)

    async def get_payment_events(self, payment_id: UUID) -> list[PaymentEvent]:
        self._load(payment_id)
        events = self._events.find(lambda event: event.payment_id == payment_id)
        return sorted(events, key=lambda event: event.timestamp)

    async def list_payments(self) -> list[Payment]:
        return sorted(self._payments.all(), key=lambda payment: payment.created_at)

    async def record_customer_redirect(
        self, payment_id: UUID, *, user_agent: str | None = None, ip_address: str | None = None
    ) -> None:
        async with self._locks.limit(str(payment_id)):
            payment = self._load(payment_id)
            if payment.status != PaymentStatus.AWAITING_PAYMENT:
                raise InvalidStateError(
                    f"Cannot record redirect for payment in status {payment.status.value}"
                )
            self._events.save(
                PaymentEvent.customer_redirected(
                    payment_id, user_agent=user_agent, ip_address=ip_address
                )
            )
        logger.info("customer_redirected", extra={"extra_fields": {"payment_id": str(payment_id)}})

    async def process_webhook(
        self,
        *,
        payment_id: UUID,
        provider_id: str,
        provider_transaction_id: str,
        status: str,
        error_code: str | None = None,
        error_message: str | None = None,
    ) -> WebhookOutcome:
        update_correlation_context({PAYMENT_ID: str(payment_id), PROVIDER_ID: provider_id})
        mapped_status: PaymentStatus | None = None
        with self._tracer.start_as_current_span("payment.webhook"):
            try:
                async with self._locks.limit(str(payment_id)):
                    payment = self._load(payment_id)
                    if payment.provider_id != provider_id:
                        raise ValidationAppError(
                            f"Webhook from provider {provider_id} for payment created "
                            f"through {payment.provider_id}"
                        )
                    provider = self._registry.get(provider_id)
                    mapped_status = provider.map_status(status)

                    previous_status = payment.status
                    adopted_transaction = False
                    if provider_transaction_id and not payment.provider_transaction_id:
                        payment.set_provider_transaction_id(provider_transaction_id)
                        adopted_transaction = True

                    event = self._apply_webhook_status(
                        payment,
                        mapped_status,
                        provider_id=provider_id,
                        provider_transaction_id=provider_transaction_id,
                        error_code=error_code,
                        error_message=error_message,
                    )
                    if payment.status != previous_status:
                        outcome = WebhookOutcome.APPLIED
                    else:
                        outcome = WebhookOutcome.IGNORED
                    if adopted_transaction or outcome == WebhookOutcome.APPLIED:
                        self._payments.save(payment)
                    if event is not None:
                        self._events.save(event)
            except (ValidationAppError, InvalidStateError, NotFoundError):
                self._record_webhook(mapped_status, WebhookOutcome.REJECTED)
                raise

        self._record_webhook(mapped_status, outcome)
        return outcome

    async def retry_payment(self, payment_id: UUID, *, reason: str) -> RetryPaymentResult:
        with self._tracer.start_as_current_span("payment.retry"):
            async with self._locks.limit(str(payment_id)):
                payment = self._load(payment_id)
                update_correlation_context(
                    {PAYMENT_ID: str(payment.id), PROVIDER_ID: payment.provider_id}
                )
                if payment.status != PaymentStatus.FAILED:
                    raise InvalidStateError(
                        "Retry is only possible for payments in status failed",
                        details={"status": payment.status.value},
                    )
                if not payment.can_retry():
                    raise ValidationAppError(
                        f"Maximum number of retry attempts ({MAX_RETRY_ATTEMPTS}) exceeded"
                    )

                provider = self._registry.get(payment.provider_id)
                result = await provider.create_payment(self._provider_request(payment))

                payment.increment_retry_count()
                payment.set_payment_url(result.payment_url)
                payment.set_provider_transaction_id(result.provider_transaction_id)
                payment.update_status(PaymentStatus.AWAITING_PAYMENT)
                self._payments.save(payment)
                self._events.save(
                    PaymentEvent.retry_requested(
                        payment.id, attempt_number=payment.retry_count, reason=reason
                    )
                )

        payment_retries_total.add(1, {"provider": payment.provider_id})
        logger.info(
            "payment_retried",
            extra={
                "extra_fields": {"payment_id": str(payment.id), "retry_count": payment.retry_count}
            },
        )
        return RetryPaymentResult(payment_url=result.payment_url)

    async def cancel_payment(self, payment_id: UUID, *, reason: str, cancelled_by: str) -> Payment:
        with self._tracer.start_as_current_span("payment.cancel"):
            async with self._locks.limit(str(payment_id)):
                payment = self._load(payment_id)
                update_correlation_context(
                    {PAYMENT_ID: str(payment.id), PROVIDER_ID: payment.provider_id}
                )
                if not payment.can_transition_to(PaymentStatus.CANCELLED):
                    raise InvalidStateError(
                        f"Cannot cancel payment in status {payment.status.value}"
                    )
                if payment.provider_transaction_id:
                    await self._cancel_remote(payment, reason)

                payment.update_status(PaymentStatus.CANCELLED)
                self._payments.save(payment)
                self._events.save(
                    PaymentEvent.payment_cancelled(
                        payment.id, reason=reason, cancelled_by=cancelled_by
                    )
                )

        payment_cancellations_total.add(1, {"provider": payment.provider_id})
        logger.info("payment_cancelled", extra={"extra_fields": {"payment_id": str(payment.id)}})
        return payment

    def _load(self, payment_id: UUID) -> Payment:
        payment = self._payments.get(payment_id)
        if payment is None:
            raise NotFoundError("Payment", payment_id)
        return payment

    def _provider_request(self, payment: Payment) -> ProviderPaymentRequest:
        return ProviderPaymentRequest(
            payment_id=payment.id,
            amount=payment.amount,
            currency=payment.currency,
            description=payment.description,
            merchant_id=payment.merchant_id,
            callback_url=self.callback_url_for(payment.provider_id),
        )

    def _fail_creation(self, payment: Payment, exc: BaseException) -> None:
        if isinstance(exc, ExternalServiceError):
            error_code = exc.service_error_code
            error_message = str(exc) or UNKNOWN_ERROR_MESSAGE
        elif isinstance(exc, asyncio.CancelledError):
            error_code = INTERRUPTED_ERROR_CODE
            error_message = INTERRUPTED_ERROR_MESSAGE
        else:
            error_code = UNKNOWN_ERROR_CODE
            error_message = str(exc) or UNKNOWN_ERROR_MESSAGE

        payment.update_status(PaymentStatus.FAILED)
        self._payments.save(payment)
        self._events.save(
            PaymentEvent.payment_failed(
                payment.id, error_code=error_code, error_message=error_message, is_retryable=False
            )
        )
        payment_failures_total.add(1, {"provider": payment.provider_id, "stage": "create"})
        logger.warning(
            "payment_creation_failed",
            extra={
                "extra_fields": {
                    "payment_id": str(payment.id),
                    "provider_id": payment.provider_id,
                    "error_code": error_code,
                }
            },
        )

    def _apply_webhook_status(
        self,
        payment: Payment,
        mapped_status: PaymentStatus,
        *,
        provider_id: str,
        provider_transaction_id: str,
        error_code: str | None,
        error_message: str | None,
    ) -> PaymentEvent | None:
        if mapped_status in (PaymentStatus.CREATED, PaymentStatus.AWAITING_PAYMENT):
            if payment.status == PaymentStatus.CREATED and payment.can_transition_to(
                PaymentStatus.AWAITING_PAYMENT
            ):
                payment.update_status(PaymentStatus.AWAITING_PAYMENT)
            return None

        if mapped_status == PaymentStatus.PROCESSING:
            if not payment.can_transition_to(PaymentStatus.PROCESSING):
                return None
            payment.update_status(PaymentStatus.PROCESSING)
            return PaymentEvent.processing_started(
                payment.id,
                provider_id=provider_id,
                provider_transaction_id=provider_transaction_id,
            )

        self._require_transition(payment, mapped_status)
        payment.update_status(mapped_status)
        if mapped_status == PaymentStatus.COMPLETED:
            return PaymentEvent.payment_completed(
                payment.id,
                provider_id=provider_id,
                provider_transaction_id=provider_transaction_id,
            )
        if mapped_status == PaymentStatus.FAILED:
            payment_failures_total.add(1, {"provider": provider_id, "stage": "webhook"})
            return PaymentEvent.payment_failed(
                payment.id,
                error_code=error_code or UNKNOWN_ERROR_CODE,
                error_message=error_message or UNKNOWN_ERROR_MESSAGE,
                is_retryable=True,
            )
        return PaymentEvent.payment_cancelled(
            payment.id,
            reason=error_message or PROVIDER_CANCELLED_REASON,
            cancelled_by=provider_id,
        )

    def _require_transition(self, payment: Payment, target: PaymentStatus) -> None:
        if not payment.can_transition_to(target):
            raise InvalidStateError(
                f"Cannot move payment from {payment.status.value} to {target.value}",
                details={"status": payment.status.value, "target": target.value},
            )

    async def _cancel_remote(self, payment: Payment, reason: str) -> None:
        transaction_id = payment.provider_transaction_id or ""
        try:
            provider: PaymentProvider = self._registry.get(payment.provider_id)
            await provider.cancel_payment(transaction_id, reason)
        except Exception as exc:  # noqa: BLE001
            remote_cancel_failures_total.add(1, {"provider": payment.provider_id})
            if not self._ignore_remote_cancel_failures:
                raise
            logger.warning(
                "remote_cancel_failed",
                extra={
                    "extra_fields": {
                        "payment_id": str(payment.id),
                        "provider_id": payment.provider_id,
                        "provider_transaction_id": transaction_id,
                        "error": str(exc),
                    }
                },
            )

    def _record_webhook(self, mapped_status: PaymentStatus | None, outcome: WebhookOutcome) -> None:
        status_label = mapped_status.value if mapped_status else "unmapped"
        webhooks_processed_total.add(1, {"status": status_label, "outcome": outcome.value})
        logger.info(
            "webhook_processed",
            extra={"extra_fields": {"mapped_status": status_label, "outcome": outcome.value}},
        )
