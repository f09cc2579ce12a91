from __future__ import annotations

import asyncio
import random
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from payments_orchestrator.core.errors import ExternalServiceError
from payments_orchestrator.providers.contracts import lookup_status, normalize_currencies
from shared.contracts import (
    PaymentStatus,
    ProviderPaymentRequest,
    ProviderPaymentResult,
    ProviderStatusResult,
)
from shared.logging import get_logger
from shared.utils import new_uuid, utc_after, utc_now

logger = get_logger(__name__)

FAKE_PROVIDER_ID = "fake"
_PAYMENT_URL_TEMPLATE = "https://fake-payment.local/pay/{transaction_id}"
_LINK_TTL_MINUTES = 15
_DEFAULT_CURRENCIES = ("RUB", "USD", "EUR")
_STATUS_MAP: dict[str, PaymentStatus] = {
    "created": PaymentStatus.CREATED,
    "initiated": PaymentStatus.CREATED,
    "pending": PaymentStatus.AWAITING_PAYMENT,
    "awaiting_payment": PaymentStatus.AWAITING_PAYMENT,
    "processing": PaymentStatus.PROCESSING,
    "completed": PaymentStatus.COMPLETED,
    "failed": PaymentStatus.FAILED,
    "cancelled": PaymentStatus.CANCELLED,
    "success": PaymentStatus.COMPLETED,
    "error": PaymentStatus.FAILED,
    "rejected": PaymentStatus.FAILED,
}


@dataclass
class FakeTransaction:
    transaction_id: str
    payment_id: UUID
    amount: Any
    status: PaymentStatus
    created_at: datetime = field(default_factory=utc_now)
    confirmed_at: datetime | None = None
    error_code: str | None = None


class FakeProvider:
    """In-memory provider for local runs and tests. Makes no network calls."""

    def __init__(
        self,
        *,
        supported_currencies: Iterable[str] = _DEFAULT_CURRENCIES,
        success_rate: float = 1.0,
        auto_confirm_delay_seconds: float = 0.0,
        seed: int | None = None,
    ) -> None:
        if not 0.0 <= success_rate <= 1.0:
            raise ValueError("success_rate must be between 0 and 1")
        self._supported_currencies = normalize_currencies(supported_currencies)
        self._success_rate = success_rate
        self._auto_confirm_delay_seconds = auto_confirm_delay_seconds
        self._random = random.Random(seed)
        self._transactions: dict[str, FakeTransaction] = {}
        self._timers: list[asyncio.TimerHandle] = []

    @property
    def id(self) -> str:
        return FAKE_PROVIDER_ID

    @property
    def name(self) -> str:
        return "Fake Payment Provider"

    @property
    def supported_currencies(self) -> frozenset[str]:
        return self._supported_currencies

    async def create_payment(self, request: ProviderPaymentRequest) -> ProviderPaymentResult:
        transaction_id = f"fake_{new_uuid().hex}"
        will_succeed = self._random.random() < self._success_rate
        self._transactions[transaction_id] = FakeTransaction(
            transaction_id=transaction_id,
            payment_id=request.payment_id,
            amount=request.amount,
            status=PaymentStatus.AWAITING_PAYMENT if will_succeed else PaymentStatus.FAILED,
            error_code=None if will_succeed else "FAKE_ERROR",
        )
        auto_confirm = will_succeed and self._auto_confirm_delay_seconds > 0
        if auto_confirm:
            self._schedule_confirmation(transaction_id)
        return ProviderPaymentResult(
            provider_transaction_id=transaction_id,
            payment_url=_PAYMENT_URL_TEMPLATE.format(transaction_id=transaction_id),
            expires_at=utc_after(minutes=_LINK_TTL_MINUTES),
            metadata={"fake": True, "will_succeed": will_succeed, "auto_confirm": auto_confirm},
        )

    async def check_payment_status(self, provider_transaction_id: str) -> ProviderStatusResult:
        transaction = self._transactions.get(provider_transaction_id)
        if transaction is None:
            return ProviderStatusResult(
                status=PaymentStatus.FAILED,
                provider_transaction_id=provider_transaction_id,
                error_code="PAYMENT_NOT_FOUND",
                metadata={"fake": True},
            )
        return ProviderStatusResult(
            status=transaction.status,
            provider_transaction_id=provider_transaction_id,
            error_code=transaction.error_code,
            metadata={
                "fake": True,
                "created_at": transaction.created_at.isoformat(),
                "confirmed_at": (
                    transaction.confirmed_at.isoformat() if transaction.confirmed_at else None
                ),
            },
        )

    async def cancel_payment(self, provider_transaction_id: str, reason: str) -> None:
        transaction = self._transactions.get(provider_transaction_id)
        if transaction is None:
            raise ExternalServiceError(
                self.name, "PAYMENT_NOT_FOUND", f"Payment {provider_transaction_id} not found"
            )
        if transaction.status == PaymentStatus.COMPLETED:
            raise ExternalServiceError(
                self.name,
                "PAYMENT_COMPLETED",
                f"Cannot cancel completed payment {provider_transaction_id}",
            )
        transaction.status = PaymentStatus.CANCELLED
        logger.info(
            "fake_payment_cancelled",
            extra={
                "extra_fields": {
                    "provider_transaction_id": provider_transaction_id,
                    "reason": reason,
                }
            },
        )

    def supports_currency(self, currency: str) -> bool:
        return currency.strip().upper() in self._supported_currencies

    def map_status(self, provider_status: str) -> PaymentStatus:
        return lookup_status(_STATUS_MAP, provider_status.strip().lower(), provider_id=self.id)

    async def close(self) -> None:
        for timer in self._timers:
            timer.cancel()
        self._timers.clear()

    def confirm_payment(self, provider_transaction_id: str) -> None:
        transaction = self._transactions.get(provider_transaction_id)
        if transaction and transaction.status == PaymentStatus.AWAITING_PAYMENT:
            transaction.status = PaymentStatus.COMPLETED
            transaction.confirmed_at = utc_now()

    def fail_payment(self, provider_transaction_id: str, error_code: str = "FAKE_ERROR") -> None:
        transaction = self._transactions.get(provider_transaction_id)
        if transaction and transaction.status == PaymentStatus.AWAITING_PAYMENT:
            transaction.status = PaymentStatus.FAILED
            transaction.error_code = error_code

    def clear_payments(self) -> None:
        self._transactions.clear()

    def transactions(self) -> list[FakeTransaction]:
        return list(self._transactions.values())

    def simulate_webhook(
        self, provider_transaction_id: str, status: PaymentStatus
    ) -> dict[str, Any] | None:
        """Body for ``POST /api/payments/webhook/fake``; ``None`` for unknown transactions."""
        transaction = self._transactions.get(provider_transaction_id)
        if transaction is None:
            return None
        body: dict[str, Any] = {
            "paymentId": str(transaction.payment_id),
            "providerTransactionId": provider_transaction_id,
            "status": status.value,
        }
        if status == PaymentStatus.FAILED:
            body["errorCode"] = "FAKE_ERROR"
            body["errorMessage"] = "Simulated failure"
        return body

    def _schedule_confirmation(self, transaction_id: str) -> None:
        loop = asyncio.get_running_loop()
        timer = loop.call_later(
            self._auto_confirm_delay_seconds, self.confirm_payment, transaction_id
        )
        self._timers.append(timer)
