from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from shared.contracts.enums import PaymentStatus
from shared.utils import new_uuid, utc_now

MAX_RETRY_ATTEMPTS = 3

_ALLOWED_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.CREATED: frozenset({PaymentStatus.AWAITING_PAYMENT, PaymentStatus.FAILED}),
    PaymentStatus.AWAITING_PAYMENT: frozenset(
        {PaymentStatus.PROCESSING, PaymentStatus.CANCELLED, PaymentStatus.FAILED}
    ),
    PaymentStatus.PROCESSING: frozenset({PaymentStatus.COMPLETED, PaymentStatus.FAILED}),
    PaymentStatus.COMPLETED: frozenset(),
    PaymentStatus.FAILED: frozenset({PaymentStatus.AWAITING_PAYMENT}),
    PaymentStatus.CANCELLED: frozenset(),
}
_FINAL_STATUSES = frozenset({PaymentStatus.COMPLETED, PaymentStatus.CANCELLED})


def allowed_transitions(status: PaymentStatus) -> frozenset[PaymentStatus]:
    return _ALLOWED_TRANSITIONS[status]


class Payment(BaseModel):
    """One merchant payment attempt and its lifecycle state.

    Identity and order data are frozen after construction. Status moves only
    through ``update_status``; callers check ``can_transition_to`` first.
    """

    id: UUID = Field(frozen=True)
    amount: Decimal = Field(gt=0, frozen=True)
    currency: str = Field(min_length=3, max_length=3, frozen=True)
    merchant_id: str = Field(min_length=1, frozen=True)
    description: str = Field(frozen=True)
    provider_id: str = Field(min_length=1, frozen=True)
    created_at: datetime = Field(frozen=True)
    status: PaymentStatus = PaymentStatus.CREATED
    payment_url: str | None = None
    provider_transaction_id: str | None = None
    retry_count: int = Field(default=0, ge=0)
    updated_at: datetime

    @classmethod
    def create(
        cls,
        *,
        amount: Decimal,
        currency: str,
        merchant_id: str,
        description: str,
        provider_id: str,
        payment_id: UUID | None = None,
    ) -> Payment:
        now = utc_now()
        return cls(
            id=payment_id or new_uuid(),
            amount=amount,
            currency=currency.upper(),
            merchant_id=merchant_id,
            description=description,
            provider_id=provider_id,
            created_at=now,
            updated_at=now,
        )

    def can_transition_to(self, target: PaymentStatus) -> bool:
        return target in _ALLOWED_TRANSITIONS[self.status]

    def update_status(self, target: PaymentStatus) -> None:
        self.status = target
        self._touch()

    def set_payment_url(self, url: str) -> None:
        self.payment_url = url
        self._touch()

    def set_provider_transaction_id(self, transaction_id: str) -> None:
        self.provider_transaction_id = transaction_id
        self._touch()

    def increment_retry_count(self) -> None:
        self.retry_count += 1
        self._touch()

    def is_final(self) -> bool:
        return self.status in _FINAL_STATUSES

    def can_retry(self) -> bool:
        return self.status == PaymentStatus.FAILED and self.retry_count < MAX_RETRY_ATTEMPTS

    def _touch(self) -> None:
        self.updated_at = utc_now()
