from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from shared.contracts.enums import PaymentEventType, PaymentStatus
from shared.utils.validation import require_non_empty


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreatePaymentRequest(ApiModel):
    amount: Decimal = Field(gt=0)
    currency: str = Field(min_length=3, max_length=3)
    merchant_id: str = Field(min_length=1, max_length=128)
    description: str = Field(min_length=1, max_length=500)
    provider_id: str | None = Field(default=None, min_length=1, max_length=64)

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, value: str) -> str:
        return value.upper()

    @field_validator("merchant_id", "description")
    @classmethod
    def strip_required_text(cls, value: str, info: ValidationInfo) -> str:
        return require_non_empty(value, field_name=info.field_name or "value")


class CreatePaymentResponse(ApiModel):
    payment_id: UUID
    payment_url: str


class WebhookRequest(ApiModel):
    payment_id: UUID
    provider_transaction_id: str = Field(min_length=1, max_length=128)
    status: str = Field(min_length=1, max_length=64)
    error_code: str | None = Field(default=None, max_length=128)
    error_message: str | None = Field(default=None, max_length=512)
    metadata: dict[str, Any] | None = None


class WebhookAcceptedResponse(ApiModel):
    message: str = "Webhook processed"


class RetryPaymentRequest(ApiModel):
    reason: str = Field(min_length=1, max_length=200)


class RetryPaymentResponse(ApiModel):
    payment_url: str
    message: str = "Retry initiated"


class CancelPaymentRequest(ApiModel):
    reason: str = Field(min_length=1, max_length=200)
    cancelled_by: str = Field(min_length=1, max_length=100)


class CancelPaymentResponse(ApiModel):
    payment_id: UUID
    status: PaymentStatus
    message: str = "Payment cancelled"


class CustomerRedirectResponse(ApiModel):
    payment_id: UUID
    message: str = "Redirect recorded"


class PaymentResponse(ApiModel):
    id: UUID
    status: PaymentStatus
    amount: Decimal
    currency: str
    merchant_id: str
    description: str
    provider_id: str
    payment_url: str | None = None
    provider_transaction_id: str | None = None
    retry_count: int
    created_at: datetime
    updated_at: datetime


class PaymentListResponse(ApiModel):
    count: int
    payments: list[PaymentResponse]


class PaymentEventResponse(ApiModel):
    id: UUID
    type: PaymentEventType
    data: dict[str, Any]
    timestamp: datetime


class PaymentEventsResponse(ApiModel):
    payment_id: UUID
    events_count: int
    events: list[PaymentEventResponse]


class ProviderPaymentRequest(BaseModel):
    payment_id: UUID
    amount: Decimal
    currency: str
    description: str
    merchant_id: str
    callback_url: str | None = None
    success_url: str | None = None
    fail_url: str | None = None


class ProviderPaymentResult(BaseModel):
    provider_transaction_id: str
    payment_url: str
    expires_at: datetime
    metadata: dict[str, Any] = Field(default_factory=dict)


class ProviderStatusResult(BaseModel):
    status: PaymentStatus
    provider_transaction_id: str
    error_code: str | None = None
    error_message: str | None = None
    metadata: dict[str, Any] | None = None
