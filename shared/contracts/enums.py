from __future__ import annotations

from enum import Enum


class PaymentStatus(str, Enum):
    CREATED = "created"
    AWAITING_PAYMENT = "awaiting_payment"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PaymentEventType(str, Enum):
    PAYMENT_INITIATED = "payment_initiated"
    PAYMENT_LINK_GENERATED = "payment_link_generated"
    CUSTOMER_REDIRECTED = "customer_redirected"
    PAYMENT_PROCESSING_STARTED = "payment_processing_started"
    PAYMENT_COMPLETED = "payment_completed"
    PAYMENT_FAILED = "payment_failed"
    PAYMENT_RETRY_REQUESTED = "payment_retry_requested"
    PAYMENT_CANCELLED = "payment_cancelled"


class StorageBackend(str, Enum):
    MEMORY = "memory"
    JSON = "json"


class WebhookOutcome(str, Enum):
    APPLIED = "applied"
    IGNORED = "ignored"
    REJECTED = "rejected"


class ErrorCategory(str, Enum):
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"
    INVALID_STATE = "invalid_state"
    EXTERNAL_SERVICE_ERROR = "external_service_error"
