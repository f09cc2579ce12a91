from shared.contracts.dto import (
    ApiModel,
    CancelPaymentRequest,
    CancelPaymentResponse,
    CreatePaymentRequest,
    CreatePaymentResponse,
    CustomerRedirectResponse,
    PaymentEventResponse,
    PaymentEventsResponse,
    PaymentListResponse,
    PaymentResponse,
    ProviderPaymentRequest,
    ProviderPaymentResult,
    ProviderStatusResult,
    RetryPaymentRequest,
    RetryPaymentResponse,
    WebhookAcceptedResponse,
    WebhookRequest,
)
from shared.contracts.enums import (
    ErrorCategory,
    PaymentEventType,
    PaymentStatus,
    StorageBackend,
    WebhookOutcome,
)
from shared.contracts.events import (
    CustomerRedirectedPayload,
    PaymentCancelledPayload,
    PaymentCompletedPayload,
    PaymentFailedPayload,
    PaymentInitiatedPayload,
    PaymentLinkGeneratedPayload,
    ProcessingStartedPayload,
    RetryRequestedPayload,
)

__all__ = [
    "ApiModel",
    "CancelPaymentRequest",
    "CancelPaymentResponse",
    "CreatePaymentRequest",
    "CreatePaymentResponse",
    "CustomerRedirectResponse",
    "CustomerRedirectedPayload",
    "ErrorCategory",
    "PaymentCancelledPayload",
    "PaymentCompletedPayload",
    "PaymentEventResponse",
    "PaymentEventType",
    "PaymentEventsResponse",
    "PaymentFailedPayload",
    "PaymentInitiatedPayload",
    "PaymentLinkGeneratedPayload",
    "PaymentListResponse",
    "PaymentResponse",
    "PaymentStatus",
    "ProcessingStartedPayload",
    "ProviderPaymentRequest",
    "ProviderPaymentResult",
    "ProviderStatusResult",
    "RetryPaymentRequest",
    "RetryPaymentResponse",
    "RetryRequestedPayload",
    "StorageBackend",
    "WebhookAcceptedResponse",
    "WebhookOutcome",
    "WebhookRequest",
]
