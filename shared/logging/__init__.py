from shared.logging.fields import (
    MERCHANT_ID,
    PAYMENT_ID,
    PROVIDER_ID,
    REQUEST_ID,
    TRACE_ID,
)
from shared.logging.logger import (
    clear_correlation_context,
    configure_logging,
    get_correlation_context,
    get_logger,
    set_correlation_context,
    update_correlation_context,
)
from shared.logging.middleware import CorrelationMiddleware

__all__ = [
    "CorrelationMiddleware",
    "MERCHANT_ID",
    "PAYMENT_ID",
    "PROVIDER_ID",
    "REQUEST_ID",
    "TRACE_ID",
    "clear_correlation_context",
    "configure_logging",
    "get_correlation_context",
    "get_logger",
    "set_correlation_context",
    "update_correlation_context",
]
