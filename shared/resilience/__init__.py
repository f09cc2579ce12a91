from shared.resilience.backoff import exponential_backoff
from shared.resilience.bulkhead import Bulkhead
from shared.resilience.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitBreakerOpenError,
)
from shared.resilience.retry import retry_async

__all__ = [
    "Bulkhead",
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitBreakerOpenError",
    "exponential_backoff",
    "retry_async",
]
