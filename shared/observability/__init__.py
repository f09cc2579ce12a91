from shared.observability.otel import configure_otel
from shared.observability.propagation import (
    current_trace_id,
    extract_context_from_headers,
    inject_headers,
)

__all__ = [
    "configure_otel",
    "current_trace_id",
    "extract_context_from_headers",
    "inject_headers",
]
