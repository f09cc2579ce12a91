from __future__ import annotations

from opentelemetry import metrics

meter = metrics.get_meter("payments-orchestrator")
request_counter = meter.create_counter(
    "payments_orchestrator_request_total", description="Total requests"
)
error_counter = meter.create_counter(
    "payments_orchestrator_error_total", description="Total error responses"
)
latency_histogram = meter.create_histogram(
    "payments_orchestrator_request_latency_ms", description="Request latency in ms"
)

payments_created_total = meter.create_counter(
    "payments_created_total", description="Payments opened at a provider"
)
payment_failures_total = meter.create_counter(
    "payment_failures_total", description="Payments moved to failed"
)
webhooks_processed_total = meter.create_counter(
    "webhooks_processed_total", description="Provider webhooks by mapped status and outcome"
)
payment_retries_total = meter.create_counter(
    "payment_retries_total", description="Successful payment retries"
)
payment_cancellations_total = meter.create_counter(
    "payment_cancellations_total", description="Payments cancelled"
)
remote_cancel_failures_total = meter.create_counter(
    "remote_cancel_failures_total", description="Provider cancel calls that failed"
)

provider_latency = meter.create_histogram(
    "provider_call_latency_ms", description="Provider call latency in ms"
)
provider_errors = meter.create_counter("provider_errors_total", description="Provider errors")
