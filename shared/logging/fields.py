from __future__ import annotations

TRACE_ID = "trace_id"
REQUEST_ID = "request_id"
MERCHANT_ID = "merchant_id"
PAYMENT_ID = "payment_id"
PROVIDER_ID = "provider_id"
