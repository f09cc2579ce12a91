from __future__ import annotations

from collections.abc import Mapping

from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.propagate import extract, inject


def inject_headers(headers: Mapping[str, str] | None = None) -> dict[str, str]:
    """Copy ``headers`` and add W3C trace context for an outbound call."""
    carrier: dict[str, str] = dict(headers or {})
    inject(carrier)
    return carrier


def extract_context_from_headers(headers: Mapping[str, str]) -> Context:
    return extract({key.lower(): value for key, value in headers.items()})


def current_trace_id() -> str:
    span_context = trace.get_current_span().get_span_context()
    if not span_context.is_valid:
        return ""
    return format(span_context.trace_id, "032x")
