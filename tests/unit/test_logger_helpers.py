from __future__ import annotations

import json
import logging
from decimal import Decimal
from uuid import UUID

from shared.contracts import PaymentStatus
from shared.logging.logger import (
    JsonFormatter,
    clear_correlation_context,
    configure_logging,
    get_correlation_context,
    set_correlation_context,
    update_correlation_context,
)


def _record(message: str = "ok") -> logging.LogRecord:
    return logging.LogRecord(
        name="payments",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=message,
        args=(),
        exc_info=None,
    )


def test_correlation_context_helpers_set_update_and_clear() -> None:
    clear_correlation_context()
    set_correlation_context({"merchant_id": "merchant-1"})
    update_correlation_context({"payment_id": "payment-1"})

    context = get_correlation_context()
    assert context == {"merchant_id": "merchant-1", "payment_id": "payment-1"}

    clear_correlation_context()
    assert get_correlation_context() == {}


def test_json_formatter_merges_correlation_context_and_skips_empty_values() -> None:
    set_correlation_context({"request_id": "req-1", "trace_id": ""})
    try:
        payload = json.loads(JsonFormatter().format(_record()))
    finally:
        clear_correlation_context()

    assert payload["request_id"] == "req-1"
    assert "trace_id" not in payload


def test_json_formatter_serializes_domain_values() -> None:
    record = _record()
    record.extra_fields = {
        "payment_id": UUID("00000000-0000-0000-0000-000000000001"),
        "amount": Decimal("1000.50"),
        "status": PaymentStatus.COMPLETED,
    }

    payload = json.loads(JsonFormatter().format(record))

    assert payload["payment_id"] == "00000000-0000-0000-0000-000000000001"
    assert payload["amount"] == "1000.50"
    assert payload["status"] == "completed"


def test_json_formatter_includes_exception() -> None:
    record = _record("failed")
    try:
        raise ValueError("boom")
    except ValueError as exc:
        record.exc_info = (ValueError, exc, exc.__traceback__)

    payload = json.loads(JsonFormatter().format(record))

    assert "ValueError: boom" in payload["exception"]


def test_configure_logging_adds_one_json_handler_and_updates_level() -> None:
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level
    try:
        root.handlers.clear()
        configure_logging("INFO")
        first_count = len(root.handlers)
        configure_logging("debug")
        second_count = len(root.handlers)
        level = root.level
    finally:
        root.handlers = original_handlers
        root.setLevel(original_level)

    assert first_count == 1
    assert second_count == 1
    assert level == logging.DEBUG
