from __future__ import annotations

import hashlib
import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import httpx
from opentelemetry import trace

from payments_orchestrator.core.errors import ExternalServiceError
from payments_orchestrator.core.metrics import provider_errors, provider_latency
from payments_orchestrator.providers.contracts import lookup_status
from shared.contracts import (
    PaymentStatus,
    ProviderPaymentRequest,
    ProviderPaymentResult,
    ProviderStatusResult,
)
from shared.logging import get_logger
from shared.observability import inject_headers
from shared.resilience import CircuitBreaker, CircuitBreakerOpenError, retry_async
from shared.utils import utc_after

logger = get_logger(__name__)

TBANK_SBP_PROVIDER_ID = "tbank-sbp"
_SERVICE_NAME = "T-Bank SBP"
_LINK_TTL_MINUTES = 30
_SBP_PAY_TYPE = "S"
_TRANSIENT_CODES = frozenset({"TIMEOUT", "CONNECTION_ERROR"})
_STATUS_MAP: dict[str, PaymentStatus] = {
    "NEW": PaymentStatus.AWAITING_PAYMENT,
    "FORM_SHOWED": PaymentStatus.AWAITING_PAYMENT,
    "AUTHORIZING": PaymentStatus.PROCESSING,
    "AUTHORIZED": PaymentStatus.PROCESSING,
    "3DS_CHECKING": PaymentStatus.PROCESSING,
    "3DS_CHECKED": PaymentStatus.PROCESSING,
    "CONFIRMING": PaymentStatus.PROCESSING,
    "CONFIRMED": PaymentStatus.COMPLETED,
    "PARTIAL_REFUNDED": PaymentStatus.COMPLETED,
    "REJECTED": PaymentStatus.FAILED,
    "DEADLINE_EXPIRED": PaymentStatus.FAILED,
    "ATTEMPTS_EXPIRED": PaymentStatus.FAILED,
    "CANCELLED": PaymentStatus.CANCELLED,
    "REFUNDED": PaymentStatus.CANCELLED,
}


def to_minor_units(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _token_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def generate_token(params: dict[str, Any], password: str) -> str:
    """T-Bank request signature: root-level scalars plus ``Password``, sorted by key."""
    signed: dict[str, Any] = {
        key: value
        for key, value in params.items()
        if key != "Token" and value is not None and not isinstance(value, dict | list)
    }
    signed["Password"] = password
    concatenated = "".join(_token_value(signed[key]) for key in sorted(signed))
    return hashlib.sha256(concatenated.encode("utf-8")).hexdigest()


def is_transient_provider_error(exc: Exception) -> bool:
    if not isinstance(exc, ExternalServiceError):
        return False
    code = exc.service_error_code
    return code in _TRANSIENT_CODES or code.startswith("HTTP_5")


class TBankSbpProvider:
    """T-Bank acquiring API, SBP pay type. Amounts travel in kopecks."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        terminal_id: str,
        secret_key: str,
        breaker: CircuitBreaker | None = None,
        status_max_attempts: int = 3,
        retry_base_seconds: float = 0.05,
    ) -> None:
        self._http_client = http_client
        self._terminal_id = terminal_id
        self._secret_key = secret_key
        self._breaker = breaker or CircuitBreaker()
        self._status_max_attempts = status_max_attempts
        self._retry_base_seconds = retry_base_seconds
        self._tracer = trace.get_tracer(__name__)

    @property
    def id(self) -> str:
        return TBANK_SBP_PROVIDER_ID

    @property
    def name(self) -> str:
        return _SERVICE_NAME

    @property
    def supported_currencies(self) -> frozenset[str]:
        return frozenset({"RUB"})

    @property
    def breaker_state(self) -> str:
        return self._breaker.state

    async def create_payment(self, request: ProviderPaymentRequest) -> ProviderPaymentResult:
        params: dict[str, Any] = {
            "TerminalKey": self._terminal_id,
            "Amount": to_minor_units(request.amount),
            "OrderId": str(request.payment_id),
            "Description": request.description,
            "PayType": _SBP_PAY_TYPE,
            "NotificationURL": request.callback_url,
            "SuccessURL": request.success_url,
            "FailURL": request.fail_url,
        }
        body = await self._post("/Init", params)
        transaction_id = body.get("PaymentId")
        payment_url = body.get("PaymentURL")
        if not transaction_id or not payment_url:
            raise ExternalServiceError(
                self.name, "INVALID_RESPONSE", "Init response lacks PaymentId or PaymentURL"
            )
        return ProviderPaymentResult(
            provider_transaction_id=str(transaction_id),
            payment_url=payment_url,
            expires_at=utc_after(minutes=_LINK_TTL_MINUTES),
            metadata={"order_id": body.get("OrderId"), "status": body.get("Status")},
        )

    async def check_payment_status(self, provider_transaction_id: str) -> ProviderStatusResult:
        params = {"TerminalKey": self._terminal_id, "PaymentId": provider_transaction_id}
        body = await retry_async(
            lambda: self._post("/GetState", params),
            should_retry=is_transient_provider_error,
            max_attempts=self._status_max_attempts,
            base_seconds=self._retry_base_seconds,
            on_retry=self._log_retry,
        )
        error_code = body.get("ErrorCode")
        return ProviderStatusResult(
            status=self.map_status(str(body.get("Status", ""))),
            provider_transaction_id=str(body.get("PaymentId") or provider_transaction_id),
            error_code=error_code if error_code not in (None, "0") else None,
            error_message=body.get("Message"),
            metadata={"order_id": body.get("OrderId"), "amount": body.get("Amount")},
        )

    async def cancel_payment(self, provider_transaction_id: str, reason: str) -> None:
        params = {"TerminalKey": self._terminal_id, "PaymentId": provider_transaction_id}
        await self._post("/Cancel", params)
        logger.info(
            "tbank_payment_cancelled",
            extra={
                "extra_fields": {
                    "provider_transaction_id": provider_transaction_id,
                    "reason": reason,
                }
            },
        )

    def supports_currency(self, currency: str) -> bool:
        return currency.strip().upper() in self.supported_currencies

    def map_status(self, provider_status: str) -> PaymentStatus:
        return lookup_status(_STATUS_MAP, provider_status.strip().upper(), provider_id=self.id)

    async def close(self) -> None:
        await self._http_client.aclose()

    async def _post(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        payload = {key: value for key, value in params.items() if value is not None}
        payload["Token"] = generate_token(payload, self._secret_key)
        try:
            self._breaker.allow_call()
        except CircuitBreakerOpenError as exc:
            self._record_error(path, "CIRCUIT_OPEN")
            raise ExternalServiceError(
                self.name, "CIRCUIT_OPEN", "Provider circuit is open"
            ) from exc

        with self._tracer.start_as_current_span(f"tbank {path}"):
            start = time.perf_counter()
            body = await self._send(path, payload)
            duration_ms = (time.perf_counter() - start) * 1000
            provider_latency.record(duration_ms, {"provider": self.id, "operation": path})

        if not body.get("Success"):
            error_code = str(body.get("ErrorCode") or "UNKNOWN_ERROR")
            self._record_error(path, error_code)
            raise ExternalServiceError(
                self.name,
                error_code,
                str(body.get("Message") or body.get("Details") or "Unknown error"),
            )
        return body

    async def _send(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        headers = inject_headers({"Content-Type": "application/json"})
        try:
            response = await self._http_client.post(path, json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            self._on_transport_failure(path, "TIMEOUT")
            raise ExternalServiceError(self.name, "TIMEOUT", "Provider timeout") from exc
        except httpx.HTTPError as exc:
            self._on_transport_failure(path, "CONNECTION_ERROR")
            raise ExternalServiceError(self.name, "CONNECTION_ERROR", str(exc)) from exc

        status_code = response.status_code
        if status_code >= 500:
            self._on_transport_failure(path, f"HTTP_{status_code}")
            raise ExternalServiceError(
                self.name, f"HTTP_{status_code}", f"Provider returned {status_code}"
            )
        self._breaker.on_success()
        if status_code >= 400:
            self._record_error(path, f"HTTP_{status_code}")
            raise ExternalServiceError(
                self.name, f"HTTP_{status_code}", f"Provider returned {status_code}"
            )
        try:
            body = response.json()
        except ValueError as exc:
            self._record_error(path, "INVALID_RESPONSE")
            raise ExternalServiceError(
                self.name, "INVALID_RESPONSE", "Response is not JSON"
            ) from exc
        if not isinstance(body, dict):
            self._record_error(path, "INVALID_RESPONSE")
            raise ExternalServiceError(self.name, "INVALID_RESPONSE", "Response is not an object")
        return body

    def _on_transport_failure(self, path: str, error_code: str) -> None:
        self._breaker.on_failure()
        self._record_error(path, error_code)

    def _record_error(self, path: str, error_code: str) -> None:
        provider_errors.add(1, {"provider": self.id, "operation": path, "error": error_code})
        logger.warning(
            "provider_call_failed",
            extra={
                "extra_fields": {
                    "provider_id": self.id,
                    "operation": path,
                    "error_code": error_code,
                }
            },
        )

    def _log_retry(self, attempt: int, exc: Exception) -> None:
        logger.info(
            "provider_call_retry",
            extra={
                "extra_fields": {
                    "provider_id": self.id,
                    "attempt": attempt,
                    "error": type(exc).__name__,
                }
            },
        )
