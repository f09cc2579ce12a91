from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Protocol

from payments_orchestrator.core.errors import ValidationAppError
from shared.contracts import (
    PaymentStatus,
    ProviderPaymentRequest,
    ProviderPaymentResult,
    ProviderStatusResult,
)


class PaymentProvider(Protocol):
    @property
    def id(self) -> str: ...

    @property
    def name(self) -> str: ...

    @property
    def supported_currencies(self) -> frozenset[str]: ...

    async def create_payment(self, request: ProviderPaymentRequest) -> ProviderPaymentResult: ...

    async def check_payment_status(self, provider_transaction_id: str) -> ProviderStatusResult: ...

    async def cancel_payment(self, provider_transaction_id: str, reason: str) -> None: ...

    def supports_currency(self, currency: str) -> bool: ...

    def map_status(self, provider_status: str) -> PaymentStatus: ...

    async def close(self) -> None: ...


def normalize_currencies(currencies: Iterable[str]) -> frozenset[str]:
    return frozenset(code.strip().upper() for code in currencies if code.strip())


def lookup_status(
    status_map: Mapping[str, PaymentStatus], provider_status: str, *, provider_id: str
) -> PaymentStatus:
    """Resolve a provider status against a map keyed by already-normalized strings."""
    status = status_map.get(provider_status)
    if status is None:
        raise ValidationAppError(
            f"Unknown status '{provider_status}' from provider {provider_id}",
            details={"provider_status": provider_status, "provider_id": provider_id},
        )
    return status
