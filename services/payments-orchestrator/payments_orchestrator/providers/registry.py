from __future__ import annotations

from payments_orchestrator.core.errors import NotFoundError
from payments_orchestrator.providers.contracts import PaymentProvider
from shared.logging import get_logger

logger = get_logger(__name__)


class ProviderRegistry:
    """Providers by id plus one default.

    Registering an id twice replaces the earlier provider.
    """

    def __init__(self) -> None:
        self._providers: dict[str, PaymentProvider] = {}
        self._default_id: str | None = None

    def register(self, provider: PaymentProvider, *, is_default: bool = False) -> None:
        self._providers[provider.id] = provider
        if is_default:
            self._default_id = provider.id
        logger.info(
            "provider_registered",
            extra={"extra_fields": {"provider_id": provider.id, "is_default": is_default}},
        )

    def get(self, provider_id: str) -> PaymentProvider:
        provider = self._providers.get(provider_id)
        if provider is None:
            raise NotFoundError("Provider", provider_id)
        return provider

    def get_default(self) -> PaymentProvider:
        if self._default_id is None:
            raise NotFoundError("Provider", "default")
        return self.get(self._default_id)

    @property
    def default_id(self) -> str | None:
        return self._default_id

    def all(self) -> list[PaymentProvider]:
        return list(self._providers.values())

    def has(self, provider_id: str) -> bool:
        return provider_id in self._providers

    async def close_all(self) -> None:
        for provider in self._providers.values():
            await provider.close()
