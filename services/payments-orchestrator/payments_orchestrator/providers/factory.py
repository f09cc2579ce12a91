from __future__ import annotations

import httpx

from payments_orchestrator.core.config import Settings
from payments_orchestrator.providers.contracts import PaymentProvider
from payments_orchestrator.providers.fake import FakeProvider
from payments_orchestrator.providers.registry import ProviderRegistry
from payments_orchestrator.providers.tbank_sbp import TBankSbpProvider
from shared.resilience import CircuitBreaker, CircuitBreakerConfig


def build_fake_provider(settings: Settings) -> FakeProvider:
    return FakeProvider(
        supported_currencies=settings.supported_currencies,
        success_rate=settings.fake_provider_success_rate,
        auto_confirm_delay_seconds=settings.fake_provider_auto_confirm_delay_seconds,
        seed=settings.fake_provider_seed,
    )


def build_tbank_provider(settings: Settings) -> TBankSbpProvider:
    if not settings.tbank_terminal_id or not settings.tbank_secret_key:
        raise ValueError("TBANK_TERMINAL_ID and TBANK_SECRET_KEY must be set when TBANK_ENABLED")
    client = httpx.AsyncClient(
        base_url=settings.tbank_api_url, timeout=settings.provider_timeout_seconds
    )
    breaker = CircuitBreaker(
        CircuitBreakerConfig(
            failure_threshold=settings.provider_breaker_failure_threshold,
            recovery_timeout_seconds=settings.provider_breaker_recovery_seconds,
        )
    )
    return TBankSbpProvider(
        client,
        terminal_id=settings.tbank_terminal_id,
        secret_key=settings.tbank_secret_key,
        breaker=breaker,
        status_max_attempts=settings.provider_status_max_attempts,
    )


def build_provider_registry(settings: Settings) -> ProviderRegistry:
    providers: list[PaymentProvider] = []
    if settings.fake_provider_enabled:
        providers.append(build_fake_provider(settings))
    if settings.tbank_enabled and settings.tbank_terminal_id:
        providers.append(build_tbank_provider(settings))

    default_id = settings.default_provider_id.strip()
    if default_id not in {provider.id for provider in providers}:
        raise ValueError(f"Default provider is not enabled: {settings.default_provider_id}")

    registry = ProviderRegistry()
    for provider in providers:
        registry.register(provider, is_default=provider.id == default_id)
    return registry
