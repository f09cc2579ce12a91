from __future__ import annotations

import pytest
from payments_orchestrator.core import config as config_module
from payments_orchestrator.core.config import Settings
from payments_orchestrator.providers.factory import (
    build_fake_provider,
    build_provider_registry,
    build_tbank_provider,
)
from payments_orchestrator.providers.fake import FakeProvider
from payments_orchestrator.providers.tbank_sbp import TBankSbpProvider


def test_settings_defaults() -> None:
    settings = Settings(_env_file=None)  # type: ignore[call-arg]

    assert settings.default_provider_id == "fake"
    assert settings.supported_currencies == {"RUB", "USD", "EUR"}
    assert settings.cancel_ignores_remote_failures is True
    assert settings.tbank_api_url == "https://securepay.tinkoff.ru/v2"


def test_settings_read_environment(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setenv("CALLBACK_BASE_URL", "https://orchestrator.example/")
    monkeypatch.setenv("SUPPORTED_CURRENCIES", '["RUB"]')
    monkeypatch.setenv("CANCEL_IGNORES_REMOTE_FAILURES", "false")

    settings = Settings(_env_file=None)  # type: ignore[call-arg]

    assert settings.normalized_callback_base_url == "https://orchestrator.example"
    assert settings.supported_currencies == {"RUB"}
    assert settings.cancel_ignores_remote_failures is False


def test_get_settings_is_cached() -> None:
    config_module.get_settings.cache_clear()
    try:
        assert config_module.get_settings() is config_module.get_settings()
    finally:
        config_module.get_settings.cache_clear()


def test_build_fake_provider_uses_settings() -> None:
    provider = build_fake_provider(Settings(supported_currencies={"RUB"}, tbank_enabled=False))

    assert isinstance(provider, FakeProvider)
    assert provider.supported_currencies == frozenset({"RUB"})


def test_registry_contains_only_fake_without_tbank_terminal() -> None:
    registry = build_provider_registry(Settings(tbank_enabled=True, tbank_terminal_id=""))

    assert [provider.id for provider in registry.all()] == ["fake"]
    assert registry.default_id == "fake"


@pytest.mark.asyncio
async def test_registry_registers_tbank_when_configured() -> None:
    settings = Settings(
        tbank_enabled=True,
        tbank_terminal_id="TestTerminal",
        tbank_secret_key="secret",
        default_provider_id="tbank-sbp",
    )

    registry = build_provider_registry(settings)

    assert registry.default_id == "tbank-sbp"
    assert isinstance(registry.get("tbank-sbp"), TBankSbpProvider)
    assert registry.has("fake") is True
    await registry.close_all()


def test_tbank_provider_requires_secret() -> None:
    settings = Settings(tbank_enabled=True, tbank_terminal_id="TestTerminal", tbank_secret_key="")

    with pytest.raises(ValueError):
        build_tbank_provider(settings)


def test_registry_rejects_disabled_default_provider() -> None:
    settings = Settings(fake_provider_enabled=False, tbank_enabled=False)

    with pytest.raises(ValueError, match="Default provider is not enabled"):
        build_provider_registry(settings)
