from __future__ import annotations

import pytest
from payments_orchestrator.core.errors import NotFoundError
from payments_orchestrator.providers.registry import ProviderRegistry

from tests.helpers import ScriptedProvider


def test_registry_resolves_by_id_and_default() -> None:
    registry = ProviderRegistry()
    primary = ScriptedProvider("primary")
    backup = ScriptedProvider("backup")

    registry.register(primary, is_default=True)
    registry.register(backup)

    assert registry.get("backup") is backup
    assert registry.get_default() is primary
    assert registry.default_id == "primary"
    assert registry.has("primary") is True
    assert registry.has("missing") is False
    assert registry.all() == [primary, backup]


def test_registry_raises_not_found_for_unknown_id() -> None:
    with pytest.raises(NotFoundError) as exc_info:
        ProviderRegistry().get("missing")

    assert exc_info.value.http_status == 404
    assert exc_info.value.details == {"resource": "Provider", "id": "missing"}


def test_registry_without_default_raises_not_found() -> None:
    registry = ProviderRegistry()
    registry.register(ScriptedProvider("primary"))

    with pytest.raises(NotFoundError):
        registry.get_default()


def test_registering_same_id_replaces_previous_provider() -> None:
    registry = ProviderRegistry()
    first = ScriptedProvider("primary")
    second = ScriptedProvider("primary")

    registry.register(first, is_default=True)
    registry.register(second)

    assert registry.get("primary") is second
    assert registry.get_default() is second
    assert len(registry.all()) == 1


@pytest.mark.asyncio
async def test_close_all_closes_every_provider() -> None:
    registry = ProviderRegistry()
    providers = [ScriptedProvider("a"), ScriptedProvider("b")]
    for provider in providers:
        registry.register(provider)

    await registry.close_all()

    assert all(provider.closed for provider in providers)
