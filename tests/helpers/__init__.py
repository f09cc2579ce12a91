from tests.helpers.app import build_app_with_router, override_dependencies
from tests.helpers.app_client import create_test_client
from tests.helpers.assertions import assert_error_payload, event_types
from tests.helpers.factories import (
    make_create_payment_payload,
    make_orchestrator,
    make_payment,
    make_webhook_payload,
)
from tests.helpers.fakes import FakeHttpClient, ScriptedProvider, provider_down

__all__ = [
    "FakeHttpClient",
    "ScriptedProvider",
    "assert_error_payload",
    "build_app_with_router",
    "create_test_client",
    "event_types",
    "make_create_payment_payload",
    "make_orchestrator",
    "make_payment",
    "make_webhook_payload",
    "override_dependencies",
    "provider_down",
]
