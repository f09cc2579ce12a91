from __future__ import annotations

from dataclasses import dataclass

from payments_orchestrator.core.config import Settings
from payments_orchestrator.domain.events import PaymentEvent
from payments_orchestrator.domain.payment import Payment
from payments_orchestrator.storage.json_store import JsonFileStore
from payments_orchestrator.storage.manager import StoreManager
from payments_orchestrator.storage.store import InMemoryStore, Store
from shared.contracts import StorageBackend

PAYMENTS_STORE_NAME = "payments"
EVENTS_STORE_NAME = "payment_events"


@dataclass(frozen=True)
class Stores:
    payments: Store[Payment]
    events: Store[PaymentEvent]
    manager: StoreManager


def build_stores(settings: Settings) -> Stores:
    backend = settings.storage_backend.strip().lower()
    payments: Store[Payment]
    events: Store[PaymentEvent]
    if backend == StorageBackend.MEMORY.value:
        payments = InMemoryStore[Payment](PAYMENTS_STORE_NAME)
        events = InMemoryStore[PaymentEvent](EVENTS_STORE_NAME)
    elif backend == StorageBackend.JSON.value:
        payments = JsonFileStore(PAYMENTS_STORE_NAME, Payment, settings.stores_dir)
        events = JsonFileStore(EVENTS_STORE_NAME, PaymentEvent, settings.stores_dir)
    else:
        raise ValueError(f"Unsupported storage backend: {settings.storage_backend}")

    manager = StoreManager()
    manager.add(payments)
    manager.add(events)
    return Stores(payments=payments, events=events, manager=manager)
