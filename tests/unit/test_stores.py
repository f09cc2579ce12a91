from __future__ import annotations

import json
from pathlib import Path

import pytest
from payments_orchestrator.core.config import Settings
from payments_orchestrator.domain.events import PaymentEvent
from payments_orchestrator.domain.payment import Payment
from payments_orchestrator.storage.factory import build_stores
from payments_orchestrator.storage.json_store import JsonFileStore
from payments_orchestrator.storage.manager import StoreManager
from payments_orchestrator.storage.store import InMemoryStore

from shared.contracts import PaymentStatus
from tests.helpers import make_payment


def test_in_memory_store_upserts_by_id_and_hands_out_copies() -> None:
    store: InMemoryStore[Payment] = InMemoryStore("payments")
    payment = make_payment()

    store.save(payment)
    payment.update_status(PaymentStatus.FAILED)
    loaded = store.get(payment.id)

    assert loaded is not None
    assert loaded.status == PaymentStatus.CREATED
    loaded.update_status(PaymentStatus.AWAITING_PAYMENT)
    assert store.get(payment.id).status == PaymentStatus.CREATED  # type: ignore[union-attr]

    store.save(loaded)
    assert store.count() == 1
    assert store.get(payment.id).status == PaymentStatus.AWAITING_PAYMENT  # type: ignore[union-attr]


def test_in_memory_store_find_and_all() -> None:
    store: InMemoryStore[Payment] = InMemoryStore("payments")
    failed = make_payment(status=PaymentStatus.FAILED)
    store.save(failed)
    store.save(make_payment())

    found = store.find(lambda payment: payment.status == PaymentStatus.FAILED)

    assert [payment.id for payment in found] == [failed.id]
    assert len(store.all()) == 2
    assert store.get(make_payment().id) is None


def test_json_store_persists_every_save_atomically(tmp_path: Path) -> None:
    store = JsonFileStore("payments", Payment, tmp_path)
    store.initialize()
    payment = make_payment(provider_transaction_id="tx-1")

    store.save(payment)

    document = json.loads((tmp_path / "payments.json").read_text(encoding="utf-8"))
    assert [item["id"] for item in document["items"]] == [str(payment.id)]
    assert "saved_at" in document
    assert list(tmp_path.glob("*.tmp")) == []


def test_json_store_reloads_items_equal_to_saved(tmp_path: Path) -> None:
    payment = make_payment(status=PaymentStatus.AWAITING_PAYMENT)
    event = PaymentEvent.payment_link_generated(
        payment.id, payment_url="https://pay.local/1", expires_at=payment.created_at
    )
    payments = JsonFileStore("payments", Payment, tmp_path)
    events = JsonFileStore("payment_events", PaymentEvent, tmp_path)
    payments.save(payment)
    events.save(event)

    reloaded_payments = JsonFileStore("payments", Payment, tmp_path)
    reloaded_events = JsonFileStore("payment_events", PaymentEvent, tmp_path)
    reloaded_payments.initialize()
    reloaded_events.initialize()

    assert reloaded_payments.get(payment.id) == payment
    assert reloaded_events.get(event.id) == event


@pytest.mark.parametrize("content", ["", "{not json", '{"items": "nope"}', "[1, 2]"])
def test_json_store_treats_unreadable_files_as_empty(tmp_path: Path, content: str) -> None:
    (tmp_path / "payments.json").write_text(content, encoding="utf-8")
    store = JsonFileStore("payments", Payment, tmp_path)

    store.initialize()

    assert store.count() == 0
    assert store.is_initialized is True


def test_json_store_skips_invalid_items(tmp_path: Path) -> None:
    payment = make_payment()
    document = {"items": [payment.model_dump(mode="json"), {"id": "broken"}], "saved_at": "x"}
    (tmp_path / "payments.json").write_text(json.dumps(document), encoding="utf-8")
    store = JsonFileStore("payments", Payment, tmp_path)

    store.initialize()

    assert store.count() == 1


def test_json_store_initialize_loads_only_once(tmp_path: Path) -> None:
    store = JsonFileStore("payments", Payment, tmp_path / "nested")
    store.initialize()
    payment = make_payment()
    store.save(payment)

    store.initialize()

    assert store.count() == 1
    assert store.path == tmp_path / "nested" / "payments.json"


def test_store_manager_initializes_and_flushes_persistent_stores(tmp_path: Path) -> None:
    manager = StoreManager()
    json_store = JsonFileStore("payments", Payment, tmp_path)
    memory_store: InMemoryStore[Payment] = InMemoryStore("scratch")
    manager.add(json_store)
    manager.add(memory_store)

    manager.initialize()
    manager.flush_all()

    assert manager.count == 2
    assert json_store.is_initialized is True
    assert (tmp_path / "payments.json").exists()


def test_build_stores_selects_backend(tmp_path: Path) -> None:
    memory = build_stores(Settings(storage_backend="memory"))
    persistent = build_stores(Settings(storage_backend="JSON", stores_dir=str(tmp_path)))

    assert isinstance(memory.payments, InMemoryStore)
    assert not isinstance(memory.payments, JsonFileStore)
    assert isinstance(persistent.events, JsonFileStore)
    assert persistent.manager.count == 2


def test_build_stores_rejects_unknown_backend() -> None:
    with pytest.raises(ValueError, match="Unsupported storage backend"):
        build_stores(Settings(storage_backend="postgres"))
