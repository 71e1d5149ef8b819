import sqlite3
from pathlib import Path

import pytest

from possuite.repositories.ledger_store import MemoryLedgerStore, SqliteLedgerStore
from possuite.repositories.seed import seed_defaults
from possuite.repositories.unit_of_work import LedgerUnitOfWork


def test_sqlite_store_round_trips_collections_and_scalars(tmp_path: Path):
    store = SqliteLedgerStore(tmp_path / "ledger.db")
    store.init_db()

    assert store.get("products") == []
    assert store.has("products") is False

    store.put("products", [{"barcode": "1", "name": "Pen", "price": 1.5, "stock": 3, "category": "Other"}])
    store.set_value("current_store", "store-001")

    reopened = SqliteLedgerStore(tmp_path / "ledger.db")
    reopened.init_db()
    assert reopened.get("products")[0]["name"] == "Pen"
    assert reopened.get_value("current_store") == "store-001"

    reopened.remove("current_store")
    assert reopened.get_value("current_store") is None
    assert reopened.integrity_check() == "ok"


def test_memory_store_reads_do_not_alias_writes():
    store = MemoryLedgerStore()
    rows = [{"barcode": "1", "stock": 3}]
    store.put("products", rows)

    rows[0]["stock"] = 99
    loaded = store.get("products")
    loaded[0]["stock"] = 42

    assert store.get("products")[0]["stock"] == 3


def test_unit_of_work_writes_nothing_when_block_raises():
    store = MemoryLedgerStore({"products": [{"barcode": "1", "stock": 3}], "stock_logs": []})

    with pytest.raises(RuntimeError):
        with LedgerUnitOfWork(store) as uow:
            uow.put("products", [{"barcode": "1", "stock": 10}])
            uow.put("stock_logs", [{"id": "log-1"}])
            raise RuntimeError("boom")

    assert store.get("products")[0]["stock"] == 3
    assert store.get("stock_logs") == []


def test_unit_of_work_reads_its_own_staged_rows():
    store = MemoryLedgerStore({"sales": []})
    with LedgerUnitOfWork(store) as uow:
        uow.put("sales", [{"id": "sale-1"}])
        assert uow.get("sales") == [{"id": "sale-1"}]
        assert store.get("sales") == []
    assert store.get("sales") == [{"id": "sale-1"}]


def test_seed_fills_only_missing_collections():
    store = MemoryLedgerStore({"products": []})

    seeded = seed_defaults(store)

    assert "products" not in seeded
    assert store.get("products") == []
    assert len(store.get("cashiers")) == 2
    assert store.get("stores")[0]["code"] == "MAIN"
    assert store.get_value("current_store") == "store-001"
    assert seed_defaults(store) == []


class _BrokenConnection:
    def __init__(self):
        self.closed = False

    def cursor(self):
        return self

    def execute(self, *args):
        raise sqlite3.OperationalError("disk I/O error")

    def commit(self):
        pass

    def rollback(self):
        pass

    def close(self):
        self.closed = True


@pytest.mark.parametrize(
    "call",
    [
        lambda s: s.get_value("products"),
        lambda s: s.remove("products"),
        lambda s: s.has("products"),
        lambda s: s.integrity_check(),
    ],
)
def test_sqlite_store_closes_connection_on_query_failure(tmp_path: Path, monkeypatch, call):
    store = SqliteLedgerStore(tmp_path / "ledger.db")
    broken = _BrokenConnection()
    monkeypatch.setattr(store, "_conn", lambda: broken)

    with pytest.raises(sqlite3.OperationalError):
        call(store)
    assert broken.closed
