from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from possuite.domain.errors import NotFoundError, ValidationError
from possuite.domain.models import PosSession, Store, iso, new_id
from possuite.domain.results import returns_result
from possuite.repositories import ledger_store as keys

log = logging.getLogger(__name__)

STORE_FIELDS = ("code", "name", "address", "phone", "email", "manager_name", "is_active")


class StoreService:
    def __init__(self, store, clock: Callable[[], datetime] = datetime.now):
        self.store = store
        self.clock = clock

    def list_stores(self) -> list[Store]:
        return [Store.from_dict(row) for row in self.store.get(keys.STORES)]

    def active_stores(self) -> list[Store]:
        return [s for s in self.list_stores() if s.is_active]

    def find_by_id(self, store_id: str) -> Optional[Store]:
        return next((s for s in self.list_stores() if s.id == store_id), None)

    def is_code_unique(self, code: str, exclude_id: Optional[str] = None) -> bool:
        wanted = code.strip().upper()
        return not any(s.code.upper() == wanted and s.id != exclude_id for s in self.list_stores())

    def search(self, query: str) -> list[Store]:
        needle = (query or "").strip().lower()
        stores = self.list_stores()
        if not needle:
            return stores
        return [
            s for s in stores
            if needle in s.name.lower() or needle in s.code.lower() or needle in s.address.lower()
        ]

    @returns_result
    def add(self, code: str, name: str, **details) -> Store:
        code = (code or "").strip().upper()
        name = (name or "").strip()
        if not code or not name:
            raise ValidationError("Store code and name are required.")
        if not self.is_code_unique(code):
            raise ValidationError("Store code already exists")
        unknown = set(details) - set(STORE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown store fields: {', '.join(sorted(unknown))}")

        new_store = Store(id=new_id("store"), code=code, name=name, created_at=iso(self.clock()), **details)
        rows = self.store.get(keys.STORES)
        rows.append(new_store.to_dict())
        self.store.put(keys.STORES, rows)
        log.info("store_added id=%s code=%s", new_store.id, code)
        return new_store

    @returns_result
    def update(self, store_id: str, **changes) -> Store:
        return self._update(store_id, **changes)

    def _update(self, store_id: str, **changes) -> Store:
        unknown = set(changes) - set(STORE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown store fields: {', '.join(sorted(unknown))}")
        rows = self.store.get(keys.STORES)
        index = next((i for i, row in enumerate(rows) if row["id"] == store_id), None)
        if index is None:
            raise NotFoundError("Store not found")
        if "code" in changes:
            changes["code"] = (changes["code"] or "").strip().upper()
            if not changes["code"]:
                raise ValidationError("Store code is required.")
            if not self.is_code_unique(changes["code"], exclude_id=store_id):
                raise ValidationError("Store code already exists")

        updated = replace(Store.from_dict(rows[index]), **changes)
        rows[index] = updated.to_dict()
        self.store.put(keys.STORES, rows)
        return updated

    @returns_result
    def toggle_active(self, store_id: str) -> Store:
        current = self.find_by_id(store_id)
        if not current:
            raise NotFoundError("Store not found")
        return self._update(store_id, is_active=not current.is_active)

    def stats(self) -> dict[str, int]:
        stores = self.list_stores()
        active = sum(1 for s in stores if s.is_active)
        return {"total": len(stores), "active": active, "inactive": len(stores) - active}


class StoreContext:
    """The store the terminal is currently working for.

    Subscribers are called with the new ``Store`` after every switch.
    """

    def __init__(self, store, stores: StoreService):
        self.store = store
        self.stores = stores
        self._subscribers: list[Callable[[Store], None]] = []

    @property
    def current(self) -> Optional[Store]:
        store_id = self.store.get_value(keys.CURRENT_STORE)
        return self.stores.find_by_id(store_id) if store_id else None

    def subscribe(self, callback: Callable[[Store], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    @returns_result
    def switch(self, store_id: str) -> Store:
        target = self.stores.find_by_id(store_id)
        if not target:
            raise NotFoundError("Store not found")
        self.store.set_value(keys.CURRENT_STORE, target.id)
        log.info("store_switched id=%s", target.id)
        for callback in list(self._subscribers):
            callback(target)
        return target

    def session_for(self, cashier_name: str, store: Optional[Store] = None) -> PosSession:
        chosen = store or self.current
        return PosSession(
            store_id=chosen.id if chosen else None,
            store_name=chosen.name if chosen else None,
            cashier_name=cashier_name,
        )
