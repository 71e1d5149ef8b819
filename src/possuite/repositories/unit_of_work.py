from __future__ import annotations

from typing import Any, Optional


class LedgerUnitOfWork:
    """Stages collection writes and applies them as one store write.

    Reads through the unit of work see staged rows first, so a use-case can
    read, modify and re-read before anything reaches the store. Nothing is
    written if the block raises.
    """

    def __init__(self, store):
        self.store = store
        self._staged: dict[str, Any] = {}
        self.committed = False

    def __enter__(self) -> "LedgerUnitOfWork":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.commit()
        else:
            self._staged.clear()
        return None

    def get(self, collection: str) -> list[dict]:
        if collection in self._staged:
            return list(self._staged[collection])
        return self.store.get(collection)

    def put(self, collection: str, rows: list[dict]) -> None:
        self._staged[collection] = list(rows)

    def set_value(self, key: str, value: Optional[Any]) -> None:
        self._staged[key] = value

    def commit(self) -> None:
        if self._staged:
            self.store.put_many(dict(self._staged))
            self._staged.clear()
        self.committed = True
