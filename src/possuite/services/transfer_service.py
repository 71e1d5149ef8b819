from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from possuite.domain.errors import NotFoundError, StateError
from possuite.domain.models import (
    TRANSFER_STATUS_CANCELLED,
    TRANSFER_STATUS_COMPLETED,
    TRANSFER_STATUS_PENDING,
    StockTransfer,
    iso,
    new_id,
)
from possuite.domain.results import returns_result
from possuite.repositories import ledger_store as keys

log = logging.getLogger("possuite.stock")


class TransferService:
    """Stock transfer requests between stores.

    A transfer starts ``pending`` and may move once, to ``completed`` or
    ``cancelled``. Completing a transfer records the hand-over only; product
    stock is a single catalog-wide figure and is left untouched.
    """

    def __init__(self, store, clock: Callable[[], datetime] = datetime.now):
        self.store = store
        self.clock = clock

    def list_transfers(self, status: Optional[str] = None, store_id: Optional[str] = None) -> list[StockTransfer]:
        transfers = [StockTransfer.from_dict(row) for row in self.store.get(keys.STOCK_TRANSFERS)]
        if status:
            transfers = [t for t in transfers if t.status == status]
        if store_id:
            transfers = [t for t in transfers if store_id in (t.from_store_id, t.to_store_id)]
        return transfers

    def get(self, transfer_id: str) -> StockTransfer:
        for t in self.list_transfers():
            if t.id == transfer_id:
                return t
        raise NotFoundError("Transfer not found")

    @returns_result
    def create(
        self,
        from_store_id: str,
        to_store_id: str,
        barcode: str,
        product_name: str,
        quantity: int,
        requested_by: str,
        from_store_name: Optional[str] = None,
        to_store_name: Optional[str] = None,
    ) -> StockTransfer:
        transfer = StockTransfer(
            id=new_id("transfer"),
            from_store_id=from_store_id,
            to_store_id=to_store_id,
            from_store_name=from_store_name,
            to_store_name=to_store_name,
            barcode=barcode,
            product_name=product_name,
            quantity=int(quantity),
            status=TRANSFER_STATUS_PENDING,
            requested_by=requested_by,
            timestamp=iso(self.clock()),
        )
        rows = self.store.get(keys.STOCK_TRANSFERS)
        rows.insert(0, transfer.to_dict())
        self.store.put(keys.STOCK_TRANSFERS, rows)
        log.info(
            "transfer_created id=%s from=%s to=%s barcode=%s qty=%s",
            transfer.id, from_store_id, to_store_id, barcode, transfer.quantity,
        )
        return transfer

    @returns_result
    def complete(self, transfer_id: str) -> StockTransfer:
        return self._transition(transfer_id, TRANSFER_STATUS_COMPLETED)

    @returns_result
    def cancel(self, transfer_id: str) -> StockTransfer:
        return self._transition(transfer_id, TRANSFER_STATUS_CANCELLED)

    def _transition(self, transfer_id: str, status: str) -> StockTransfer:
        rows = self.store.get(keys.STOCK_TRANSFERS)
        index = next((i for i, row in enumerate(rows) if row["id"] == transfer_id), None)
        if index is None:
            raise NotFoundError("Transfer not found")

        current = StockTransfer.from_dict(rows[index])
        if current.status != TRANSFER_STATUS_PENDING:
            raise StateError(f"Cannot mark transfer as {status}: it is already {current.status}")

        updated = replace(current, status=status)
        if status == TRANSFER_STATUS_COMPLETED:
            updated = replace(updated, completed_at=iso(self.clock()))
        rows[index] = updated.to_dict()
        self.store.put(keys.STOCK_TRANSFERS, rows)
        log.info("transfer_%s id=%s", status, transfer_id)
        return updated
