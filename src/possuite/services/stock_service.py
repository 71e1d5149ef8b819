from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from typing import Callable, Iterable

from possuite.domain.errors import InsufficientStock, NotFoundError, ProductNotFound, ValidationError
from possuite.domain.models import SaleItem, StockLog, iso, new_id
from possuite.domain.results import returns_result
from possuite.repositories import ledger_store as keys
from possuite.repositories.unit_of_work import LedgerUnitOfWork

log = logging.getLogger("possuite.stock")


def check_availability(product_rows: list[dict], items: Iterable[SaleItem]) -> Counter[str]:
    """Verify every line against current stock before anything is changed.

    Quantities for a barcode repeated across lines are checked cumulatively.
    """
    by_barcode = {row["barcode"]: row for row in product_rows}
    qty_by_barcode: Counter[str] = Counter()
    for item in items:
        qty = int(item.quantity)
        if qty <= 0:
            raise ValidationError("Quantity must be >= 1.")
        row = by_barcode.get(item.barcode)
        if row is None:
            raise ProductNotFound(f"Product {item.name} not found")
        qty_by_barcode[item.barcode] += qty
        if qty_by_barcode[item.barcode] > int(row["stock"]):
            raise InsufficientStock(f"Insufficient stock for {item.name}. Available: {row['stock']}")
    return qty_by_barcode


def deduct_stock(product_rows: list[dict], qty_by_barcode: Counter[str]) -> list[dict]:
    updated = []
    for row in product_rows:
        qty = qty_by_barcode.get(row["barcode"], 0)
        if qty:
            row = dict(row, stock=int(row["stock"]) - qty)
        updated.append(row)
    return updated


class StockService:
    def __init__(self, store, clock: Callable[[], datetime] = datetime.now):
        self.store = store
        self.clock = clock

    @returns_result
    def restock(self, barcode: str, quantity: int, performed_by: str) -> StockLog:
        if int(quantity) <= 0:
            raise ValidationError("Quantity must be positive")

        with LedgerUnitOfWork(self.store) as uow:
            products = uow.get(keys.PRODUCTS)
            index = next((i for i, row in enumerate(products) if row["barcode"] == barcode), None)
            if index is None:
                raise NotFoundError("Product not found")

            previous = int(products[index]["stock"])
            entry = StockLog(
                id=new_id("log"),
                barcode=barcode,
                product_name=products[index]["name"],
                previous_stock=previous,
                new_stock=previous + int(quantity),
                quantity_added=int(quantity),
                timestamp=iso(self.clock()),
                performed_by=performed_by,
            )
            products[index] = dict(products[index], stock=entry.new_stock)

            logs = uow.get(keys.STOCK_LOGS)
            logs.insert(0, entry.to_dict())
            uow.put(keys.PRODUCTS, products)
            uow.put(keys.STOCK_LOGS, logs)

        log.info(
            "stock_restocked barcode=%s qty=%s stock=%s->%s by=%s",
            barcode, quantity, entry.previous_stock, entry.new_stock, performed_by,
        )
        return entry

    def logs(self) -> list[StockLog]:
        return [StockLog.from_dict(row) for row in self.store.get(keys.STOCK_LOGS)]

    def logs_for(self, barcode: str) -> list[StockLog]:
        return [entry for entry in self.logs() if entry.barcode == barcode]

    def recent_logs(self, limit: int = 10) -> list[StockLog]:
        return self.logs()[: max(0, int(limit))]
