from __future__ import annotations

import logging
from dataclasses import replace
from enum import Enum
from typing import Optional

from possuite.domain.errors import (
    EmptyCart,
    NotRegistered,
    OutOfStock,
    ProductNotFound,
    StateError,
    StockLimitExceeded,
)
from possuite.domain.models import CartItem, PosSession, SaleItem, SaleRecord
from possuite.domain.results import OperationResult, returns_result

log = logging.getLogger("possuite.sales")


class SaleState(str, Enum):
    BUILDING = "building"
    AWAITING_PAYMENT = "awaiting_payment"
    COMPLETED = "completed"


class CheckoutSession:
    """One cashier's cart and its path to a recorded sale.

    Scanning and quantity changes happen while ``BUILDING``. A checkout request
    moves to ``AWAITING_PAYMENT``; a rejected payment returns to ``BUILDING``
    with the cart intact, an accepted one ends in ``COMPLETED`` with an empty
    cart. ``new_sale`` starts the next cycle.
    """

    def __init__(self, catalog, sales, session: PosSession):
        self.catalog = catalog
        self.sales = sales
        self.session = session
        self.state = SaleState.BUILDING
        self.last_sale: Optional[SaleRecord] = None
        self._items: list[CartItem] = []

    @property
    def items(self) -> list[CartItem]:
        return list(self._items)

    @property
    def item_count(self) -> int:
        return sum(it.quantity for it in self._items)

    @property
    def subtotal(self) -> float:
        return sum(it.total for it in self._items)

    def quantity_of(self, barcode: str) -> int:
        item = self._find(barcode)
        return item.quantity if item else 0

    def to_sale_items(self) -> list[SaleItem]:
        return [it.to_sale_item() for it in self._items]

    def _find(self, barcode: str) -> Optional[CartItem]:
        return next((it for it in self._items if it.product.barcode == barcode), None)

    def _replace(self, barcode: str, item: Optional[CartItem]) -> None:
        updated = []
        for it in self._items:
            if it.product.barcode != barcode:
                updated.append(it)
            elif item is not None:
                updated.append(item)
        self._items = updated

    def _require(self, state: SaleState) -> None:
        if self.state is not state:
            raise StateError(f"Not allowed while the sale is {self.state.value}")

    # ---------- Cart ----------
    @returns_result
    def scan(self, barcode: str) -> CartItem:
        self._require(SaleState.BUILDING)
        product = self.catalog.find_by_barcode(barcode)
        if not product:
            raise NotRegistered("Product not registered! Please check the barcode.")

        existing = self._find(barcode)
        if existing:
            if existing.quantity >= product.stock:
                raise StockLimitExceeded(f"Cannot add more {product.name}. Only {product.stock} in stock!")
            item = CartItem(product=product, quantity=existing.quantity + 1)
            self._replace(barcode, item)
            return item

        if product.stock == 0:
            raise OutOfStock(f"{product.name} is out of stock!")
        item = CartItem(product=product, quantity=1)
        self._items.append(item)
        return item

    @returns_result
    def update_quantity(self, barcode: str, delta: int) -> Optional[CartItem]:
        """Returns the updated line, or None once the line has been removed."""
        self._require(SaleState.BUILDING)
        existing = self._find(barcode)
        if not existing:
            raise ProductNotFound("Item is not in the cart")

        new_quantity = existing.quantity + int(delta)
        if new_quantity <= 0:
            self._replace(barcode, None)
            return None

        product = self.catalog.find_by_barcode(barcode) or existing.product
        if delta > 0 and new_quantity > product.stock:
            raise StockLimitExceeded(f"Cannot add more {product.name}. Only {product.stock} in stock!")
        item = replace(existing, product=product, quantity=new_quantity)
        self._replace(barcode, item)
        return item

    @returns_result
    def remove(self, barcode: str) -> None:
        self._require(SaleState.BUILDING)
        if not self._find(barcode):
            raise ProductNotFound("Item is not in the cart")
        self._replace(barcode, None)

    @returns_result
    def clear(self) -> None:
        self._require(SaleState.BUILDING)
        self._items = []

    # ---------- Checkout ----------
    @returns_result
    def request_checkout(self) -> float:
        self._require(SaleState.BUILDING)
        if not self._items:
            raise EmptyCart("No items in cart")
        _subtotal, _tax, total = self.sales.compute_totals(self.to_sale_items())
        self.state = SaleState.AWAITING_PAYMENT
        return total

    @returns_result
    def cancel_checkout(self) -> None:
        self._require(SaleState.AWAITING_PAYMENT)
        self.state = SaleState.BUILDING

    def pay(self, payment_method: str, amount_paid: float) -> OperationResult[SaleRecord]:
        if self.state is not SaleState.AWAITING_PAYMENT:
            return OperationResult.fail(StateError(f"Not allowed while the sale is {self.state.value}"))

        result = self.sales.process_sale(
            self.to_sale_items(),
            payment_method,
            amount_paid,
            self.session.cashier_name,
            self.session.store_id,
            self.session.store_name,
        )
        if not result.success:
            log.info("checkout_rejected cashier=%s code=%s", self.session.cashier_name, result.code)
            self.state = SaleState.BUILDING
            return result

        self.last_sale = result.value
        self._items = []
        self.state = SaleState.COMPLETED
        return result

    @returns_result
    def new_sale(self) -> None:
        self._require(SaleState.COMPLETED)
        self.last_sale = None
        self._items = []
        self.state = SaleState.BUILDING
