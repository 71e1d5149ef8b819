from __future__ import annotations

import calendar
import logging
import math
import random
import string
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

from possuite.domain.errors import EmptyCart, InsufficientPayment, NotFoundError, ValidationError
from possuite.domain.models import PAYMENT_METHODS, ReturnCheck, SaleItem, SaleRecord, iso, new_id, parse_iso
from possuite.domain.results import returns_result
from possuite.repositories import ledger_store as keys
from possuite.repositories.unit_of_work import LedgerUnitOfWork
from possuite.services.stock_service import check_availability, deduct_stock

log = logging.getLogger("possuite.sales")

_BASE36 = string.digits + string.ascii_uppercase

SEARCH_PERIODS = ("today", "week", "month", "all")


def _month_before(day: datetime) -> datetime:
    year, month = (day.year, day.month - 1) if day.month > 1 else (day.year - 1, 12)
    last_day = calendar.monthrange(year, month)[1]
    return day.replace(year=year, month=month, day=min(day.day, last_day))


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("base36 encoding needs a non-negative integer")
    if value == 0:
        return "0"
    out = []
    while value:
        value, rem = divmod(value, 36)
        out.append(_BASE36[rem])
    return "".join(reversed(out))


def generate_receipt_number(now: datetime, rng: random.Random, prefix: str = "RCP") -> str:
    """PREFIX-<epoch millis in base36>-<3 random base36 chars>."""
    millis = int(now.timestamp() * 1000)
    suffix = "".join(rng.choice(_BASE36) for _ in range(3))
    return f"{prefix}-{to_base36(millis)}-{suffix}"


class SalesService:
    def __init__(
        self,
        store,
        tax_rate: float = 0.0,
        receipt_prefix: str = "RCP",
        clock: Callable[[], datetime] = datetime.now,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.tax_rate = float(tax_rate)
        self.receipt_prefix = receipt_prefix
        self.clock = clock
        self.rng = rng or random.Random()

    def compute_totals(self, items: Iterable[SaleItem]) -> tuple[float, float, float]:
        subtotal = sum(float(it.total) for it in items)
        tax = round(subtotal * self.tax_rate, 2)
        return subtotal, tax, subtotal + tax

    @returns_result
    def process_sale(
        self,
        items: Iterable[SaleItem],
        payment_method: str,
        amount_paid: float,
        cashier_name: str,
        store_id: Optional[str] = None,
        store_name: Optional[str] = None,
    ) -> SaleRecord:
        items = list(items)
        if not items:
            raise EmptyCart("No items in cart")
        if payment_method not in PAYMENT_METHODS:
            raise ValidationError(f"Unsupported payment method: {payment_method}")

        subtotal, tax, total = self.compute_totals(items)
        amount_paid = float(amount_paid)
        if not math.isfinite(amount_paid) or not amount_paid >= total:
            raise InsufficientPayment("Insufficient payment amount")

        now = self.clock()
        with LedgerUnitOfWork(self.store) as uow:
            products = uow.get(keys.PRODUCTS)
            qty_by_barcode = check_availability(products, items)
            uow.put(keys.PRODUCTS, deduct_stock(products, qty_by_barcode))

            sales = uow.get(keys.SALES)
            sale = SaleRecord(
                id=new_id("sale"),
                receipt_number=self._unique_receipt_number(now, sales),
                items=tuple(items),
                subtotal=subtotal,
                tax=tax,
                total=total,
                payment_method=payment_method,
                amount_paid=amount_paid,
                change=amount_paid - total,
                cashier_name=cashier_name,
                store_id=store_id,
                store_name=store_name,
                timestamp=iso(now),
            )
            sales.insert(0, sale.to_dict())
            uow.put(keys.SALES, sales)

        log.info(
            "sale_created receipt=%s items=%s total=%.2f method=%s cashier=%s store=%s",
            sale.receipt_number, len(items), total, payment_method, cashier_name, store_id,
        )
        return sale

    def _unique_receipt_number(self, now: datetime, sales: list[dict]) -> str:
        taken = {s["receipt_number"] for s in sales}
        for _ in range(10):
            candidate = generate_receipt_number(now, self.rng, self.receipt_prefix)
            if candidate not in taken:
                return candidate
        raise ValidationError("Could not allocate a unique receipt number")

    # ---------- Queries ----------
    def all_sales(self, store_id: Optional[str] = None) -> list[SaleRecord]:
        sales = [SaleRecord.from_dict(row) for row in self.store.get(keys.SALES)]
        if store_id:
            sales = [s for s in sales if s.store_id == store_id]
        return sales

    def by_receipt_number(self, receipt_number: str) -> Optional[SaleRecord]:
        wanted = receipt_number.strip().upper()
        return next((s for s in self.all_sales() if s.receipt_number.upper() == wanted), None)

    def by_date_range(self, start: datetime, end: datetime, store_id: Optional[str] = None) -> list[SaleRecord]:
        return [s for s in self.all_sales(store_id) if start <= parse_iso(s.timestamp) <= end]

    def today(self, store_id: Optional[str] = None) -> list[SaleRecord]:
        start = self.clock().replace(hour=0, minute=0, second=0, microsecond=0)
        end = start + timedelta(days=1) - timedelta(microseconds=1)
        return self.by_date_range(start, end, store_id)

    def search(self, query: str = "", period: str = "all", store_id: Optional[str] = None) -> list[SaleRecord]:
        """Sales history lookup, newest first.

        ``query`` matches receipt number, cashier name or any item name,
        case-insensitively. ``period`` is one of today, week, month or all.
        """
        if period not in SEARCH_PERIODS:
            raise ValidationError(f"Unknown period: {period}")

        needle = (query or "").strip().lower()
        midnight = self.clock().replace(hour=0, minute=0, second=0, microsecond=0)
        since = {
            "today": midnight,
            "week": midnight - timedelta(days=7),
            "month": _month_before(midnight),
            "all": None,
        }[period]

        found = []
        for sale in self.all_sales(store_id):
            if needle and not (
                needle in sale.receipt_number.lower()
                or needle in sale.cashier_name.lower()
                or any(needle in it.name.lower() for it in sale.items)
            ):
                continue
            ts = parse_iso(sale.timestamp)
            if since is not None and ts < since:
                continue
            if period == "today" and ts >= midnight + timedelta(days=1):
                continue
            found.append((ts, sale))
        found.sort(key=lambda pair: pair[0], reverse=True)
        return [sale for _, sale in found]

    @returns_result
    def verify_return(self, receipt_number: str, barcode: str, quantity: int) -> ReturnCheck:
        """Check a return request against its receipt. Nothing is restocked."""
        sale = self.by_receipt_number(receipt_number)
        if not sale:
            raise NotFoundError("Receipt not found")
        item = next((it for it in sale.items if it.barcode == barcode), None)
        if not item:
            raise NotFoundError("Item is not on this receipt")
        if int(quantity) <= 0:
            raise ValidationError("Return quantity must be positive")
        if int(quantity) > int(item.quantity):
            raise ValidationError(f"Only {item.quantity} {item.name} were sold on this receipt")
        return ReturnCheck(
            receipt_number=sale.receipt_number,
            barcode=barcode,
            name=item.name,
            quantity=int(quantity),
            sold_quantity=int(item.quantity),
            refund_amount=float(item.price) * int(quantity),
        )
