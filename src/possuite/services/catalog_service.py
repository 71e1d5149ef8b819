from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Iterable, Optional

from possuite.domain.errors import NotFoundError, StateError, ValidationError
from possuite.domain.models import CATEGORIES, Product
from possuite.domain.results import returns_result
from possuite.repositories import ledger_store as keys

log = logging.getLogger(__name__)

SORT_FIELDS = ("name", "price", "stock", "category")


def _validate_fields(name: str, price: float, stock: int, category: str) -> None:
    if not name:
        raise ValidationError("Name is required.")
    if not math.isfinite(price) or price <= 0:
        raise ValidationError("Price must be positive")
    if stock < 0:
        raise ValidationError("Stock cannot be negative")
    if category not in CATEGORIES:
        raise ValidationError(f"Unknown category: {category}")


class CatalogService:
    def __init__(self, store, low_stock_threshold: int = 5):
        self.store = store
        self.low_stock_threshold = low_stock_threshold

    def list_products(self) -> list[Product]:
        return [Product.from_dict(row) for row in self.store.get(keys.PRODUCTS)]

    def find_by_barcode(self, barcode: str) -> Optional[Product]:
        for p in self.list_products():
            if p.barcode == barcode:
                return p
        return None

    def get_product(self, barcode: str) -> Product:
        p = self.find_by_barcode(barcode)
        if not p:
            raise NotFoundError("Product not found")
        return p

    def is_barcode_unique(self, barcode: str, exclude_barcode: Optional[str] = None) -> bool:
        return not any(p.barcode == barcode and p.barcode != exclude_barcode for p in self.list_products())

    @returns_result
    def add(self, barcode: str, name: str, price: float, stock: int, category: str = "Other") -> Product:
        barcode = (barcode or "").strip()
        name = (name or "").strip()
        if not barcode:
            raise ValidationError("Barcode is required.")
        if not self.is_barcode_unique(barcode):
            raise ValidationError("Barcode already exists")
        _validate_fields(name, float(price), int(stock), category)

        product = Product(barcode=barcode, name=name, price=float(price), stock=int(stock), category=category)
        rows = self.store.get(keys.PRODUCTS)
        rows.append(product.to_dict())
        self.store.put(keys.PRODUCTS, rows)
        log.info("product_added barcode=%s stock=%s", barcode, product.stock)
        return product

    @returns_result
    def update(self, barcode: str, **changes) -> Product:
        rows = self.store.get(keys.PRODUCTS)
        index = next((i for i, row in enumerate(rows) if row["barcode"] == barcode), None)
        if index is None:
            raise NotFoundError("Product not found")

        unknown = set(changes) - {"barcode", "name", "price", "stock", "category"}
        if unknown:
            raise ValidationError(f"Unknown product fields: {', '.join(sorted(unknown))}")

        current = Product.from_dict(rows[index])
        new_barcode = (changes.get("barcode") or barcode).strip()
        if new_barcode != barcode and not self.is_barcode_unique(new_barcode, exclude_barcode=barcode):
            raise ValidationError("Barcode already exists")

        updated = replace(
            current,
            barcode=new_barcode,
            name=(changes.get("name", current.name) or "").strip(),
            price=float(changes.get("price", current.price)),
            stock=int(changes.get("stock", current.stock)),
            category=changes.get("category", current.category),
        )
        _validate_fields(updated.name, updated.price, updated.stock, updated.category)

        rows[index] = updated.to_dict()
        self.store.put(keys.PRODUCTS, rows)
        log.info("product_updated barcode=%s fields=%s", barcode, ",".join(sorted(changes)))
        return updated

    @returns_result
    def delete(self, barcode: str) -> None:
        rows = self.store.get(keys.PRODUCTS)
        remaining = [row for row in rows if row["barcode"] != barcode]
        if len(remaining) == len(rows):
            raise NotFoundError("Product not found")
        for sale in self.store.get(keys.SALES):
            if any(item["barcode"] == barcode for item in sale.get("items", [])):
                raise StateError("Product has recorded sales and cannot be deleted")
        self.store.put(keys.PRODUCTS, remaining)
        log.info("product_deleted barcode=%s", barcode)

    def search(self, query: str) -> list[Product]:
        products = self.list_products()
        needle = (query or "").strip().lower()
        if not needle:
            return products
        return [p for p in products if needle in p.name.lower() or needle in p.barcode.lower()]

    @staticmethod
    def sort(products: Iterable[Product], field: str = "name", order: str = "asc") -> list[Product]:
        if field not in SORT_FIELDS:
            raise ValidationError(f"Cannot sort by {field}")
        if field in ("name", "category"):
            key = lambda p: getattr(p, field).casefold()
        else:
            key = lambda p: getattr(p, field)
        return sorted(products, key=key, reverse=(order == "desc"))

    def low_stock(self, threshold: Optional[int] = None) -> list[Product]:
        limit = self.low_stock_threshold if threshold is None else threshold
        return [p for p in self.list_products() if 0 < p.stock < limit]

    def out_of_stock(self) -> list[Product]:
        return [p for p in self.list_products() if p.stock == 0]
