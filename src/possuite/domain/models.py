from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, fields, replace
from datetime import datetime
from typing import Optional

CATEGORIES = ("Electronics", "Accessories", "Peripherals", "Storage", "Furniture", "Other")
PAYMENT_METHODS = ("cash", "mobile_money", "card")

TRANSFER_STATUS_PENDING = "pending"
TRANSFER_STATUS_COMPLETED = "completed"
TRANSFER_STATUS_CANCELLED = "cancelled"


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def iso(dt: datetime) -> str:
    return dt.isoformat(timespec="milliseconds")


def parse_iso(value: str) -> datetime:
    return datetime.fromisoformat(value)


class _Record:
    """Dict (de)serialization shared by persisted entities."""

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict):
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass(frozen=True)
class Product(_Record):
    barcode: str
    name: str
    price: float
    stock: int
    category: str = "Other"


@dataclass(frozen=True)
class StockLog(_Record):
    id: str
    barcode: str
    product_name: str
    previous_stock: int
    new_stock: int
    quantity_added: int
    timestamp: str
    performed_by: str


@dataclass(frozen=True)
class SaleItem(_Record):
    barcode: str
    name: str
    price: float
    quantity: int
    total: float


@dataclass(frozen=True)
class SaleRecord(_Record):
    id: str
    receipt_number: str
    items: tuple[SaleItem, ...]
    subtotal: float
    tax: float
    total: float
    payment_method: str
    amount_paid: float
    change: float
    cashier_name: str
    store_id: Optional[str]
    store_name: Optional[str]
    timestamp: str

    @classmethod
    def from_dict(cls, data: dict) -> "SaleRecord":
        record = super().from_dict(data)
        items = tuple(SaleItem.from_dict(it) for it in data.get("items", []))
        return replace(record, items=items)

    @property
    def item_count(self) -> int:
        return sum(int(it.quantity) for it in self.items)


@dataclass(frozen=True)
class CartItem:
    product: Product
    quantity: int

    @property
    def total(self) -> float:
        return float(self.product.price) * int(self.quantity)

    def to_sale_item(self) -> SaleItem:
        return SaleItem(
            barcode=self.product.barcode,
            name=self.product.name,
            price=float(self.product.price),
            quantity=int(self.quantity),
            total=self.total,
        )


@dataclass(frozen=True)
class StockTransfer(_Record):
    id: str
    from_store_id: str
    to_store_id: str
    barcode: str
    product_name: str
    quantity: int
    status: str
    requested_by: str
    timestamp: str
    from_store_name: Optional[str] = None
    to_store_name: Optional[str] = None
    completed_at: Optional[str] = None


@dataclass(frozen=True)
class Store(_Record):
    id: str
    code: str
    name: str
    address: str = ""
    phone: str = ""
    email: str = ""
    manager_name: str = ""
    is_active: bool = True
    created_at: Optional[str] = None


@dataclass(frozen=True)
class StaffMember(_Record):
    id: str
    business_id: str
    name: str
    email: str
    phone: str
    password_hash: str
    role: str
    is_active: bool = True
    created_at: Optional[str] = None
    assigned_store_id: Optional[str] = None
    assigned_store_name: Optional[str] = None
    last_login: Optional[str] = None


@dataclass(frozen=True)
class AdminUser(_Record):
    id: str
    username: str
    password_hash: str
    role: str = "admin"
    created_at: Optional[str] = None


@dataclass(frozen=True)
class PosSession:
    store_id: Optional[str]
    store_name: Optional[str]
    cashier_name: str


@dataclass(frozen=True)
class ReturnCheck:
    receipt_number: str
    barcode: str
    name: str
    quantity: int
    sold_quantity: int
    refund_amount: float
