from __future__ import annotations

import logging
import os
from datetime import datetime

from possuite.domain.models import AdminUser, Product, StaffMember, Store, iso
from possuite.repositories import ledger_store as keys
from possuite.security import hash_secret

log = logging.getLogger(__name__)

INITIAL_PRODUCTS = [
    Product("1234567890", "Laptop Computer", 899.99, 5, "Electronics"),
    Product("2345678901", "Wireless Mouse", 29.99, 15, "Peripherals"),
    Product("3456789012", "USB-C Cable", 12.99, 30, "Accessories"),
    Product("4567890123", "Mechanical Keyboard", 149.99, 8, "Peripherals"),
    Product("5678901234", 'Monitor 27"', 299.99, 4, "Electronics"),
    Product("6789012345", "Webcam HD", 79.99, 12, "Electronics"),
    Product("7890123456", "Headphones", 59.99, 20, "Accessories"),
    Product("8901234567", "Phone Charger", 19.99, 25, "Accessories"),
    Product("9012345678", "External SSD 1TB", 129.99, 10, "Storage"),
    Product("0123456789", "Gaming Chair", 249.99, 3, "Furniture"),
]

DEFAULT_STORE_ID = "store-001"


def seed_defaults(store, now: datetime | None = None) -> list[str]:
    """Fill every collection that is still absent. Returns the seeded keys."""
    created = iso(now or datetime.now())
    seeded: list[str] = []

    if not store.has(keys.PRODUCTS):
        store.put(keys.PRODUCTS, [p.to_dict() for p in INITIAL_PRODUCTS])
        seeded.append(keys.PRODUCTS)

    for empty in (keys.SALES, keys.STOCK_LOGS, keys.STOCK_TRANSFERS, keys.MANAGERS):
        if not store.has(empty):
            store.put(empty, [])
            seeded.append(empty)

    if not store.has(keys.ADMIN_USERS):
        admin_password = os.environ.get("POSSUITE_ADMIN_PASSWORD", "").strip() or "admin123"
        admin = AdminUser(
            id="admin-001",
            username="admin",
            password_hash=hash_secret(admin_password),
            created_at=created,
        )
        store.put(keys.ADMIN_USERS, [admin.to_dict()])
        seeded.append(keys.ADMIN_USERS)

    if not store.has(keys.CASHIERS):
        cashiers = [
            StaffMember(
                id="cashier-001",
                business_id="CASHIER001",
                name="John Doe",
                email="john.doe@pos.com",
                phone="+1234567890",
                password_hash=hash_secret("pos123"),
                role="cashier",
                created_at=created,
            ),
            StaffMember(
                id="cashier-002",
                business_id="CASHIER002",
                name="Jane Smith",
                email="jane.smith@pos.com",
                phone="+1234567891",
                password_hash=hash_secret("pos123"),
                role="cashier",
                created_at=created,
            ),
        ]
        store.put(keys.CASHIERS, [c.to_dict() for c in cashiers])
        seeded.append(keys.CASHIERS)

    if not store.has(keys.STORES):
        main = Store(id=DEFAULT_STORE_ID, code="MAIN", name="Main Store", created_at=created)
        store.put(keys.STORES, [main.to_dict()])
        seeded.append(keys.STORES)
        if store.get_value(keys.CURRENT_STORE) is None:
            store.set_value(keys.CURRENT_STORE, DEFAULT_STORE_ID)

    if seeded:
        log.info("ledger_seeded keys=%s", ",".join(seeded))
    return seeded
