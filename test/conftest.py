import random
import sys
from datetime import datetime, timedelta
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


class FixedClock:
    def __init__(self, start: datetime = datetime(2024, 3, 15, 10, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now


def make_services(products=None, clock=None, seed=0, settings=None):
    """In-memory container with a small catalog and a default store."""
    from possuite.application.container import build_services
    from possuite.domain.models import Product, Store
    from possuite.repositories import ledger_store as keys
    from possuite.repositories.ledger_store import MemoryLedgerStore

    if products is None:
        products = [
            Product("123", "Widget", 10.0, 5, "Other"),
            Product("456", "Gadget", 5.0, 10, "Electronics"),
            Product("789", "Cable", 2.5, 0, "Accessories"),
        ]
    store = MemoryLedgerStore(
        {
            keys.PRODUCTS: [p.to_dict() for p in products],
            keys.SALES: [],
            keys.STOCK_LOGS: [],
            keys.STORES: [Store(id="store-001", code="MAIN", name="Main Store").to_dict()],
            keys.CURRENT_STORE: "store-001",
        }
    )
    return build_services(store, settings=settings, clock=clock or FixedClock(), rng=random.Random(seed))


def sale_item(barcode: str, name: str, price: float, qty: int):
    from possuite.domain.models import SaleItem

    return SaleItem(barcode=barcode, name=name, price=price, quantity=qty, total=price * qty)
