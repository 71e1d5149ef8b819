from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from possuite.config import PosSettings
from possuite.domain.models import PosSession
from possuite.repositories.ledger_store import MemoryLedgerStore, SqliteLedgerStore
from possuite.repositories.seed import seed_defaults
from possuite.services.analytics_service import AnalyticsService
from possuite.services.auth_service import AuthService
from possuite.services.catalog_service import CatalogService
from possuite.services.checkout_service import CheckoutSession
from possuite.services.excel_service import ExcelService
from possuite.services.reporting_service import ReportingService
from possuite.services.sales_service import SalesService
from possuite.services.staff_service import StaffService
from possuite.services.stock_service import StockService
from possuite.services.store_service import StoreContext, StoreService
from possuite.services.transfer_service import TransferService


@dataclass(frozen=True)
class AppContainer:
    store: object
    settings: PosSettings
    catalog: CatalogService
    stock: StockService
    transfers: TransferService
    sales: SalesService
    analytics: AnalyticsService
    stores: StoreService
    context: StoreContext
    cashiers: StaffService
    managers: StaffService
    auth: AuthService
    excel: ExcelService
    reporting: ReportingService

    def checkout(self, cashier_name: str) -> CheckoutSession:
        session: PosSession = self.context.session_for(cashier_name)
        return CheckoutSession(self.catalog, self.sales, session)


def build_services(
    store,
    settings: Optional[PosSettings] = None,
    clock: Callable[[], datetime] = datetime.now,
    rng: Optional[random.Random] = None,
) -> AppContainer:
    settings = settings or PosSettings()
    rng = rng or random.Random()

    catalog = CatalogService(store, low_stock_threshold=settings.low_stock_threshold)
    stock = StockService(store, clock=clock)
    transfers = TransferService(store, clock=clock)
    sales = SalesService(
        store,
        tax_rate=settings.tax_rate,
        receipt_prefix=settings.receipt_prefix,
        clock=clock,
        rng=rng,
    )
    analytics = AnalyticsService(catalog, sales, settings=settings, clock=clock, rng=rng)
    stores = StoreService(store, clock=clock)

    return AppContainer(
        store=store,
        settings=settings,
        catalog=catalog,
        stock=stock,
        transfers=transfers,
        sales=sales,
        analytics=analytics,
        stores=stores,
        context=StoreContext(store, stores),
        cashiers=StaffService(store, "cashier", clock=clock),
        managers=StaffService(store, "manager", clock=clock),
        auth=AuthService(store),
        excel=ExcelService(catalog, stock),
        reporting=ReportingService(sales),
    )


def build_container(db_path: Path | str | None = None, settings: Optional[PosSettings] = None, seed: bool = True) -> AppContainer:
    if db_path is None:
        store = MemoryLedgerStore()
    else:
        store = SqliteLedgerStore(db_path)
        store.init_db()
    if seed:
        seed_defaults(store)
    return build_services(store, settings=settings)
