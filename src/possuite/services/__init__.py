from .catalog_service import CatalogService
from .stock_service import StockService
from .transfer_service import TransferService
from .sales_service import SalesService
from .checkout_service import CheckoutSession, SaleState
from .analytics_service import AnalyticsService
from .store_service import StoreContext, StoreService
from .staff_service import StaffService
from .auth_service import AuthService
from .excel_service import ExcelService
from .reporting_service import ReportingService

__all__ = [
    "CatalogService",
    "StockService",
    "TransferService",
    "SalesService",
    "CheckoutSession",
    "SaleState",
    "AnalyticsService",
    "StoreContext",
    "StoreService",
    "StaffService",
    "AuthService",
    "ExcelService",
    "ReportingService",
]
