from .models import (
    AdminUser,
    CartItem,
    PosSession,
    Product,
    ReturnCheck,
    SaleItem,
    SaleRecord,
    StaffMember,
    StockLog,
    StockTransfer,
    Store,
)
from .errors import (
    AppError,
    AuthorizationError,
    EmptyCart,
    InsufficientPayment,
    InsufficientStock,
    NotFoundError,
    NotRegistered,
    OutOfStock,
    ProductNotFound,
    StateError,
    StockLimitExceeded,
    ValidationError,
)
from .results import OperationResult, returns_result

__all__ = [
    "AdminUser",
    "CartItem",
    "PosSession",
    "Product",
    "ReturnCheck",
    "SaleItem",
    "SaleRecord",
    "StaffMember",
    "StockLog",
    "StockTransfer",
    "Store",
    "AppError",
    "AuthorizationError",
    "EmptyCart",
    "InsufficientPayment",
    "InsufficientStock",
    "NotFoundError",
    "NotRegistered",
    "OutOfStock",
    "ProductNotFound",
    "StateError",
    "StockLimitExceeded",
    "ValidationError",
    "OperationResult",
    "returns_result",
]
