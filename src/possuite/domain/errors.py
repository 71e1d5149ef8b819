class AppError(Exception):
    """Base app error."""

    code = "error"


class ValidationError(AppError):
    code = "validation"


class NotFoundError(AppError):
    code = "not_found"


class StateError(AppError):
    code = "invalid_state"


class AuthorizationError(AppError):
    code = "unauthorized"


class NotRegistered(NotFoundError):
    code = "not_registered"


class ProductNotFound(NotFoundError):
    code = "product_not_found"


class OutOfStock(AppError):
    code = "out_of_stock"


class StockLimitExceeded(AppError):
    code = "stock_limit_exceeded"


class InsufficientStock(AppError):
    code = "insufficient_stock"


class InsufficientPayment(AppError):
    code = "insufficient_payment"


class EmptyCart(AppError):
    code = "empty_cart"
