"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Caller identity
  3xxx: Product / market state
  4xxx: Order
  9xxx: System

Business-rule errors are final for the request that raised them; only
UnavailableError is worth retrying.
"""

from decimal import Decimal


class AppError(Exception):
    """Base application error."""

    retryable: bool = False

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Caller identity ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Invalid or expired token", 401)


class OperatorRequiredError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Operator role required", 403)


# --- 3xxx: Product / market state ---

class ProductNotFoundError(AppError):
    def __init__(self, product_id: str) -> None:
        super().__init__(3001, f"Product not found: {product_id}", 404)


class ConfigurationError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3002, f"Invalid product configuration: {detail}", 500)


class OutOfStockError(AppError):
    def __init__(self, product_id: str) -> None:
        super().__init__(3003, f"Product is out of stock: {product_id}", 422)


# --- 4xxx: Order ---

class InvalidQuantityError(AppError):
    def __init__(self, quantity: int) -> None:
        super().__init__(4001, f"Quantity must be positive, got {quantity}", 422)


class PriceStaleError(AppError):
    def __init__(self, observed: Decimal, current: Decimal) -> None:
        self.observed_price = observed
        self.current_price = current
        super().__init__(
            4002,
            f"Price changed: observed {observed}, current {current}",
            409,
        )


class OrderNotFoundError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(4004, f"Order not found: {order_id}", 404)


class InvalidTransitionError(AppError):
    def __init__(self, order_id: str, current: str, target: str) -> None:
        super().__init__(
            4005, f"Order {order_id} cannot move from {current} to {target}", 422
        )


class InsufficientStockError(AppError):
    def __init__(self, product_id: str, required: int, available: int) -> None:
        super().__init__(
            4006,
            f"Insufficient stock for {product_id}: required {required}, available {available}",
            409,
        )


class OrderForbiddenError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(4007, f"Order {order_id} belongs to another buyer", 403)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class UnavailableError(AppError):
    retryable = True

    def __init__(self, detail: str = "Backing store unavailable") -> None:
        super().__init__(9003, detail, 503)


class StoreUnavailableError(Exception):
    """Raised by store adapters for transient backend failures (connection lost, etc.)."""
