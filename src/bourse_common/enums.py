"""Global enums — must match DB CHECK constraints exactly (see alembic/versions)."""

from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    MATCHED = "matched"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not OrderStatus.PENDING


class OrderType(str, Enum):
    """Only one kind of B2B order exists: a purchase request."""
    BUY_REQUEST = "buy_request"


class CallerRole(str, Enum):
    BUYER = "buyer"
    OPERATOR = "operator"


class MarketSortKey(str, Enum):
    PRODUCT_ID = "product_id"
    DYNAMIC_PRICE = "dynamic_price"
    VARIATION_PERCENT = "variation_percent"
    TOTAL_PRO_DEMAND = "total_pro_demand"


class MarketEventType(str, Enum):
    PRICE_UPDATE = "price_update"
    ORDER_UPDATE = "order_update"
