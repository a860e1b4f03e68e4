"""Order domain model — pure dataclass, no SQLAlchemy dependency."""
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal

from src.bourse_common.enums import OrderStatus, OrderType


@dataclass(frozen=True)
class Order:
    id: str
    product_id: str
    buyer_id: str
    quantity: int
    unit_price: Decimal  # dynamic price snapshotted at submission, never recomputed
    status: OrderStatus = OrderStatus.PENDING
    order_type: OrderType = OrderType.BUY_REQUEST
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise ValueError(f"quantity must be positive, got {self.quantity}")
        # rows come back from SQL as plain strings
        if not isinstance(self.status, OrderStatus):
            object.__setattr__(self, "status", OrderStatus(self.status))
        if not isinstance(self.order_type, OrderType):
            object.__setattr__(self, "order_type", OrderType(self.order_type))

    @property
    def total_amount(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def is_pending(self) -> bool:
        return self.status is OrderStatus.PENDING

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def with_status(self, status: OrderStatus, at: datetime) -> "Order":
        return replace(self, status=status, updated_at=at)
