# src/bourse_order/application/schemas.py
from decimal import Decimal

from pydantic import BaseModel, Field

from src.bourse_common.datetime_utils import iso_or_none
from src.bourse_common.decimals import price_to_display
from src.bourse_common.enums import OrderStatus
from src.bourse_order.domain.models import Order


class PlaceOrderRequest(BaseModel):
    product_id: str = Field(..., min_length=1, max_length=64)
    quantity: int = Field(..., gt=0)
    # the dynamic price the buyer saw; rejected with PriceStale if it moved
    observed_price: Decimal = Field(..., gt=0)


class SetOrderStatusRequest(BaseModel):
    status: OrderStatus


class OrderResponse(BaseModel):
    id: str
    product_id: str
    buyer_id: str
    order_type: str
    quantity: int
    unit_price: Decimal
    total_amount: Decimal
    total_amount_display: str
    status: OrderStatus
    created_at: str | None
    updated_at: str | None

    @classmethod
    def from_domain(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,
            product_id=order.product_id,
            buyer_id=order.buyer_id,
            order_type=order.order_type.value,
            quantity=order.quantity,
            unit_price=order.unit_price,
            total_amount=order.total_amount,
            total_amount_display=price_to_display(order.total_amount),
            status=order.status,
            created_at=iso_or_none(order.created_at),
            updated_at=iso_or_none(order.updated_at),
        )


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
    count: int
