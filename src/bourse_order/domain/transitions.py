"""Order state machine — pure functions, no I/O.

    pending --match--> matched     (stock -= qty, demand -= qty)
    pending --cancel-> cancelled   (demand -= qty)

matched and cancelled are absorbing. Each function returns the new order and
the new market state; the store commits both or neither.
"""
from datetime import datetime
from decimal import Decimal

from src.bourse_common.enums import OrderStatus
from src.bourse_common.errors import (
    ConfigurationError,
    InsufficientStockError,
    InvalidQuantityError,
    InvalidTransitionError,
    OutOfStockError,
    PriceStaleError,
)
from src.bourse_market.domain.models import ProductMarketState
from src.bourse_order.domain.models import Order
from src.bourse_pricing.engine import reprice
from src.bourse_pricing.strategies import DemandStrategy

TERMINAL_TARGETS = (OrderStatus.MATCHED, OrderStatus.CANCELLED)


def check_quantity(quantity: int) -> None:
    if quantity <= 0:
        raise InvalidQuantityError(quantity)


def place(
    state: ProductMarketState,
    *,
    order_id: str,
    buyer_id: str,
    quantity: int,
    observed_price: Decimal,
    tolerance: Decimal,
    strategy: DemandStrategy | None,
    now: datetime,
) -> tuple[Order, ProductMarketState]:
    """New pending order at the current price; demand grows by its quantity."""
    check_quantity(quantity)
    if state.stock_available <= 0:
        raise OutOfStockError(state.product_id)
    if abs(observed_price - state.dynamic_price) > tolerance:
        raise PriceStaleError(observed_price, state.dynamic_price)

    order = Order(
        id=order_id,
        product_id=state.product_id,
        buyer_id=buyer_id,
        quantity=quantity,
        unit_price=state.dynamic_price,
        status=OrderStatus.PENDING,
        created_at=now,
        updated_at=now,
    )
    new_state = reprice(
        state, strategy, total_pro_demand=state.total_pro_demand + quantity, at=now
    )
    return order, new_state


def transition(
    order: Order,
    state: ProductMarketState,
    *,
    target: OrderStatus,
    strategy: DemandStrategy | None,
    now: datetime,
) -> tuple[Order, ProductMarketState]:
    """Apply a terminal transition to a pending order and release its demand."""
    if not order.is_pending or target not in TERMINAL_TARGETS:
        raise InvalidTransitionError(order.id, order.status.value, target.value)

    # a pending order's quantity is always inside total_pro_demand
    demand = state.total_pro_demand - order.quantity
    if demand < 0:
        raise ConfigurationError(
            f"{state.product_id}: demand {state.total_pro_demand} below pending order {order.id}"
        )

    if target is OrderStatus.MATCHED:
        if order.quantity > state.stock_available:
            raise InsufficientStockError(state.product_id, order.quantity, state.stock_available)
        new_state = reprice(
            state,
            strategy,
            stock_available=state.stock_available - order.quantity,
            total_pro_demand=demand,
            at=now,
        )
    else:
        new_state = reprice(state, strategy, total_pro_demand=demand, at=now)

    return order.with_status(target, now), new_state
