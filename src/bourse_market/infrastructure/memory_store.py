"""InMemoryBourseStore — explicit, injectable state container.

Single-writer discipline: every mutation runs under one asyncio.Lock and
swaps immutable values into the dicts in a single synchronous step, so a
reader (which never awaits mid-read) cannot observe a half-applied
transition.
"""

import asyncio

from src.bourse_common.datetime_utils import utc_now
from src.bourse_common.enums import OrderStatus
from src.bourse_common.errors import ConfigurationError, OrderNotFoundError, ProductNotFoundError
from src.bourse_market.domain.models import MarketQuery, ProductMarketState
from src.bourse_market.domain.repository import (
    PlaceFn,
    StoreSnapshot,
    TransitionFn,
    UpdateStateFn,
)
from src.bourse_order.domain.models import Order


class InMemoryBourseStore:
    def __init__(self) -> None:
        self._states: dict[str, ProductMarketState] = {}
        self._orders: dict[str, Order] = {}
        self._write_lock = asyncio.Lock()

    # -- market states ------------------------------------------------------

    async def get_market_state(self, product_id: str) -> ProductMarketState | None:
        return self._states.get(product_id)

    async def list_market_states(
        self, query: MarketQuery | None = None
    ) -> list[ProductMarketState]:
        return (query or MarketQuery()).apply(list(self._states.values()))

    async def create_market_state(self, state: ProductMarketState) -> None:
        async with self._write_lock:
            if state.product_id in self._states:
                raise ConfigurationError(f"{state.product_id}: product already onboarded")
            self._states[state.product_id] = state

    async def update_market_state(
        self, product_id: str, apply: UpdateStateFn
    ) -> ProductMarketState:
        async with self._write_lock:
            current = self._states.get(product_id)
            if current is None:
                raise ProductNotFoundError(product_id)
            updated = apply(current)
            self._states[product_id] = updated
            return updated

    # -- orders ---------------------------------------------------------------

    async def get_order(self, order_id: str) -> Order | None:
        return self._orders.get(order_id)

    async def list_orders(
        self,
        status: OrderStatus | None = None,
        buyer_id: str | None = None,
        product_id: str | None = None,
    ) -> list[Order]:
        orders = [
            o
            for o in self._orders.values()
            if (status is None or o.status == status)
            and (buyer_id is None or o.buyer_id == buyer_id)
            and (product_id is None or o.product_id == product_id)
        ]
        # ids are time-ordered
        return sorted(orders, key=lambda o: o.id, reverse=True)

    async def insert_order(
        self, product_id: str, apply: PlaceFn
    ) -> tuple[Order, ProductMarketState]:
        async with self._write_lock:
            current = self._states.get(product_id)
            if current is None:
                raise ProductNotFoundError(product_id)
            order, new_state = apply(current)
            if order.id in self._orders:
                raise ConfigurationError(f"duplicate order id {order.id}")
            self._orders[order.id] = order
            self._states[product_id] = new_state
            return order, new_state

    async def transition_order(
        self, order_id: str, apply: TransitionFn
    ) -> tuple[Order, ProductMarketState]:
        async with self._write_lock:
            order = self._orders.get(order_id)
            if order is None:
                raise OrderNotFoundError(order_id)
            state = self._states.get(order.product_id)
            if state is None:
                raise ProductNotFoundError(order.product_id)
            new_order, new_state = apply(order, state)
            self._orders[order_id] = new_order
            self._states[order.product_id] = new_state
            return new_order, new_state

    # -- consistent read -------------------------------------------------------

    async def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(
            market_states=list(self._states.values()),
            orders=list(self._orders.values()),
            taken_at=utc_now(),
        )
