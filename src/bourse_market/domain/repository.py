# src/bourse_market/domain/repository.py
"""Backing-store Protocol — what the core needs from whatever persists it.

The two mutating order primitives take a pure `apply` callback: the store
locks the rows, hands the current values to the ledger's transition logic and
persists whatever it returns in the same atomic unit. If `apply` raises,
nothing is written.

Unit tests inject InMemoryBourseStore; production uses SqlBourseStore.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from src.bourse_common.enums import OrderStatus
from src.bourse_market.domain.models import MarketQuery, ProductMarketState
from src.bourse_order.domain.models import Order

PlaceFn = Callable[[ProductMarketState], tuple[Order, ProductMarketState]]
TransitionFn = Callable[[Order, ProductMarketState], tuple[Order, ProductMarketState]]
UpdateStateFn = Callable[[ProductMarketState], ProductMarketState]


@dataclass(frozen=True)
class StoreSnapshot:
    """Market states and orders read at the same instant."""

    market_states: list[ProductMarketState]
    orders: list[Order]
    taken_at: datetime


class BourseStoreProtocol(Protocol):
    async def get_market_state(self, product_id: str) -> ProductMarketState | None: ...

    async def list_market_states(
        self, query: MarketQuery | None = None
    ) -> list[ProductMarketState]: ...

    async def create_market_state(self, state: ProductMarketState) -> None: ...

    async def update_market_state(
        self, product_id: str, apply: UpdateStateFn
    ) -> ProductMarketState: ...

    async def get_order(self, order_id: str) -> Order | None: ...

    async def list_orders(
        self,
        status: OrderStatus | None = None,
        buyer_id: str | None = None,
        product_id: str | None = None,
    ) -> list[Order]: ...

    async def insert_order(
        self, product_id: str, apply: PlaceFn
    ) -> tuple[Order, ProductMarketState]: ...

    async def transition_order(
        self, order_id: str, apply: TransitionFn
    ) -> tuple[Order, ProductMarketState]: ...

    async def snapshot(self) -> StoreSnapshot: ...
