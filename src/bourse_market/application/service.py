"""MarketApplicationService — market reads plus product onboarding.

Reads go straight to the store (values are immutable snapshots). Writes here
are limited to what happens outside the order flow: onboarding a product,
changing its base price, adding stock. Demand is never touched here.
"""

import logging
from decimal import Decimal

from src.bourse_common.decimals import CENT, quantize_price
from src.bourse_common.enums import MarketEventType
from src.bourse_common.errors import ConfigurationError, ProductNotFoundError
from src.bourse_common.retry import with_store_retry
from src.bourse_market.application.catalogue import DEMO_PRODUCTS
from src.bourse_market.application.locks import ProductLocks
from src.bourse_market.domain.models import MarketQuery, ProductMarketState
from src.bourse_market.domain.repository import BourseStoreProtocol, UpdateStateFn
from src.bourse_market.infrastructure.notifier import (
    MarketEvent,
    MarketNotifierProtocol,
    NullNotifier,
)
from src.bourse_pricing.engine import compute_price, reprice
from src.bourse_pricing.strategies import DemandStrategy

logger = logging.getLogger(__name__)


def market_event(state: ProductMarketState) -> MarketEvent:
    return MarketEvent(
        type=MarketEventType.PRICE_UPDATE,
        product_id=state.product_id,
        payload={
            "dynamic_price": str(state.dynamic_price),
            "variation_percent": str(state.variation_percent.quantize(CENT)),
            "stock_available": state.stock_available,
            "total_pro_demand": state.total_pro_demand,
        },
    )


class MarketApplicationService:
    def __init__(
        self,
        store: BourseStoreProtocol,
        strategy: DemandStrategy | None = None,
        locks: ProductLocks | None = None,
        notifier: MarketNotifierProtocol | None = None,
    ) -> None:
        self._store = store
        self._strategy = strategy
        self._locks = locks or ProductLocks()
        self._notifier: MarketNotifierProtocol = notifier or NullNotifier()

    async def get_market_state(self, product_id: str) -> ProductMarketState:
        state = await with_store_retry(
            lambda: self._store.get_market_state(product_id), name="get_market_state"
        )
        if state is None:
            raise ProductNotFoundError(product_id)
        return state

    async def list_market_states(
        self, query: MarketQuery | None = None
    ) -> list[ProductMarketState]:
        return await with_store_retry(
            lambda: self._store.list_market_states(query), name="list_market_states"
        )

    async def onboard_product(
        self,
        product_id: str,
        product_name: str,
        base_price: Decimal,
        stock_available: int,
    ) -> ProductMarketState:
        """Make a product tradable. Invalid configuration halts onboarding."""
        if base_price <= 0:
            raise ConfigurationError(f"{product_id}: base_price must be positive, got {base_price}")
        if stock_available < 0:
            raise ConfigurationError(f"{product_id}: stock_available must be >= 0")
        base = quantize_price(base_price)
        quote = compute_price(base, stock_available, 0, self._strategy)
        state = ProductMarketState(
            product_id=product_id,
            product_name=product_name,
            base_price=base,
            dynamic_price=quote.dynamic_price,
            stock_available=stock_available,
            total_pro_demand=0,
        )
        async with self._locks.for_product(product_id):
            await with_store_retry(
                lambda: self._store.create_market_state(state), name="onboard_product"
            )
            await self._notifier.publish(market_event(state))
        logger.info(
            "Product onboarded: %s base=%s stock=%d price=%s",
            product_id, base, stock_available, state.dynamic_price,
        )
        return state

    async def update_base_price(self, product_id: str, base_price: Decimal) -> ProductMarketState:
        """New base price: bounds and dynamic price are recomputed, counters kept."""
        if base_price <= 0:
            raise ConfigurationError(f"{product_id}: base_price must be positive, got {base_price}")
        base = quantize_price(base_price)
        return await self._update(
            product_id,
            lambda s: reprice(s, self._strategy, base_price=base),
            "update_base_price",
        )

    async def restock(self, product_id: str, quantity: int) -> ProductMarketState:
        """Add stock received from the producer. Stock only ever goes down through a match."""
        if quantity <= 0:
            raise ConfigurationError(f"{product_id}: restock quantity must be positive")
        return await self._update(
            product_id,
            lambda s: reprice(s, self._strategy, stock_available=s.stock_available + quantity),
            "restock",
        )

    async def seed_demo_catalogue(self) -> int:
        """Onboard the demo products if the store has no products yet."""
        existing = await self.list_market_states()
        if existing:
            return 0
        for product_id, name, base_price, stock in DEMO_PRODUCTS:
            await self.onboard_product(product_id, name, base_price, stock)
        logger.info("Demo catalogue seeded: %d products", len(DEMO_PRODUCTS))
        return len(DEMO_PRODUCTS)

    async def _update(
        self, product_id: str, apply: UpdateStateFn, name: str
    ) -> ProductMarketState:
        async with self._locks.for_product(product_id):
            state = await with_store_retry(
                lambda: self._store.update_market_state(product_id, apply), name=name
            )
            await self._notifier.publish(market_event(state))
        logger.info(
            "%s: %s base=%s stock=%d price=%s",
            name, product_id, state.base_price, state.stock_available, state.dynamic_price,
        )
        return state
