# src/bourse_order/application/engine.py
"""BourseEngine — the core's public surface, wired around one injectable store.

    engine = BourseEngine(InMemoryBourseStore())
    state = await engine.get_market_state("demo-1")
    order = await engine.place_order("demo-1", 5, "buyer-1", state.dynamic_price)
    await engine.set_order_status(order.id, OrderStatus.MATCHED, "operator-1")
    stats = await engine.get_stats()

HTTP routers use the process-wide instance from get_bourse_engine().
"""
from decimal import Decimal

from config.settings import settings
from src.bourse_common.database import get_session_factory
from src.bourse_common.enums import OrderStatus
from src.bourse_common.errors import ConfigurationError
from src.bourse_market.application.locks import ProductLocks
from src.bourse_market.application.service import MarketApplicationService
from src.bourse_market.domain.models import MarketQuery, ProductMarketState
from src.bourse_market.domain.repository import BourseStoreProtocol
from src.bourse_market.infrastructure.memory_store import InMemoryBourseStore
from src.bourse_market.infrastructure.notifier import (
    InProcessNotifier,
    MarketNotifierProtocol,
    NullNotifier,
    RedisNotifier,
)
from src.bourse_market.infrastructure.sql_store import SqlBourseStore
from src.bourse_order.application.ledger import DEFAULT_PRICE_TOLERANCE, OrderLedger
from src.bourse_order.domain.models import Order
from src.bourse_pricing.strategies import DemandStrategy, get_strategy
from src.bourse_stats.application.service import StatsAggregator
from src.bourse_stats.domain.models import BourseStats


class BourseEngine:
    def __init__(
        self,
        store: BourseStoreProtocol,
        strategy: DemandStrategy | None = None,
        notifier: MarketNotifierProtocol | None = None,
        price_tolerance: Decimal = DEFAULT_PRICE_TOLERANCE,
    ) -> None:
        locks = ProductLocks()
        self.store = store
        self.notifier: MarketNotifierProtocol = notifier or NullNotifier()
        self.market = MarketApplicationService(store, strategy, locks, self.notifier)
        self.ledger = OrderLedger(store, strategy, locks, self.notifier, price_tolerance)
        self.stats = StatsAggregator(store)

    async def get_market_state(self, product_id: str) -> ProductMarketState:
        return await self.market.get_market_state(product_id)

    async def list_market_states(
        self, query: MarketQuery | None = None
    ) -> list[ProductMarketState]:
        return await self.market.list_market_states(query)

    async def place_order(
        self, product_id: str, quantity: int, buyer_id: str, observed_price: Decimal
    ) -> Order:
        return await self.ledger.place_order(product_id, quantity, buyer_id, observed_price)

    async def set_order_status(
        self, order_id: str, new_status: OrderStatus | str, operator_id: str
    ) -> Order:
        return await self.ledger.set_order_status(order_id, new_status, operator_id)

    async def cancel_order(self, order_id: str, buyer_id: str) -> Order:
        return await self.ledger.cancel_order(order_id, buyer_id)

    async def list_orders(
        self,
        status: OrderStatus | None = None,
        buyer_id: str | None = None,
        product_id: str | None = None,
    ) -> list[Order]:
        return await self.ledger.list_orders(status, buyer_id, product_id)

    async def get_stats(self) -> BourseStats:
        return await self.stats.get_stats()


def build_store(backend: str) -> BourseStoreProtocol:
    if backend == "memory":
        return InMemoryBourseStore()
    if backend == "postgres":
        return SqlBourseStore(get_session_factory())
    raise ConfigurationError(f"unknown STORE_BACKEND: {backend}")


def build_notifier(backend: str) -> MarketNotifierProtocol:
    if backend == "memory":
        return InProcessNotifier()
    if backend == "redis":
        return RedisNotifier()
    if backend == "none":
        return NullNotifier()
    raise ConfigurationError(f"unknown NOTIFIER_BACKEND: {backend}")


def build_engine_from_settings() -> BourseEngine:
    return BourseEngine(
        store=build_store(settings.STORE_BACKEND),
        strategy=get_strategy(settings.PRICING_STRATEGY, settings.PRICING_SCALING),
        notifier=build_notifier(settings.NOTIFIER_BACKEND),
        price_tolerance=settings.PRICE_TOLERANCE,
    )


_engine: BourseEngine | None = None


def get_bourse_engine() -> BourseEngine:
    global _engine  # noqa: PLW0603
    if _engine is None:
        _engine = build_engine_from_settings()
    return _engine


def set_bourse_engine(engine: BourseEngine | None) -> None:
    """Swap the process-wide engine (tests inject one backed by a fresh store)."""
    global _engine  # noqa: PLW0603
    _engine = engine
