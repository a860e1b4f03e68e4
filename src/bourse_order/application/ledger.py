# src/bourse_order/application/ledger.py
"""OrderLedger — the only writer of order status and of demand/stock counters.

Every mutation:
  1. takes the in-process product lock (keeps commit + notification ordered),
  2. calls one atomic store primitive with a pure transition function,
  3. publishes the committed market state.

Business-rule errors propagate unchanged; transient store failures are
retried with backoff and then surface as UnavailableError.
"""
import logging
from collections.abc import Callable
from decimal import Decimal
from functools import partial

from src.bourse_common.datetime_utils import utc_now
from src.bourse_common.enums import MarketEventType, OrderStatus
from src.bourse_common.errors import (
    AppError,
    ConfigurationError,
    InvalidTransitionError,
    OrderForbiddenError,
    OrderNotFoundError,
)
from src.bourse_common.id_generator import generate_id
from src.bourse_common.retry import with_store_retry
from src.bourse_market.application.locks import ProductLocks
from src.bourse_market.application.service import market_event
from src.bourse_market.domain.models import ProductMarketState
from src.bourse_market.domain.repository import BourseStoreProtocol
from src.bourse_market.infrastructure.notifier import (
    MarketEvent,
    MarketNotifierProtocol,
    NullNotifier,
)
from src.bourse_order.domain import transitions
from src.bourse_order.domain.models import Order
from src.bourse_pricing.strategies import DemandStrategy

logger = logging.getLogger(__name__)

DEFAULT_PRICE_TOLERANCE = Decimal("0.01")


def _order_event(order: Order) -> MarketEvent:
    return MarketEvent(
        type=MarketEventType.ORDER_UPDATE,
        product_id=order.product_id,
        payload={
            "order_id": order.id,
            "buyer_id": order.buyer_id,
            "status": order.status.value,
            "quantity": order.quantity,
            "unit_price": str(order.unit_price),
        },
    )


class OrderLedger:
    def __init__(
        self,
        store: BourseStoreProtocol,
        strategy: DemandStrategy | None = None,
        locks: ProductLocks | None = None,
        notifier: MarketNotifierProtocol | None = None,
        price_tolerance: Decimal = DEFAULT_PRICE_TOLERANCE,
        id_factory: Callable[[], str] = generate_id,
    ) -> None:
        self._store = store
        self._strategy = strategy
        self._locks = locks or ProductLocks()
        self._notifier: MarketNotifierProtocol = notifier or NullNotifier()
        self._price_tolerance = price_tolerance
        self._id_factory = id_factory

    async def place_order(
        self,
        product_id: str,
        quantity: int,
        buyer_id: str,
        observed_price: Decimal,
    ) -> Order:
        transitions.check_quantity(quantity)
        # id fixed before any retry so a replayed insert cannot create a second order
        order_id = self._id_factory()
        apply = partial(
            transitions.place,
            order_id=order_id,
            buyer_id=buyer_id,
            quantity=quantity,
            observed_price=observed_price,
            tolerance=self._price_tolerance,
            strategy=self._strategy,
            now=utc_now(),
        )
        attempts = 0

        async def insert() -> tuple[Order, ProductMarketState]:
            nonlocal attempts
            attempts += 1
            if attempts > 1:
                # an earlier attempt may have committed before its ack was lost
                committed = await self._store.get_order(order_id)
                if committed is not None:
                    return committed, await self._committed_state(product_id)
            return await self._store.insert_order(product_id, apply)

        async with self._locks.for_product(product_id):
            try:
                order, state = await with_store_retry(insert, name="place_order")
            except AppError as exc:
                logger.info(
                    "Order rejected: product=%s buyer=%s qty=%d code=%d %s",
                    product_id, buyer_id, quantity, exc.code, exc.message,
                )
                raise
            await self._publish(order, state)

        logger.info(
            "Order placed: %s product=%s buyer=%s qty=%d unit_price=%s demand=%d price=%s",
            order.id, product_id, buyer_id, quantity, order.unit_price,
            state.total_pro_demand, state.dynamic_price,
        )
        return order

    async def set_order_status(
        self, order_id: str, new_status: OrderStatus | str, operator_id: str
    ) -> Order:
        """Operator decision on a pending order: matched or cancelled."""
        order = await self._transition(order_id, new_status)
        logger.info(
            "Order %s by operator %s: %s product=%s qty=%d",
            order.status.value, operator_id, order.id, order.product_id, order.quantity,
        )
        return order

    async def cancel_order(self, order_id: str, buyer_id: str) -> Order:
        """Buyer withdraws their own pending order."""
        existing = await self.get_order(order_id)
        if existing.buyer_id != buyer_id:
            raise OrderForbiddenError(order_id)
        order = await self._transition(order_id, OrderStatus.CANCELLED)
        logger.info("Order cancelled by buyer %s: %s", buyer_id, order.id)
        return order

    async def get_order(self, order_id: str, buyer_id: str | None = None) -> Order:
        order = await with_store_retry(lambda: self._store.get_order(order_id), name="get_order")
        if order is None:
            raise OrderNotFoundError(order_id)
        if buyer_id is not None and order.buyer_id != buyer_id:
            raise OrderForbiddenError(order_id)
        return order

    async def list_orders(
        self,
        status: OrderStatus | None = None,
        buyer_id: str | None = None,
        product_id: str | None = None,
    ) -> list[Order]:
        return await with_store_retry(
            lambda: self._store.list_orders(status=status, buyer_id=buyer_id, product_id=product_id),
            name="list_orders",
        )

    # -- internals ------------------------------------------------------------

    async def _transition(self, order_id: str, new_status: OrderStatus | str) -> Order:
        current = await self.get_order(order_id)
        try:
            target = OrderStatus(new_status)
        except ValueError:
            raise InvalidTransitionError(order_id, current.status.value, str(new_status)) from None

        now = utc_now()
        apply = partial(transitions.transition, target=target, strategy=self._strategy, now=now)
        attempts = 0

        async def transition() -> tuple[Order, ProductMarketState]:
            nonlocal attempts
            attempts += 1
            if attempts > 1:
                committed = await self._store.get_order(order_id)
                if (
                    committed is not None
                    and committed.status is target
                    and committed.updated_at == now
                ):
                    return committed, await self._committed_state(current.product_id)
            return await self._store.transition_order(order_id, apply)

        async with self._locks.for_product(current.product_id):
            try:
                order, state = await with_store_retry(transition, name="set_order_status")
            except AppError as exc:
                logger.info(
                    "Transition rejected: order=%s target=%s code=%d %s",
                    order_id, target.value, exc.code, exc.message,
                )
                raise
            await self._publish(order, state)
        return order

    async def _committed_state(self, product_id: str) -> ProductMarketState:
        state = await self._store.get_market_state(product_id)
        if state is None:
            raise ConfigurationError(f"{product_id}: order committed without market state")
        return state

    async def _publish(self, order: Order, state: ProductMarketState) -> None:
        await self._notifier.publish(_order_event(order))
        await self._notifier.publish(market_event(state))
