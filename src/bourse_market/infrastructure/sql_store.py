"""SqlBourseStore — PostgreSQL implementation of BourseStoreProtocol.

All queries use raw text() SQL (no ORM).
asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.

Atomicity: each mutating primitive runs in one transaction and takes
SELECT ... FOR UPDATE row locks on the product (and order) before calling the
ledger's `apply`, so concurrent writers on the same product serialize even
across processes.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, InterfaceError, IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.bourse_common.datetime_utils import utc_now
from src.bourse_common.enums import OrderStatus
from src.bourse_common.errors import (
    ConfigurationError,
    OrderNotFoundError,
    ProductNotFoundError,
    StoreUnavailableError,
)
from src.bourse_market.domain.models import MarketQuery, ProductMarketState
from src.bourse_market.domain.repository import (
    PlaceFn,
    StoreSnapshot,
    TransitionFn,
    UpdateStateFn,
)
from src.bourse_order.domain.models import Order

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_STATE_COLUMNS = """
    product_id, product_name, base_price, dynamic_price,
    stock_available, total_pro_demand, last_update_at
"""

_ORDER_COLUMNS = """
    id, product_id, buyer_id, order_type, quantity, unit_price,
    status, created_at, updated_at
"""

_GET_STATE_SQL = text(f"""
    SELECT {_STATE_COLUMNS}
    FROM product_market_states
    WHERE product_id = :product_id
""")

_LOCK_STATE_SQL = text(f"""
    SELECT {_STATE_COLUMNS}
    FROM product_market_states
    WHERE product_id = :product_id
    FOR UPDATE
""")

_LIST_STATES_SQL = text(f"""
    SELECT {_STATE_COLUMNS}
    FROM product_market_states
    WHERE
        (CAST(:min_stock AS INTEGER) IS NULL OR stock_available >= CAST(:min_stock AS INTEGER))
    ORDER BY product_id
""")

_ALL_STATES_SQL = text(f"""
    SELECT {_STATE_COLUMNS}
    FROM product_market_states
    ORDER BY product_id
""")

_INSERT_STATE_SQL = text("""
    INSERT INTO product_market_states (product_id, product_name, base_price, dynamic_price,
        stock_available, total_pro_demand, last_update_at)
    VALUES (:product_id, :product_name, :base_price, :dynamic_price,
        :stock_available, :total_pro_demand, :last_update_at)
""")

_UPDATE_STATE_SQL = text("""
    UPDATE product_market_states
    SET base_price = :base_price,
        dynamic_price = :dynamic_price,
        stock_available = :stock_available,
        total_pro_demand = :total_pro_demand,
        last_update_at = :last_update_at
    WHERE product_id = :product_id
""")

_GET_ORDER_SQL = text(f"""
    SELECT {_ORDER_COLUMNS}
    FROM pro_orders WHERE id = :id
""")

_LOCK_ORDER_SQL = text(f"""
    SELECT {_ORDER_COLUMNS}
    FROM pro_orders WHERE id = :id
    FOR UPDATE
""")

_LIST_ORDERS_SQL = text(f"""
    SELECT {_ORDER_COLUMNS}
    FROM pro_orders
    WHERE (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
      AND (CAST(:buyer_id AS TEXT) IS NULL OR buyer_id = CAST(:buyer_id AS TEXT))
      AND (CAST(:product_id AS TEXT) IS NULL OR product_id = CAST(:product_id AS TEXT))
    ORDER BY id DESC
""")

_ALL_ORDERS_SQL = text(f"""
    SELECT {_ORDER_COLUMNS}
    FROM pro_orders
    ORDER BY id DESC
""")

_INSERT_ORDER_SQL = text("""
    INSERT INTO pro_orders (id, product_id, buyer_id, order_type, quantity, unit_price,
        status, created_at, updated_at)
    VALUES (:id, :product_id, :buyer_id, :order_type, :quantity, :unit_price,
        :status, :created_at, :updated_at)
""")

_UPDATE_ORDER_STATUS_SQL = text("""
    UPDATE pro_orders
    SET status = :status, updated_at = :updated_at
    WHERE id = :id
""")


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------

def _row_to_state(row: Any) -> ProductMarketState:
    return ProductMarketState(
        product_id=row.product_id,
        product_name=row.product_name,
        base_price=row.base_price,
        dynamic_price=row.dynamic_price,
        stock_available=row.stock_available,
        total_pro_demand=row.total_pro_demand,
        last_update_at=row.last_update_at,
    )


def _row_to_order(row: Any) -> Order:
    return Order(
        id=row.id,
        product_id=row.product_id,
        buyer_id=row.buyer_id,
        order_type=row.order_type,
        quantity=row.quantity,
        unit_price=row.unit_price,
        status=row.status,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _state_params(state: ProductMarketState) -> dict[str, Any]:
    return {
        "product_id": state.product_id,
        "product_name": state.product_name,
        "base_price": state.base_price,
        "dynamic_price": state.dynamic_price,
        "stock_available": state.stock_available,
        "total_pro_demand": state.total_pro_demand,
        "last_update_at": state.last_update_at,
    }


def _order_params(order: Order) -> dict[str, Any]:
    return {
        "id": order.id,
        "product_id": order.product_id,
        "buyer_id": order.buyer_id,
        "order_type": order.order_type.value,
        "quantity": order.quantity,
        "unit_price": order.unit_price,
        "status": order.status.value,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }


def _is_transient(exc: DBAPIError) -> bool:
    return isinstance(exc, (OperationalError, InterfaceError)) or exc.connection_invalidated


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class SqlBourseStore:
    """Concrete store over an async_sessionmaker; one session per primitive."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        """Open a session and translate connection-level failures to StoreUnavailableError."""
        try:
            async with self._session_factory() as db:
                yield db
        except IntegrityError as exc:
            raise ConfigurationError(f"constraint violated: {exc.orig}") from exc
        except DBAPIError as exc:
            if _is_transient(exc):
                raise StoreUnavailableError(str(exc)) from exc
            raise

    # -- market states ------------------------------------------------------

    async def get_market_state(self, product_id: str) -> ProductMarketState | None:
        async with self._session() as db:
            row = (await db.execute(_GET_STATE_SQL, {"product_id": product_id})).fetchone()
            return _row_to_state(row) if row else None

    async def list_market_states(
        self, query: MarketQuery | None = None
    ) -> list[ProductMarketState]:
        query = query or MarketQuery()
        min_stock = query.min_stock
        if query.in_stock_only:
            min_stock = max(min_stock or 0, 1)
        async with self._session() as db:
            rows = (await db.execute(_LIST_STATES_SQL, {"min_stock": min_stock})).fetchall()
        return query.apply([_row_to_state(r) for r in rows])

    async def create_market_state(self, state: ProductMarketState) -> None:
        async with self._session() as db, db.begin():
            existing = (
                await db.execute(_GET_STATE_SQL, {"product_id": state.product_id})
            ).fetchone()
            if existing is not None:
                raise ConfigurationError(f"{state.product_id}: product already onboarded")
            await db.execute(_INSERT_STATE_SQL, _state_params(state))

    async def update_market_state(
        self, product_id: str, apply: UpdateStateFn
    ) -> ProductMarketState:
        async with self._session() as db, db.begin():
            row = (await db.execute(_LOCK_STATE_SQL, {"product_id": product_id})).fetchone()
            if row is None:
                raise ProductNotFoundError(product_id)
            updated = apply(_row_to_state(row))
            await db.execute(_UPDATE_STATE_SQL, _state_params(updated))
            return updated

    # -- orders ---------------------------------------------------------------

    async def get_order(self, order_id: str) -> Order | None:
        async with self._session() as db:
            row = (await db.execute(_GET_ORDER_SQL, {"id": order_id})).fetchone()
            return _row_to_order(row) if row else None

    async def list_orders(
        self,
        status: OrderStatus | None = None,
        buyer_id: str | None = None,
        product_id: str | None = None,
    ) -> list[Order]:
        async with self._session() as db:
            rows = (
                await db.execute(
                    _LIST_ORDERS_SQL,
                    {
                        "status": status.value if status else None,
                        "buyer_id": buyer_id,
                        "product_id": product_id,
                    },
                )
            ).fetchall()
        return [_row_to_order(r) for r in rows]

    async def insert_order(
        self, product_id: str, apply: PlaceFn
    ) -> tuple[Order, ProductMarketState]:
        async with self._session() as db, db.begin():
            row = (await db.execute(_LOCK_STATE_SQL, {"product_id": product_id})).fetchone()
            if row is None:
                raise ProductNotFoundError(product_id)
            order, new_state = apply(_row_to_state(row))
            await db.execute(_INSERT_ORDER_SQL, _order_params(order))
            await db.execute(_UPDATE_STATE_SQL, _state_params(new_state))
            return order, new_state

    async def transition_order(
        self, order_id: str, apply: TransitionFn
    ) -> tuple[Order, ProductMarketState]:
        async with self._session() as db, db.begin():
            # lock order: order row first, then its product row
            order_row = (await db.execute(_LOCK_ORDER_SQL, {"id": order_id})).fetchone()
            if order_row is None:
                raise OrderNotFoundError(order_id)
            order = _row_to_order(order_row)
            state_row = (
                await db.execute(_LOCK_STATE_SQL, {"product_id": order.product_id})
            ).fetchone()
            if state_row is None:
                raise ProductNotFoundError(order.product_id)
            new_order, new_state = apply(order, _row_to_state(state_row))
            await db.execute(
                _UPDATE_ORDER_STATUS_SQL,
                {
                    "id": new_order.id,
                    "status": new_order.status.value,
                    "updated_at": new_order.updated_at,
                },
            )
            await db.execute(_UPDATE_STATE_SQL, _state_params(new_state))
            return new_order, new_state

    # -- consistent read -------------------------------------------------------

    async def snapshot(self) -> StoreSnapshot:
        async with self._session() as db:
            # both reads see the same MVCC snapshot
            await db.connection(execution_options={"isolation_level": "REPEATABLE READ"})
            state_rows = (await db.execute(_ALL_STATES_SQL)).fetchall()
            order_rows = (await db.execute(_ALL_ORDERS_SQL)).fetchall()
            taken_at = utc_now()
        logger.debug("snapshot: %d states, %d orders", len(state_rows), len(order_rows))
        return StoreSnapshot(
            market_states=[_row_to_state(r) for r in state_rows],
            orders=[_row_to_order(r) for r in order_rows],
            taken_at=taken_at,
        )
