# tests/unit/test_sql_store.py
"""Unit tests for SqlBourseStore using a MagicMock session factory."""
from dataclasses import replace
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from src.bourse_common.enums import OrderStatus
from src.bourse_common.errors import (
    ConfigurationError,
    OrderNotFoundError,
    ProductNotFoundError,
    StoreUnavailableError,
)
from src.bourse_market.domain.models import MarketQuery, ProductMarketState
from src.bourse_market.infrastructure.sql_store import SqlBourseStore
from src.bourse_order.domain.models import Order


def _state_row(**kwargs: Any) -> MagicMock:
    row = MagicMock()
    row.product_id = kwargs.get("product_id", "P-1")
    row.product_name = kwargs.get("product_name", "Gelato CBD")
    row.base_price = kwargs.get("base_price", Decimal("10.0000"))
    row.dynamic_price = kwargs.get("dynamic_price", Decimal("10.0000"))
    row.stock_available = kwargs.get("stock_available", 100)
    row.total_pro_demand = kwargs.get("total_pro_demand", 0)
    row.last_update_at = kwargs.get("last_update_at", datetime.now(UTC))
    return row


def _order_row(**kwargs: Any) -> MagicMock:
    row = MagicMock()
    row.id = kwargs.get("id", "00000000000000000001")
    row.product_id = kwargs.get("product_id", "P-1")
    row.buyer_id = kwargs.get("buyer_id", "buyer-1")
    row.order_type = kwargs.get("order_type", "buy_request")
    row.quantity = kwargs.get("quantity", 5)
    row.unit_price = kwargs.get("unit_price", Decimal("10.0000"))
    row.status = kwargs.get("status", "pending")
    row.created_at = kwargs.get("created_at", datetime.now(UTC))
    row.updated_at = kwargs.get("updated_at", datetime.now(UTC))
    return row


def _result(one: Any = None, rows: list[Any] | None = None) -> MagicMock:
    result = MagicMock()
    result.fetchone.return_value = one
    result.fetchall.return_value = rows or []
    return result


def _store(*results: Any) -> tuple[SqlBourseStore, MagicMock]:
    """Store whose session returns `results` from successive execute() calls."""
    db = MagicMock()
    db.execute = AsyncMock(side_effect=list(results))
    db.connection = AsyncMock()
    db.begin.return_value.__aexit__.return_value = False
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = db
    factory.return_value.__aexit__.return_value = False
    return SqlBourseStore(factory), db


class TestReads:
    @pytest.mark.asyncio
    async def test_get_market_state_maps_row(self) -> None:
        store, _ = _store(_result(_state_row(total_pro_demand=3)))
        state = await store.get_market_state("P-1")
        assert state is not None
        assert state.total_pro_demand == 3
        assert state.base_price == Decimal("10.0000")

    @pytest.mark.asyncio
    async def test_get_market_state_missing(self) -> None:
        store, _ = _store(_result(None))
        assert await store.get_market_state("nope") is None

    @pytest.mark.asyncio
    async def test_list_orders_passes_enum_value(self) -> None:
        store, db = _store(_result(rows=[_order_row(status="matched")]))
        orders = await store.list_orders(status=OrderStatus.MATCHED, buyer_id="buyer-1")
        assert orders[0].status is OrderStatus.MATCHED
        params = db.execute.await_args.args[1]
        assert params == {"status": "matched", "buyer_id": "buyer-1", "product_id": None}

    @pytest.mark.asyncio
    async def test_in_stock_only_pushes_min_stock(self) -> None:
        store, db = _store(_result(rows=[_state_row()]))
        await store.list_market_states(MarketQuery(in_stock_only=True))
        assert db.execute.await_args.args[1] == {"min_stock": 1}

    @pytest.mark.asyncio
    async def test_snapshot_uses_repeatable_read(self) -> None:
        store, db = _store(_result(rows=[_state_row()]), _result(rows=[_order_row()]))
        snap = await store.snapshot()
        db.connection.assert_awaited_once_with(
            execution_options={"isolation_level": "REPEATABLE READ"}
        )
        assert len(snap.market_states) == 1
        assert len(snap.orders) == 1


class TestWrites:
    @pytest.mark.asyncio
    async def test_insert_order_locks_then_writes(self) -> None:
        store, db = _store(_result(_state_row()), _result(), _result())

        def apply(state):
            order = Order(
                id="00000000000000000009", product_id=state.product_id,
                buyer_id="buyer-1", quantity=4, unit_price=state.dynamic_price,
            )
            return order, replace(state, total_pro_demand=4)

        order, state = await store.insert_order("P-1", apply)
        assert order.quantity == 4
        assert state.total_pro_demand == 4
        assert db.execute.await_count == 3
        assert "FOR UPDATE" in str(db.execute.await_args_list[0].args[0])

    @pytest.mark.asyncio
    async def test_insert_order_unknown_product(self) -> None:
        store, db = _store(_result(None))
        with pytest.raises(ProductNotFoundError):
            await store.insert_order("nope", lambda s: (None, s))
        assert db.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_transition_unknown_order(self) -> None:
        store, _ = _store(_result(None))
        with pytest.raises(OrderNotFoundError):
            await store.transition_order("nope", lambda o, s: (o, s))

    @pytest.mark.asyncio
    async def test_transition_writes_order_and_state(self) -> None:
        store, db = _store(
            _result(_order_row(quantity=5)),
            _result(_state_row(total_pro_demand=5)),
            _result(),
            _result(),
        )

        def apply(order, state):
            return (
                replace(order, status=OrderStatus.CANCELLED),
                replace(state, total_pro_demand=0),
            )

        order, state = await store.transition_order("00000000000000000001", apply)
        assert order.status is OrderStatus.CANCELLED
        assert state.total_pro_demand == 0
        status_params = db.execute.await_args_list[2].args[1]
        assert status_params["status"] == "cancelled"

    @pytest.mark.asyncio
    async def test_create_duplicate_rejected(self) -> None:
        store, _ = _store(_result(_state_row()))
        state = ProductMarketState(
            product_id="P-1", product_name="Gelato CBD", base_price=Decimal("10"),
            dynamic_price=Decimal("10"), stock_available=1, total_pro_demand=0,
        )
        with pytest.raises(ConfigurationError):
            await store.create_market_state(state)


class TestErrorTranslation:
    @pytest.mark.asyncio
    async def test_operational_error_is_transient(self) -> None:
        store, _ = _store(OperationalError("SELECT", {}, Exception("connection reset")))
        with pytest.raises(StoreUnavailableError):
            await store.get_order("x")

    @pytest.mark.asyncio
    async def test_integrity_error_is_configuration(self) -> None:
        store, _ = _store(_result(_state_row()), IntegrityError("INSERT", {}, Exception("ck")))

        def apply(state):
            order = Order(
                id="1", product_id=state.product_id, buyer_id="b",
                quantity=1, unit_price=state.dynamic_price,
            )
            return order, state

        with pytest.raises(ConfigurationError):
            await store.insert_order("P-1", apply)
