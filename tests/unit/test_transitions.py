# tests/unit/test_transitions.py
"""Unit tests for the order state machine (pure functions)."""
from datetime import UTC, datetime
from decimal import Decimal

import pytest

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
from src.bourse_order.domain import transitions
from src.bourse_order.domain.models import Order

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
TOLERANCE = Decimal("0.01")


def _state(stock: int = 100, demand: int = 0, price: str = "10.00") -> ProductMarketState:
    return ProductMarketState(
        product_id="P-1",
        product_name="Gelato CBD",
        base_price=Decimal("10.00"),
        dynamic_price=Decimal(price),
        stock_available=stock,
        total_pro_demand=demand,
    )


def _place(state: ProductMarketState, quantity: int = 50, observed: str | None = None):
    return transitions.place(
        state,
        order_id="0001",
        buyer_id="buyer-1",
        quantity=quantity,
        observed_price=Decimal(observed) if observed else state.dynamic_price,
        tolerance=TOLERANCE,
        strategy=None,
        now=NOW,
    )


def _pending(quantity: int = 5, status: OrderStatus = OrderStatus.PENDING) -> Order:
    return Order(
        id="0001", product_id="P-1", buyer_id="buyer-1", quantity=quantity,
        unit_price=Decimal("10.00"), status=status, created_at=NOW, updated_at=NOW,
    )


class TestPlace:
    def test_snapshots_price_and_adds_demand(self) -> None:
        order, state = _place(_state())
        assert order.unit_price == Decimal("10.00")
        assert order.status is OrderStatus.PENDING
        assert order.created_at == NOW
        assert state.total_pro_demand == 50
        assert state.dynamic_price == Decimal("11.50")
        assert state.stock_available == 100

    @pytest.mark.parametrize("quantity", [0, -4])
    def test_non_positive_quantity(self, quantity: int) -> None:
        with pytest.raises(InvalidQuantityError):
            _place(_state(), quantity=quantity)

    def test_out_of_stock(self) -> None:
        with pytest.raises(OutOfStockError):
            _place(_state(stock=0, price="13.00"))

    def test_observed_price_within_tolerance(self) -> None:
        order, _ = _place(_state(), observed="10.01")
        assert order.unit_price == Decimal("10.00")

    def test_stale_price_carries_current(self) -> None:
        with pytest.raises(PriceStaleError) as exc_info:
            _place(_state(), observed="9.50")
        assert exc_info.value.current_price == Decimal("10.00")
        assert exc_info.value.observed_price == Decimal("9.50")

    def test_quantity_may_exceed_stock(self) -> None:
        # demand is a request, not a reservation
        _, state = _place(_state(stock=3), quantity=10)
        assert state.total_pro_demand == 10
        assert state.dynamic_price == state.max_price


class TestTransition:
    def test_match_consumes_stock_and_demand(self) -> None:
        order, state = transitions.transition(
            _pending(5), _state(stock=20, demand=5, price="10.75"),
            target=OrderStatus.MATCHED, strategy=None, now=NOW,
        )
        assert order.status is OrderStatus.MATCHED
        assert order.updated_at == NOW
        assert state.stock_available == 15
        assert state.total_pro_demand == 0
        assert state.dynamic_price == Decimal("10.00")

    def test_cancel_releases_demand_only(self) -> None:
        order, state = transitions.transition(
            _pending(5), _state(stock=20, demand=8, price="11.20"),
            target=OrderStatus.CANCELLED, strategy=None, now=NOW,
        )
        assert order.status is OrderStatus.CANCELLED
        assert state.stock_available == 20
        assert state.total_pro_demand == 3

    def test_match_beyond_stock(self) -> None:
        with pytest.raises(InsufficientStockError):
            transitions.transition(
                _pending(5), _state(stock=0, demand=5, price="13.00"),
                target=OrderStatus.MATCHED, strategy=None, now=NOW,
            )

    @pytest.mark.parametrize("current", [OrderStatus.MATCHED, OrderStatus.CANCELLED])
    @pytest.mark.parametrize("target", list(OrderStatus))
    def test_terminal_states_absorb(self, current: OrderStatus, target: OrderStatus) -> None:
        with pytest.raises(InvalidTransitionError):
            transitions.transition(
                _pending(5, status=current), _state(demand=5, price="10.15"),
                target=target, strategy=None, now=NOW,
            )

    def test_pending_to_pending_rejected(self) -> None:
        with pytest.raises(InvalidTransitionError):
            transitions.transition(
                _pending(5), _state(demand=5, price="10.15"),
                target=OrderStatus.PENDING, strategy=None, now=NOW,
            )

    def test_demand_below_pending_quantity_is_corruption(self) -> None:
        with pytest.raises(ConfigurationError):
            transitions.transition(
                _pending(5), _state(demand=2),
                target=OrderStatus.CANCELLED, strategy=None, now=NOW,
            )
