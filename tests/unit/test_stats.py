# tests/unit/test_stats.py
"""Unit tests for stats aggregation over snapshots."""
from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.bourse_common.enums import OrderStatus
from src.bourse_market.domain.models import ProductMarketState
from src.bourse_market.domain.repository import StoreSnapshot
from src.bourse_order.domain.models import Order
from src.bourse_stats.application.schemas import BourseStatsResponse
from src.bourse_stats.application.service import StatsAggregator
from src.bourse_stats.domain.aggregation import (
    compute_stats,
    count_by_status,
    demand_invariant_violations,
    top_demand,
    top_variation,
)

NOW = datetime(2026, 5, 1, tzinfo=UTC)


def _state(product_id: str, demand: int = 0, price: str = "10.00") -> ProductMarketState:
    return ProductMarketState(
        product_id=product_id,
        product_name=f"Product {product_id}",
        base_price=Decimal("10.00"),
        dynamic_price=Decimal(price),
        stock_available=50,
        total_pro_demand=demand,
    )


def _order(order_id: str, status: OrderStatus, product_id: str = "A", qty: int = 1) -> Order:
    return Order(
        id=order_id, product_id=product_id, buyer_id="b", quantity=qty,
        unit_price=Decimal("10.00"), status=status,
    )


class TestCounts:
    def test_every_status_present(self) -> None:
        counts = count_by_status([])
        assert counts == {s: 0 for s in OrderStatus}

    def test_counts_sum_to_total(self) -> None:
        orders = (
            [_order(f"p{i}", OrderStatus.PENDING) for i in range(3)]
            + [_order(f"m{i}", OrderStatus.MATCHED) for i in range(2)]
            + [_order("c0", OrderStatus.CANCELLED)]
        )
        stats = compute_stats(StoreSnapshot([], orders, NOW))
        assert stats.total_orders == 6
        assert stats.pending_orders + stats.matched_orders + stats.cancelled_orders == 6
        assert stats.computed_at == NOW


class TestLeaders:
    def test_top_demand_ties_by_product_id(self) -> None:
        states = [_state("D", 5), _state("B", 9), _state("A", 5), _state("C", 5), _state("E", 0)]
        assert [d.product_id for d in top_demand(states)] == ["B", "A", "C"]

    def test_top_demand_skips_idle(self) -> None:
        assert top_demand([_state("A"), _state("B")]) == []

    def test_top_variation_by_magnitude_keeps_sign(self) -> None:
        states = [
            _state("A", price="10.50"),
            _state("B", price="8.00"),
            _state("C", price="12.00"),
            _state("D", price="10.00"),
        ]
        leaders = top_variation(states)
        assert [v.product_id for v in leaders] == ["B", "C", "A"]
        assert leaders[0].variation_percent == Decimal("-20")

    def test_top_variation_ties_by_product_id(self) -> None:
        states = [_state("Z", price="12.00"), _state("K", price="8.00")]
        assert [v.product_id for v in top_variation(states)] == ["K", "Z"]

    def test_fewer_products_than_n(self) -> None:
        assert len(top_demand([_state("A", 1)])) == 1


class TestInvariantCheck:
    def test_consistent_ledger(self) -> None:
        snap = StoreSnapshot(
            [_state("A", demand=3, price="10.18")],
            [_order("1", OrderStatus.PENDING, qty=3), _order("2", OrderStatus.MATCHED, qty=9)],
            NOW,
        )
        assert demand_invariant_violations(snap) == []

    def test_drift_reported(self) -> None:
        snap = StoreSnapshot([_state("A", demand=4)], [_order("1", OrderStatus.PENDING, qty=3)], NOW)
        violations = demand_invariant_violations(snap)
        assert len(violations) == 1
        assert "A" in violations[0]

    def test_orphan_pending_reported(self) -> None:
        snap = StoreSnapshot([], [_order("1", OrderStatus.PENDING, product_id="X")], NOW)
        assert demand_invariant_violations(snap) == ["X: 1 pending units for an unknown product"]


class TestStatsAggregator:
    @pytest.mark.asyncio
    async def test_reads_one_snapshot_per_call(self) -> None:
        store = MagicMock()
        store.snapshot = AsyncMock(return_value=StoreSnapshot([_state("A", 2)], [], NOW))
        aggregator = StatsAggregator(store)
        await aggregator.get_stats()
        await aggregator.get_stats()
        assert store.snapshot.await_count == 2

    @pytest.mark.asyncio
    async def test_verify_invariants(self) -> None:
        store = MagicMock()
        store.snapshot = AsyncMock(return_value=StoreSnapshot([_state("A", 2)], [], NOW))
        result = await StatsAggregator(store).verify_invariants()
        assert result["ok"] is False
        assert len(result["violations"]) == 1

    def test_response_schema(self) -> None:
        stats = compute_stats(
            StoreSnapshot([_state("A", 1, price="10.03")], [_order("1", OrderStatus.PENDING)], NOW)
        )
        resp = BourseStatsResponse.from_domain(stats).model_dump(mode="json")
        assert resp["total"] == 1
        assert resp["pending"] == 1
        assert resp["top_demand_products"][0]["product_id"] == "A"
        assert resp["top_variation_products"][0]["variation_percent"] == "0.3000"
