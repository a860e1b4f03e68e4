# tests/unit/test_pricing_engine.py
"""Unit tests for the pricing engine: bounds, monotonicity, stock-out pinning."""
from datetime import UTC, datetime
from decimal import Decimal

import pytest

from src.bourse_common.errors import ConfigurationError
from src.bourse_market.domain.models import ProductMarketState
from src.bourse_pricing.engine import (
    compute_price,
    price_bounds,
    reprice,
    storable_bounds,
    variation_percent,
)
from src.bourse_pricing.strategies import (
    LinearPressureStrategy,
    LogarithmicPressureStrategy,
    TensionBandStrategy,
)

BASE = Decimal("10.00")


class TestComputePrice:
    def test_zero_demand_prices_at_base(self) -> None:
        quote = compute_price(BASE, 100, 0)
        assert quote.dynamic_price == Decimal("10.00")
        assert quote.variation_percent == 0
        assert quote.pressure == 0

    def test_half_pressure_raises_price(self) -> None:
        quote = compute_price(BASE, 100, 50)
        assert quote.dynamic_price == Decimal("11.50")
        assert quote.variation_percent == Decimal("15")
        assert quote.demand_factor == Decimal("0.15")

    def test_price_capped_at_max(self) -> None:
        quote = compute_price(BASE, 10, 1_000)
        assert quote.dynamic_price == Decimal("13.00")
        assert quote.demand_factor == Decimal("0.30")

    def test_out_of_stock_pins_max_price(self) -> None:
        quote = compute_price(BASE, 0, 0)
        assert quote.dynamic_price == Decimal("13.00")
        assert quote.variation_percent == Decimal("30")

    def test_out_of_stock_with_demand_still_max(self) -> None:
        assert compute_price(BASE, 0, 40).dynamic_price == Decimal("13.00")

    def test_monotonic_in_demand(self) -> None:
        prices = [compute_price(BASE, 37, d).dynamic_price for d in range(0, 60)]
        assert prices == sorted(prices)

    @pytest.mark.parametrize("stock,demand", [(1, 0), (3, 7), (1000, 1), (9, 999_999)])
    def test_always_inside_bounds(self, stock: int, demand: int) -> None:
        low, high = price_bounds(BASE)
        for strategy in (
            LinearPressureStrategy(),
            LogarithmicPressureStrategy(),
            TensionBandStrategy(),
            LinearPressureStrategy(Decimal("50")),
        ):
            price = compute_price(BASE, stock, demand, strategy).dynamic_price
            assert low <= price <= high

    def test_non_positive_base_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            compute_price(Decimal("0"), 10, 0)

    def test_negative_counters_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            compute_price(BASE, -1, 0)
        with pytest.raises(ConfigurationError):
            compute_price(BASE, 1, -1)

    def test_price_quantized_to_four_places(self) -> None:
        quote = compute_price(Decimal("8.5000"), 3, 1)
        assert quote.dynamic_price == quote.dynamic_price.quantize(Decimal("0.0001"))

    def test_bounds_stay_storable_for_odd_base(self) -> None:
        base = Decimal("10.0005")
        pinned = compute_price(base, 0, 0).dynamic_price
        capped = compute_price(base, 10, 1_000).dynamic_price
        assert pinned == capped == Decimal("13.0006")
        assert pinned.as_tuple().exponent == -4
        assert pinned <= base * Decimal("1.3")


class TestHelpers:
    def test_price_bounds(self) -> None:
        assert price_bounds(Decimal("35.00")) == (Decimal("24.5"), Decimal("45.5"))

    def test_storable_bounds_round_inwards(self) -> None:
        assert storable_bounds(Decimal("10.0005")) == (Decimal("7.0004"), Decimal("13.0006"))
        assert storable_bounds(Decimal("35.00")) == (Decimal("24.5"), Decimal("45.5"))

    def test_variation_is_signed(self) -> None:
        assert variation_percent(Decimal("9"), BASE) == Decimal("-10")


class TestReprice:
    def _state(self) -> ProductMarketState:
        return ProductMarketState(
            product_id="P-1",
            product_name="Gelato CBD",
            base_price=BASE,
            dynamic_price=BASE,
            stock_available=100,
            total_pro_demand=0,
        )

    def test_returns_new_value(self) -> None:
        state = self._state()
        at = datetime(2026, 1, 1, tzinfo=UTC)
        updated = reprice(state, total_pro_demand=50, at=at)
        assert updated is not state
        assert state.total_pro_demand == 0
        assert updated.total_pro_demand == 50
        assert updated.dynamic_price == Decimal("11.50")
        assert updated.last_update_at == at

    def test_base_price_change_moves_bounds(self) -> None:
        updated = reprice(self._state(), base_price=Decimal("20.00"))
        assert updated.max_price == Decimal("26.000")
        assert updated.dynamic_price == Decimal("20.00")
