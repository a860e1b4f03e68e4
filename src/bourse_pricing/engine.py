"""Pricing engine — pure function from (base price, stock, demand) to a quote.

    pressure      = demand / max(stock, 1)
    demand_factor = clamp(strategy(pressure), -0.30, +0.30)
    dynamic_price = clamp(base * (1 + demand_factor), 0.7 * base, 1.3 * base)
    variation     = (dynamic_price - base) / base * 100

Out-of-stock products are pinned at the max price.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import ROUND_CEILING, ROUND_FLOOR, Decimal

from src.bourse_common.datetime_utils import utc_now
from src.bourse_common.decimals import clamp, quantize_price
from src.bourse_common.errors import ConfigurationError
from src.bourse_market.domain.models import MAX_PRICE_RATIO, MIN_PRICE_RATIO, ProductMarketState
from src.bourse_pricing.strategies import MAX_FACTOR, DemandStrategy, LinearPressureStrategy

_DEFAULT_STRATEGY = LinearPressureStrategy()


@dataclass(frozen=True)
class PriceQuote:
    dynamic_price: Decimal
    variation_percent: Decimal
    demand_factor: Decimal
    pressure: Decimal


def price_bounds(base_price: Decimal) -> tuple[Decimal, Decimal]:
    """(min_price, max_price) for a base price."""
    return base_price * MIN_PRICE_RATIO, base_price * MAX_PRICE_RATIO


def storable_bounds(base_price: Decimal) -> tuple[Decimal, Decimal]:
    """Price bounds at storage precision, rounded inwards so both stay within the ratios."""
    min_price, max_price = price_bounds(base_price)
    return quantize_price(min_price, ROUND_CEILING), quantize_price(max_price, ROUND_FLOOR)


def variation_percent(dynamic_price: Decimal, base_price: Decimal) -> Decimal:
    return (dynamic_price - base_price) / base_price * 100


def compute_price(
    base_price: Decimal,
    stock_available: int,
    total_pro_demand: int,
    strategy: DemandStrategy | None = None,
) -> PriceQuote:
    if base_price <= 0:
        raise ConfigurationError(f"base_price must be positive, got {base_price}")
    if stock_available < 0 or total_pro_demand < 0:
        raise ConfigurationError(
            f"negative counters: stock={stock_available}, demand={total_pro_demand}"
        )

    min_price, max_price = storable_bounds(base_price)

    if stock_available == 0:
        return PriceQuote(
            dynamic_price=max_price,
            variation_percent=variation_percent(max_price, base_price),
            demand_factor=MAX_FACTOR,
            pressure=Decimal(total_pro_demand),
        )

    pressure = Decimal(total_pro_demand) / Decimal(max(stock_available, 1))
    factor = clamp((strategy or _DEFAULT_STRATEGY).factor(pressure), -MAX_FACTOR, MAX_FACTOR)
    # second clamp guards against rounding pushing the quantized price past a bound
    price = clamp(quantize_price(base_price * (1 + factor)), min_price, max_price)
    return PriceQuote(
        dynamic_price=price,
        variation_percent=variation_percent(price, base_price),
        demand_factor=factor,
        pressure=pressure,
    )


def reprice(
    state: ProductMarketState,
    strategy: DemandStrategy | None = None,
    *,
    base_price: Decimal | None = None,
    stock_available: int | None = None,
    total_pro_demand: int | None = None,
    at: datetime | None = None,
) -> ProductMarketState:
    """Return a new state with the given counters changed and the price recomputed."""
    base = state.base_price if base_price is None else base_price
    stock = state.stock_available if stock_available is None else stock_available
    demand = state.total_pro_demand if total_pro_demand is None else total_pro_demand
    quote = compute_price(base, stock, demand, strategy)
    return replace(
        state,
        base_price=base,
        stock_available=stock,
        total_pro_demand=demand,
        dynamic_price=quote.dynamic_price,
        last_update_at=at or utc_now(),
    )
