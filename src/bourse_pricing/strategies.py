"""Demand strategies: map demand pressure (demand / stock) to a price factor.

Every strategy must be monotonic non-decreasing in pressure. The engine clamps
whatever a strategy returns to [-MAX_FACTOR, +MAX_FACTOR], so a strategy may
overshoot without breaking the price bounds.
"""

from decimal import Decimal
from typing import Protocol

from src.bourse_common.errors import ConfigurationError

MAX_FACTOR = Decimal("0.30")


class DemandStrategy(Protocol):
    name: str

    def factor(self, pressure: Decimal) -> Decimal: ...


class LinearPressureStrategy:
    """factor = pressure * scaling. Zero demand prices at base."""

    name = "linear"

    def __init__(self, scaling: Decimal = Decimal("0.30")) -> None:
        if scaling <= 0:
            raise ConfigurationError(f"pricing scaling must be positive, got {scaling}")
        self.scaling = scaling

    def factor(self, pressure: Decimal) -> Decimal:
        return pressure * self.scaling


class LogarithmicPressureStrategy:
    """factor = scaling * ln(1 + pressure). Reacts fast to the first orders, then flattens."""

    name = "log"

    def __init__(self, scaling: Decimal = Decimal("0.30")) -> None:
        if scaling <= 0:
            raise ConfigurationError(f"pricing scaling must be positive, got {scaling}")
        self.scaling = scaling

    def factor(self, pressure: Decimal) -> Decimal:
        return self.scaling * (Decimal(1) + pressure).ln()


class TensionBandStrategy:
    """Piecewise bands on the demand/stock ratio.

    ratio <= 0.2  ->  -30% .. -15%
    ratio <= 1    ->  -15% ..   0%
    ratio <= 2    ->    0% .. +15%
    ratio >  2    ->  +15% .. +30% (saturates at ratio 4)

    Idle products trade below base price with this strategy.
    """

    name = "bands"

    def factor(self, pressure: Decimal) -> Decimal:
        r = pressure
        if r <= Decimal("0.2"):
            percent = Decimal(-30) + (r / Decimal("0.2")) * 15
        elif r <= 1:
            percent = Decimal(-15) + ((r - Decimal("0.2")) / Decimal("0.8")) * 15
        elif r <= 2:
            percent = (r - 1) * 15
        else:
            percent = Decimal(15) + min((r - 2) / 2, Decimal(1)) * 15
        return percent / 100


def get_strategy(name: str, scaling: Decimal = Decimal("0.30")) -> DemandStrategy:
    """Build a strategy from its configured name."""
    if name == LinearPressureStrategy.name:
        return LinearPressureStrategy(scaling)
    if name == LogarithmicPressureStrategy.name:
        return LogarithmicPressureStrategy(scaling)
    if name == TensionBandStrategy.name:
        return TensionBandStrategy()
    raise ConfigurationError(f"unknown pricing strategy: {name}")
