"""Domain models for bourse_market — immutable values, invariants checked at construction."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from src.bourse_common.datetime_utils import utc_now
from src.bourse_common.enums import MarketSortKey
from src.bourse_common.errors import ConfigurationError

MIN_PRICE_RATIO = Decimal("0.7")
MAX_PRICE_RATIO = Decimal("1.3")


@dataclass(frozen=True)
class ProductMarketState:
    """Priced, stocked view of one tradable product.

    Instances are never mutated: every committed change produces a new value,
    so a reader holding a reference always sees one consistent
    (stock, demand, price) triple.
    """

    product_id: str
    product_name: str
    base_price: Decimal
    dynamic_price: Decimal
    stock_available: int
    total_pro_demand: int
    last_update_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        if not self.product_id:
            raise ConfigurationError("product_id is required")
        if not isinstance(self.base_price, Decimal) or not isinstance(self.dynamic_price, Decimal):
            raise ConfigurationError(f"{self.product_id}: prices must be Decimal")
        if self.base_price <= 0:
            raise ConfigurationError(f"{self.product_id}: base_price must be positive")
        if self.stock_available < 0:
            raise ConfigurationError(f"{self.product_id}: stock_available must be >= 0")
        if self.total_pro_demand < 0:
            raise ConfigurationError(f"{self.product_id}: total_pro_demand must be >= 0")
        if not (self.min_price <= self.dynamic_price <= self.max_price):
            raise ConfigurationError(
                f"{self.product_id}: dynamic_price {self.dynamic_price} outside "
                f"[{self.min_price}, {self.max_price}]"
            )

    @property
    def min_price(self) -> Decimal:
        return self.base_price * MIN_PRICE_RATIO

    @property
    def max_price(self) -> Decimal:
        return self.base_price * MAX_PRICE_RATIO

    @property
    def variation_percent(self) -> Decimal:
        return (self.dynamic_price - self.base_price) / self.base_price * 100

    @property
    def in_stock(self) -> bool:
        return self.stock_available > 0


@dataclass(frozen=True)
class MarketQuery:
    """Optional filter + sort for market listings."""

    in_stock_only: bool = False
    min_stock: int | None = None
    sort_by: MarketSortKey = MarketSortKey.PRODUCT_ID
    descending: bool = False

    def matches(self, state: ProductMarketState) -> bool:
        if self.in_stock_only and not state.in_stock:
            return False
        if self.min_stock is not None and state.stock_available < self.min_stock:
            return False
        return True

    def sort_key(self, state: ProductMarketState) -> object:
        return getattr(state, self.sort_by.value)

    def apply(self, states: list[ProductMarketState]) -> list[ProductMarketState]:
        selected = [s for s in states if self.matches(s)]
        # product_id as secondary key keeps listings deterministic
        selected.sort(key=lambda s: s.product_id)
        selected.sort(key=self.sort_key, reverse=self.descending)
        return selected
