"""Stats read models — plain dataclasses, recomputed on every request."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class DemandLeader:
    product_id: str
    product_name: str
    total_demand: int


@dataclass(frozen=True)
class VariationLeader:
    product_id: str
    product_name: str
    variation_percent: Decimal  # signed


@dataclass(frozen=True)
class BourseStats:
    total_orders: int
    pending_orders: int
    matched_orders: int
    cancelled_orders: int
    top_demand_products: list[DemandLeader] = field(default_factory=list)
    top_variation_products: list[VariationLeader] = field(default_factory=list)
    computed_at: datetime | None = None
