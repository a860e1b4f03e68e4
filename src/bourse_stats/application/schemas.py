from decimal import Decimal

from pydantic import BaseModel

from src.bourse_common.datetime_utils import iso_or_none
from src.bourse_common.decimals import STORAGE_QUANTUM
from src.bourse_stats.domain.models import BourseStats


class DemandLeaderOut(BaseModel):
    product_id: str
    product_name: str
    total_demand: int


class VariationLeaderOut(BaseModel):
    product_id: str
    product_name: str
    variation_percent: Decimal


class BourseStatsResponse(BaseModel):
    total: int
    pending: int
    matched: int
    cancelled: int
    top_demand_products: list[DemandLeaderOut]
    top_variation_products: list[VariationLeaderOut]
    computed_at: str | None

    @classmethod
    def from_domain(cls, stats: BourseStats) -> "BourseStatsResponse":
        return cls(
            total=stats.total_orders,
            pending=stats.pending_orders,
            matched=stats.matched_orders,
            cancelled=stats.cancelled_orders,
            top_demand_products=[
                DemandLeaderOut(
                    product_id=d.product_id,
                    product_name=d.product_name,
                    total_demand=d.total_demand,
                )
                for d in stats.top_demand_products
            ],
            top_variation_products=[
                VariationLeaderOut(
                    product_id=v.product_id,
                    product_name=v.product_name,
                    variation_percent=v.variation_percent.quantize(STORAGE_QUANTUM),
                )
                for v in stats.top_variation_products
            ],
            computed_at=iso_or_none(stats.computed_at),
        )
