"""Pydantic schemas for bourse_market API requests and responses.

Decimals are emitted as JSON strings (routers dump with mode="json"), so no
price ever round-trips through a float.
"""

from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from src.bourse_common.datetime_utils import iso_or_none
from src.bourse_common.decimals import (
    STORAGE_QUANTUM,
    percent_to_display,
    price_to_display,
)
from src.bourse_market.domain.models import ProductMarketState


class MarketStateOut(BaseModel):
    product_id: str
    product_name: str
    base_price: Decimal
    min_price: Decimal
    max_price: Decimal
    dynamic_price: Decimal
    dynamic_price_display: str
    variation_percent: Decimal
    variation_display: str
    stock_available: int
    total_pro_demand: int
    in_stock: bool
    last_update_at: str | None

    @classmethod
    def from_domain(cls, s: ProductMarketState) -> "MarketStateOut":
        return cls(
            product_id=s.product_id,
            product_name=s.product_name,
            base_price=s.base_price,
            min_price=s.min_price,
            max_price=s.max_price,
            dynamic_price=s.dynamic_price,
            dynamic_price_display=price_to_display(s.dynamic_price),
            variation_percent=s.variation_percent.quantize(STORAGE_QUANTUM),
            variation_display=percent_to_display(s.variation_percent),
            stock_available=s.stock_available,
            total_pro_demand=s.total_pro_demand,
            in_stock=s.in_stock,
            last_update_at=iso_or_none(s.last_update_at),
        )


class MarketListResponse(BaseModel):
    items: list[MarketStateOut]
    count: int


# ---------------------------------------------------------------------------
# Admin product management
# ---------------------------------------------------------------------------


class OnboardProductRequest(BaseModel):
    product_id: str = Field(..., min_length=1, max_length=64)
    product_name: str = Field(..., min_length=1, max_length=200)
    base_price: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    stock_available: int = Field(..., ge=0)


class UpdateProductRequest(BaseModel):
    base_price: Decimal | None = Field(None, gt=0, max_digits=12, decimal_places=2)
    restock_quantity: int | None = Field(None, gt=0)

    @model_validator(mode="after")
    def _at_least_one_change(self) -> "UpdateProductRequest":
        if self.base_price is None and self.restock_quantity is None:
            raise ValueError("base_price or restock_quantity is required")
        return self
