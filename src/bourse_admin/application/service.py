# src/bourse_admin/application/service.py
"""Admin application service — operator workflows over the engine.

Authorization (role=operator) is checked by the router dependency; this layer
trusts its caller.
"""
from typing import Any

from src.bourse_common.enums import OrderStatus
from src.bourse_market.application.schemas import (
    MarketStateOut,
    OnboardProductRequest,
    UpdateProductRequest,
)
from src.bourse_order.application.engine import BourseEngine
from src.bourse_order.application.schemas import OrderListResponse, OrderResponse
from src.bourse_stats.application.schemas import BourseStatsResponse


class AdminService:
    def __init__(self, engine: BourseEngine) -> None:
        self._engine = engine

    async def list_orders(
        self, status: OrderStatus | None, product_id: str | None
    ) -> OrderListResponse:
        orders = await self._engine.list_orders(status=status, product_id=product_id)
        return OrderListResponse(
            orders=[OrderResponse.from_domain(o) for o in orders], count=len(orders)
        )

    async def set_order_status(
        self, order_id: str, status: OrderStatus, operator_id: str
    ) -> OrderResponse:
        order = await self._engine.set_order_status(order_id, status, operator_id)
        return OrderResponse.from_domain(order)

    async def get_stats(self) -> BourseStatsResponse:
        return BourseStatsResponse.from_domain(await self._engine.get_stats())

    async def onboard_product(self, req: OnboardProductRequest) -> MarketStateOut:
        state = await self._engine.market.onboard_product(
            req.product_id, req.product_name, req.base_price, req.stock_available
        )
        return MarketStateOut.from_domain(state)

    async def update_product(self, product_id: str, req: UpdateProductRequest) -> MarketStateOut:
        state = None
        if req.base_price is not None:
            state = await self._engine.market.update_base_price(product_id, req.base_price)
        if req.restock_quantity is not None:
            state = await self._engine.market.restock(product_id, req.restock_quantity)
        if state is None:
            state = await self._engine.get_market_state(product_id)
        return MarketStateOut.from_domain(state)

    async def verify_invariants(self) -> dict[str, Any]:
        return await self._engine.stats.verify_invariants()
