# src/bourse_order/api/router.py
"""Buyer order endpoints.

POST /orders                     — place a purchase request at the observed price
GET  /orders                     — caller's own orders, newest first
GET  /orders/{order_id}          — one of the caller's orders
POST /orders/{order_id}/cancel   — withdraw a pending order
"""
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.bourse_common.enums import OrderStatus
from src.bourse_common.response import ApiResponse, success_response
from src.bourse_gateway.auth.dependencies import get_current_caller
from src.bourse_gateway.auth.jwt_handler import Caller
from src.bourse_order.application.engine import BourseEngine, get_bourse_engine
from src.bourse_order.application.schemas import (
    OrderListResponse,
    OrderResponse,
    PlaceOrderRequest,
)

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", status_code=201)
async def place_order(
    req: PlaceOrderRequest,
    request: Request,
    caller: Annotated[Caller, Depends(get_current_caller)],
    engine: Annotated[BourseEngine, Depends(get_bourse_engine)],
) -> ApiResponse:
    order = await engine.place_order(req.product_id, req.quantity, caller.id, req.observed_price)
    return success_response(
        OrderResponse.from_domain(order).model_dump(mode="json"),
        getattr(request.state, "request_id", None),
    )


@router.get("")
async def list_my_orders(
    request: Request,
    caller: Annotated[Caller, Depends(get_current_caller)],
    engine: Annotated[BourseEngine, Depends(get_bourse_engine)],
    status: OrderStatus | None = Query(None, description="Filter by order status"),
) -> ApiResponse:
    orders = await engine.list_orders(status=status, buyer_id=caller.id)
    result = OrderListResponse(
        orders=[OrderResponse.from_domain(o) for o in orders], count=len(orders)
    )
    return success_response(
        result.model_dump(mode="json"), getattr(request.state, "request_id", None)
    )


@router.get("/{order_id}")
async def get_my_order(
    order_id: str,
    request: Request,
    caller: Annotated[Caller, Depends(get_current_caller)],
    engine: Annotated[BourseEngine, Depends(get_bourse_engine)],
) -> ApiResponse:
    order = await engine.ledger.get_order(order_id, buyer_id=caller.id)
    return success_response(
        OrderResponse.from_domain(order).model_dump(mode="json"),
        getattr(request.state, "request_id", None),
    )


@router.post("/{order_id}/cancel")
async def cancel_my_order(
    order_id: str,
    request: Request,
    caller: Annotated[Caller, Depends(get_current_caller)],
    engine: Annotated[BourseEngine, Depends(get_bourse_engine)],
) -> ApiResponse:
    order = await engine.cancel_order(order_id, caller.id)
    return success_response(
        OrderResponse.from_domain(order).model_dump(mode="json"),
        getattr(request.state, "request_id", None),
    )
