# src/bourse_admin/api/router.py
"""Operator REST API.

GET   /admin/orders                       — all orders, optional status / product filter
POST  /admin/orders/{order_id}/status     — match or cancel a pending order
GET   /admin/stats                        — counts by status, top movers
POST  /admin/products                     — onboard a tradable product
PATCH /admin/products/{product_id}        — change base price and/or restock
GET   /admin/invariants                   — demand ledger consistency check
"""
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.bourse_admin.application.service import AdminService
from src.bourse_common.enums import OrderStatus
from src.bourse_common.response import ApiResponse, success_response
from src.bourse_gateway.auth.dependencies import require_operator
from src.bourse_gateway.auth.jwt_handler import Caller
from src.bourse_market.application.schemas import OnboardProductRequest, UpdateProductRequest
from src.bourse_order.application.engine import BourseEngine, get_bourse_engine
from src.bourse_order.application.schemas import SetOrderStatusRequest

router = APIRouter(prefix="/admin", tags=["admin"])


def get_admin_service(
    engine: Annotated[BourseEngine, Depends(get_bourse_engine)],
) -> AdminService:
    return AdminService(engine)


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


@router.get("/orders")
async def list_orders(
    request: Request,
    operator: Annotated[Caller, Depends(require_operator)],
    service: Annotated[AdminService, Depends(get_admin_service)],
    status: OrderStatus | None = Query(None),
    product_id: str | None = Query(None),
) -> ApiResponse:
    result = await service.list_orders(status, product_id)
    return success_response(result.model_dump(mode="json"), _request_id(request))


@router.post("/orders/{order_id}/status")
async def set_order_status(
    order_id: str,
    body: SetOrderStatusRequest,
    request: Request,
    operator: Annotated[Caller, Depends(require_operator)],
    service: Annotated[AdminService, Depends(get_admin_service)],
) -> ApiResponse:
    result = await service.set_order_status(order_id, body.status, operator.id)
    return success_response(result.model_dump(mode="json"), _request_id(request))


@router.get("/stats")
async def get_stats(
    request: Request,
    operator: Annotated[Caller, Depends(require_operator)],
    service: Annotated[AdminService, Depends(get_admin_service)],
) -> ApiResponse:
    result = await service.get_stats()
    return success_response(result.model_dump(mode="json"), _request_id(request))


@router.post("/products", status_code=201)
async def onboard_product(
    body: OnboardProductRequest,
    request: Request,
    operator: Annotated[Caller, Depends(require_operator)],
    service: Annotated[AdminService, Depends(get_admin_service)],
) -> ApiResponse:
    result = await service.onboard_product(body)
    return success_response(result.model_dump(mode="json"), _request_id(request))


@router.patch("/products/{product_id}")
async def update_product(
    product_id: str,
    body: UpdateProductRequest,
    request: Request,
    operator: Annotated[Caller, Depends(require_operator)],
    service: Annotated[AdminService, Depends(get_admin_service)],
) -> ApiResponse:
    result = await service.update_product(product_id, body)
    return success_response(result.model_dump(mode="json"), _request_id(request))


@router.get("/invariants")
async def verify_invariants(
    request: Request,
    operator: Annotated[Caller, Depends(require_operator)],
    service: Annotated[AdminService, Depends(get_admin_service)],
) -> ApiResponse:
    result = await service.verify_invariants()
    return success_response(result, _request_id(request))
