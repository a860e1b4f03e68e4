"""bourse_market REST endpoints.

GET /market                 — all market states (sortable, optional in-stock filter)
GET /market/{product_id}    — one market state
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.bourse_common.enums import MarketSortKey
from src.bourse_common.response import ApiResponse, success_response
from src.bourse_gateway.auth.dependencies import get_current_caller
from src.bourse_gateway.auth.jwt_handler import Caller
from src.bourse_market.application.schemas import MarketListResponse, MarketStateOut
from src.bourse_market.domain.models import MarketQuery
from src.bourse_order.application.engine import BourseEngine, get_bourse_engine

router = APIRouter(prefix="/market", tags=["market"])


@router.get("")
async def list_market_states(
    request: Request,
    caller: Annotated[Caller, Depends(get_current_caller)],
    engine: Annotated[BourseEngine, Depends(get_bourse_engine)],
    sort: MarketSortKey = Query(MarketSortKey.PRODUCT_ID),
    order: str = Query("asc", pattern="^(asc|desc)$"),
    in_stock_only: bool = Query(False),
) -> ApiResponse:
    query = MarketQuery(in_stock_only=in_stock_only, sort_by=sort, descending=order == "desc")
    states = await engine.list_market_states(query)
    result = MarketListResponse(
        items=[MarketStateOut.from_domain(s) for s in states], count=len(states)
    )
    return success_response(
        result.model_dump(mode="json"), getattr(request.state, "request_id", None)
    )


@router.get("/{product_id}")
async def get_market_state(
    product_id: str,
    request: Request,
    caller: Annotated[Caller, Depends(get_current_caller)],
    engine: Annotated[BourseEngine, Depends(get_bourse_engine)],
) -> ApiResponse:
    state = await engine.get_market_state(product_id)
    return success_response(
        MarketStateOut.from_domain(state).model_dump(mode="json"),
        getattr(request.state, "request_id", None),
    )
