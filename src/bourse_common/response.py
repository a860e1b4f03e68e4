"""JSON envelope shared by every Bourse endpoint.

    {"code": 0, "message": "success", "data": {...}, "timestamp": "...", "request_id": "..."}

On failure `code` is the AppError code and `data` is null, except for a
stale-price rejection, which carries the price the buyer should resubmit at.
"""

import uuid
from typing import Any

from pydantic import BaseModel, Field

from src.bourse_common.datetime_utils import utc_now
from src.bourse_common.errors import AppError, PriceStaleError


def _new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: utc_now().isoformat())
    request_id: str = Field(default_factory=_new_request_id)


def success_response(data: Any = None, request_id: str | None = None) -> ApiResponse:
    return ApiResponse(data=data, request_id=request_id or _new_request_id())


def error_response(
    code: int, message: str, data: Any = None, request_id: str | None = None
) -> ApiResponse:
    return ApiResponse(
        code=code, message=message, data=data, request_id=request_id or _new_request_id()
    )


def app_error_response(exc: AppError, request_id: str | None = None) -> ApiResponse:
    data = None
    if isinstance(exc, PriceStaleError):
        data = {"current_price": str(exc.current_price)}
    return error_response(exc.code, exc.message, data, request_id)
