"""Bourse API entry point.

Run with: uvicorn src.main:app --loop uvloop --port 8000
      or: python -m src.main
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.bourse_admin.api.router import router as admin_router
from src.bourse_common.database import dispose_engine, get_engine
from src.bourse_common.errors import AppError
from src.bourse_common.redis_client import close_redis, ping_redis
from src.bourse_common.response import app_error_response
from src.bourse_gateway.middleware.request_log import RequestLogMiddleware
from src.bourse_market.api.router import router as market_router
from src.bourse_order.api.router import router as order_router
from src.bourse_order.application.engine import get_bourse_engine

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify configured backends, optionally seed. Shutdown: dispose."""
    if settings.STORE_BACKEND == "postgres":
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    if settings.NOTIFIER_BACKEND == "redis":
        await ping_redis()
    if settings.SEED_DEMO_CATALOGUE:
        await get_bourse_engine().market.seed_demo_catalogue()
    logger.info(
        "Bourse started: store=%s notifier=%s pricing=%s",
        settings.STORE_BACKEND, settings.NOTIFIER_BACKEND, settings.PRICING_STRATEGY,
    )
    yield
    await dispose_engine()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = app_error_response(exc, getattr(request.state, "request_id", None))
    return JSONResponse(status_code=exc.http_status, content=resp.model_dump())


app.include_router(market_router, prefix="/api/v1")
app.include_router(order_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000, loop="uvloop")
