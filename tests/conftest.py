"""Shared test fixtures."""

from collections.abc import AsyncIterator
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient

from src.bourse_common.enums import CallerRole
from src.bourse_gateway.auth.jwt_handler import create_token
from src.bourse_market.infrastructure.memory_store import InMemoryBourseStore
from src.bourse_market.infrastructure.notifier import InProcessNotifier
from src.bourse_order.application.engine import BourseEngine, set_bourse_engine
from src.main import app


@pytest.fixture
def store() -> InMemoryBourseStore:
    return InMemoryBourseStore()


@pytest.fixture
def notifier() -> InProcessNotifier:
    return InProcessNotifier()


@pytest.fixture
def engine(store: InMemoryBourseStore, notifier: InProcessNotifier) -> BourseEngine:
    """Engine over a fresh in-memory store with the default linear strategy."""
    return BourseEngine(store, notifier=notifier)


@pytest.fixture
async def product(engine: BourseEngine):
    """Scenario A product: base 10.00, stock 100, no demand."""
    return await engine.market.onboard_product("P-1", "Gelato CBD", Decimal("10.00"), 100)


@pytest.fixture
async def client(engine: BourseEngine) -> AsyncIterator[AsyncClient]:
    """Async HTTP client bound to the app, with `engine` installed as the process engine."""
    set_bourse_engine(engine)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    set_bourse_engine(None)


@pytest.fixture
def buyer_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {create_token('buyer-1', CallerRole.BUYER)}"}


@pytest.fixture
def other_buyer_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {create_token('buyer-2', CallerRole.BUYER)}"}


@pytest.fixture
def operator_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {create_token('op-1', CallerRole.OPERATOR)}"}
