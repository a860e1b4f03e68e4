# tests/unit/test_retry.py
"""Unit tests for the store retry helper."""
from unittest.mock import AsyncMock, patch

import pytest

from src.bourse_common.errors import (
    OutOfStockError,
    StoreUnavailableError,
    UnavailableError,
)
from src.bourse_common.retry import backoff_delay_ms, with_store_retry


class TestBackoff:
    def test_grows_exponentially(self) -> None:
        assert 50 <= backoff_delay_ms(1, 50, 1000) <= 55
        assert 100 <= backoff_delay_ms(2, 50, 1000) <= 110
        assert 200 <= backoff_delay_ms(3, 50, 1000) <= 220

    def test_capped(self) -> None:
        assert backoff_delay_ms(20, 50, 1000) <= 1100


class TestWithStoreRetry:
    @pytest.mark.asyncio
    async def test_returns_first_success(self) -> None:
        op = AsyncMock(return_value="ok")
        assert await with_store_retry(op, name="t", attempts=3) == "ok"
        op.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_retries_transient_failures(self) -> None:
        op = AsyncMock(side_effect=[StoreUnavailableError("down"), "ok"])
        with patch("src.bourse_common.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            assert await with_store_retry(op, name="t", attempts=3) == "ok"
        assert op.await_count == 2
        sleep.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_exhausted_attempts_raise_unavailable(self) -> None:
        op = AsyncMock(side_effect=StoreUnavailableError("down"))
        with patch("src.bourse_common.retry.asyncio.sleep", new=AsyncMock()):
            with pytest.raises(UnavailableError) as exc_info:
                await with_store_retry(op, name="place_order", attempts=3)
        assert op.await_count == 3
        assert exc_info.value.retryable is True
        assert exc_info.value.http_status == 503

    @pytest.mark.asyncio
    async def test_business_errors_not_retried(self) -> None:
        op = AsyncMock(side_effect=OutOfStockError("P-1"))
        with pytest.raises(OutOfStockError):
            await with_store_retry(op, name="t", attempts=5)
        op.assert_awaited_once()
