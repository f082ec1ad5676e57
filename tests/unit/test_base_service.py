"""Unit tests for BaseService."""

import asyncio
from unittest.mock import MagicMock

import pytest

from solana_router.services.base_service import BaseService


class TestBaseService:
    """Test suite for BaseService."""

    @pytest.fixture
    def base_service(self):
        return BaseService()

    async def test_execute_with_fallback_success(self, base_service):
        # Setup
        async def success_coro():
            return "success"

        # Execute
        result = await base_service.execute_with_fallback(success_coro(), fallback_value="fallback")

        # Verify
        assert result == "success"

    async def test_execute_with_fallback_failure(self, base_service):
        """A failing best-effort call returns the fallback and logs a warning."""
        # Setup
        base_service.logger = MagicMock()

        async def fail_coro():
            raise ValueError("Test error")

        # Execute
        result = await base_service.execute_with_fallback(
            fail_coro(),
            fallback_value="fallback",
            error_message="Market lookup failed"
        )

        # Verify
        assert result == "fallback"
        base_service.logger.warning.assert_called_once_with("Market lookup failed: Test error")

    async def test_gather_with_concurrency_bounds_and_orders(self, base_service):
        # Setup
        running = 0
        peak = 0

        async def task(value):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1
            return value

        # Execute
        results = await base_service.gather_with_concurrency(2, *(task(i) for i in range(5)))

        # Verify
        assert results == [0, 1, 2, 3, 4]
        assert peak <= 2

    async def test_log_timing_reports_failure(self, base_service):
        base_service.logger = MagicMock()

        with pytest.raises(RuntimeError):
            async with base_service.log_timing("route"):
                raise RuntimeError("boom")

        base_service.logger.error.assert_called_once()
        assert "route failed" in base_service.logger.error.call_args.args[0]
