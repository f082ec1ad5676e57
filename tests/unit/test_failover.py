"""Unit tests for the endpoint pool and failover executor."""

import asyncio

import pytest

from solana_router.clients.failover import EndpointPool, FailoverExecutor
from solana_router.utils.errors import ConfigurationError, EndpointPoolExhausted

ENDPOINTS = ["https://a.invalid", "https://b.invalid", "https://c.invalid", "https://d.invalid"]


class FlakyOperation:
    """Fails on a fixed set of endpoints and records every attempt."""

    def __init__(self, failing, result="ok", error=ConnectionError):
        self.failing = set(failing)
        self.result = result
        self.error = error
        self.attempts = []

    async def __call__(self, endpoint):
        self.attempts.append(endpoint)
        if endpoint in self.failing:
            raise self.error(f"{endpoint} is down")
        return self.result


class TestEndpointPool:
    """Test suite for EndpointPool."""

    def test_empty_pool_rejected(self):
        with pytest.raises(ConfigurationError):
            EndpointPool([])

    def test_advance_wraps(self):
        pool = EndpointPool(ENDPOINTS)
        pool.advance_to(5)
        assert pool.cursor == 1
        assert pool.current == ENDPOINTS[1]


class TestFailoverExecutor:
    """Test suite for FailoverExecutor."""

    @pytest.fixture
    def pool(self):
        return EndpointPool(ENDPOINTS)

    @pytest.fixture
    def executor(self, pool):
        return FailoverExecutor(pool, timeout=1.0, backoff=0)

    async def test_first_endpoint_succeeds(self, executor, pool):
        operation = FlakyOperation(failing=[])

        result = await executor.run(operation)

        assert result == "ok"
        assert operation.attempts == ENDPOINTS[:1]
        assert pool.cursor == 0

    @pytest.mark.parametrize("k", [1, 2, 3])
    async def test_first_k_fail(self, executor, pool, k):
        """K failures then a success use K+1 attempts and leave the cursor on the winner."""
        # Setup
        operation = FlakyOperation(failing=ENDPOINTS[:k])

        # Execute
        result = await executor.run(operation, operation_name="getBalance")

        # Verify
        assert result == "ok"
        assert len(operation.attempts) == k + 1
        assert pool.cursor == k % len(ENDPOINTS)

    async def test_all_fail(self, executor, pool):
        """Every endpoint failing raises after exactly N attempts."""
        # Setup
        operation = FlakyOperation(failing=ENDPOINTS)

        # Execute
        with pytest.raises(EndpointPoolExhausted) as exc_info:
            await executor.run(operation)

        # Verify
        assert len(operation.attempts) == len(ENDPOINTS)
        assert operation.attempts == ENDPOINTS
        assert exc_info.value.attempts == len(ENDPOINTS)
        assert isinstance(exc_info.value.last_error, ConnectionError)
        assert exc_info.value.__cause__ is exc_info.value.last_error

    async def test_rotation_starts_at_cursor(self, executor, pool):
        """A later call starts where the previous success left the cursor."""
        # Setup
        pool.advance_to(2)
        operation = FlakyOperation(failing=[ENDPOINTS[2], ENDPOINTS[3]])

        # Execute
        result = await executor.run(operation)

        # Verify
        assert result == "ok"
        assert operation.attempts == [ENDPOINTS[2], ENDPOINTS[3], ENDPOINTS[0]]
        assert pool.cursor == 0

    async def test_timeout_counts_as_failure(self, pool):
        """A slow endpoint is abandoned and the next one is tried."""
        # Setup
        executor = FailoverExecutor(pool, timeout=0.05, backoff=0)
        attempts = []

        async def operation(endpoint):
            attempts.append(endpoint)
            if endpoint == ENDPOINTS[0]:
                await asyncio.sleep(1)
            return endpoint

        # Execute
        result = await executor.run(operation)

        # Verify
        assert result == ENDPOINTS[1]
        assert attempts == ENDPOINTS[:2]
        assert pool.cursor == 1

    async def test_backoff_between_attempts_only(self, pool, monkeypatch):
        """The fixed backoff is awaited between attempts, not after the last one."""
        # Setup
        sleeps = []

        async def fake_sleep(delay):
            sleeps.append(delay)

        monkeypatch.setattr("solana_router.clients.failover.asyncio.sleep", fake_sleep)
        executor = FailoverExecutor(pool, timeout=1.0, backoff=0.5)
        operation = FlakyOperation(failing=ENDPOINTS)

        # Execute
        with pytest.raises(EndpointPoolExhausted):
            await executor.run(operation)

        # Verify
        assert sleeps == [0.5] * (len(ENDPOINTS) - 1)
