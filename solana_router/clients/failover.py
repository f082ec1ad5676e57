"""
Failover execution across a pool of equivalent Solana RPC endpoints.

The pool remembers the endpoint that last served a request so the next call
starts there. Each call walks the pool at most once, one attempt per
endpoint, waiting a fixed backoff between attempts.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Sequence, Tuple, TypeVar

from solana_router.utils.errors import ConfigurationError, EndpointPoolExhausted

T = TypeVar("T")

logger = logging.getLogger(__name__)


class EndpointPool:
    """Ordered endpoint URIs plus a shared rotation cursor.

    The cursor is a plain index. Concurrent callers may read a stale value,
    which only affects load balance; every endpoint is a valid source.
    """

    def __init__(self, endpoints: Sequence[str]):
        if not endpoints:
            raise ConfigurationError("An endpoint pool needs at least one endpoint")
        self._endpoints: Tuple[str, ...] = tuple(endpoints)
        self._cursor = 0

    def __len__(self) -> int:
        return len(self._endpoints)

    @property
    def endpoints(self) -> Tuple[str, ...]:
        return self._endpoints

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def current(self) -> str:
        """Endpoint the next call will try first."""
        return self._endpoints[self._cursor]

    def endpoint_at(self, index: int) -> str:
        return self._endpoints[index % len(self._endpoints)]

    def advance_to(self, index: int) -> None:
        self._cursor = index % len(self._endpoints)


class FailoverExecutor:
    """Runs read operations against an ``EndpointPool`` with rotation on failure."""

    def __init__(
        self,
        pool: EndpointPool,
        timeout: float = 10.0,
        backoff: float = 1.0,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the executor.

        Args:
            pool: Endpoint pool shared by every caller of this executor
            timeout: Per-attempt timeout in seconds; a timeout counts as a failure
            backoff: Fixed wait between attempts in seconds
            logger: Optional logger instance
        """
        self.pool = pool
        self.timeout = timeout
        self.backoff = backoff
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    async def run(
        self,
        operation: Callable[[str], Awaitable[T]],
        operation_name: str = "operation"
    ) -> T:
        """
        Run ``operation`` against the pool, one attempt per endpoint at most.

        Args:
            operation: Coroutine function taking an endpoint URI
            operation_name: Name used in log messages

        Returns:
            The first successful result

        Raises:
            EndpointPoolExhausted: If every endpoint failed; the last
                underlying error is chained and kept on the exception
        """
        attempts = len(self.pool)
        start = self.pool.cursor
        last_error: Optional[BaseException] = None
        index = start

        for attempt in range(attempts):
            index = (start + attempt) % attempts
            endpoint = self.pool.endpoint_at(index)
            try:
                result = await asyncio.wait_for(operation(endpoint), timeout=self.timeout)
            except asyncio.CancelledError:
                raise
            except asyncio.TimeoutError as e:
                last_error = e
                self.logger.warning(
                    f"{operation_name} timed out after {self.timeout}s on {endpoint} "
                    f"(attempt {attempt + 1}/{attempts})"
                )
            except Exception as e:
                last_error = e
                self.logger.warning(
                    f"{operation_name} failed on {endpoint} "
                    f"(attempt {attempt + 1}/{attempts}): {e}"
                )
            else:
                self.pool.advance_to(index)
                if attempt:
                    self.logger.info(f"{operation_name} succeeded on {endpoint} after {attempt} failover(s)")
                return result

            if attempt < attempts - 1 and self.backoff > 0:
                await asyncio.sleep(self.backoff)

        # Leave the cursor where the last attempt landed
        self.pool.advance_to(index)
        self.logger.error(f"{operation_name} failed on all {attempts} endpoints: {last_error}")
        raise EndpointPoolExhausted(attempts, last_error) from last_error
