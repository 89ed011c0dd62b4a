"""
Retry strategies and the generic retry coordinator.

`with_retry` knows nothing about uploads: it wraps any zero-argument
coroutine function and is reused for idempotent reads and deletes.
"""
import asyncio
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional, TypeVar

from ..config import RetryConfig
from ...logging import get_logger

T = TypeVar('T')

logger = get_logger('mediaup.retry')


class RetryStrategy(ABC):
    """Abstract retry strategy."""
    
    @abstractmethod
    def should_retry(self, error: BaseException, attempt: int, max_retries: int) -> bool:
        """Determines if a failed zero-based attempt should be retried."""
        pass
    
    @abstractmethod
    def delay(self, attempt: int) -> float:
        """Seconds to wait after the given failed attempt."""
        pass
    
    async def wait_async(self, attempt: int):
        """Waits before retry without blocking the event loop."""
        await asyncio.sleep(self.delay(attempt))


class LinearBackoffStrategy(RetryStrategy):
    """Linear backoff: base_delay, 2 * base_delay, 3 * base_delay, ..."""
    
    def __init__(
        self,
        base_delay: float = 1.0,
        retry_on: Optional[Callable[[BaseException], bool]] = None
    ):
        self.base_delay = base_delay
        self._retry_on = retry_on
    
    def should_retry(self, error: BaseException, attempt: int, max_retries: int) -> bool:
        if attempt >= max_retries:
            return False
        if self._retry_on is not None:
            return self._retry_on(error)
        return True
    
    def delay(self, attempt: int) -> float:
        return self.base_delay * (attempt + 1)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    base_delay: float = 1.0,
    *,
    should_retry: Optional[Callable[[BaseException], bool]] = None,
    sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    on_retry: Optional[Callable[[int, BaseException, float], None]] = None,
    strategy: Optional[RetryStrategy] = None
) -> T:
    """
    Run `operation` until it succeeds or the retry ceiling is reached.
    
    Args:
        operation: Zero-argument coroutine function to attempt
        max_retries: Retries allowed after the first attempt
        base_delay: Seconds; retry n waits base_delay * n
        should_retry: Predicate selecting retryable exceptions (default: all)
        sleep: Awaitable sleep used for backoff (default: asyncio.sleep)
        on_retry: Called with (failed attempt number, error, delay) before waiting
        strategy: Custom strategy overriding base_delay/should_retry
        
    Returns:
        The operation's result
        
    Raises:
        The last exception raised by `operation`, unchanged
    """
    strategy = strategy or LinearBackoffStrategy(base_delay, should_retry)
    sleep = sleep or asyncio.sleep
    attempt = 0
    
    while True:
        try:
            return await operation()
        except Exception as e:
            if not strategy.should_retry(e, attempt, max_retries):
                if attempt > 0:
                    logger.warning(f"Giving up after {attempt + 1} attempts: {e}")
                raise
            
            delay = strategy.delay(attempt)
            logger.info(f"Attempt {attempt + 1} failed ({e}); retrying in {delay:.2f}s")
            if on_retry:
                on_retry(attempt + 1, e, delay)
            await sleep(delay)
            attempt += 1


class RetryCoordinator:
    """
    Binds a RetryConfig to `with_retry`.
    
    Example:
        >>> coordinator = RetryCoordinator(RetryConfig(max_retries=2))
        >>> data = await coordinator.run(fetch_articles)
    """
    
    def __init__(self, config: Optional[RetryConfig] = None):
        self._config = config or RetryConfig()
    
    @property
    def config(self) -> RetryConfig:
        return self._config
    
    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        should_retry: Optional[Callable[[BaseException], bool]] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
        on_retry: Optional[Callable[[int, BaseException, float], None]] = None
    ) -> T:
        return await with_retry(
            operation,
            self._config.max_retries,
            self._config.base_delay,
            should_retry=should_retry,
            sleep=sleep,
            on_retry=on_retry,
        )
