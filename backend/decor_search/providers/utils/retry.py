"""Retry policy with exponential backoff for provider HTTP requests."""

from typing import Awaitable, Callable, Optional, TypeVar
import asyncio

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from decor_search.core.exceptions import ProviderAuthError, ProviderError


logger = structlog.get_logger(__name__)

T = TypeVar("T")

# Connection resets, refused connections and read/connect timeouts
RETRYABLE_TRANSPORT_ERRORS = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
)


def _status_code(exc: BaseException) -> Optional[int]:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    if isinstance(exc, ProviderError):
        return exc.status_code
    return None


def is_auth_error(exc: BaseException) -> bool:
    """Return True for 401/403 failures, which are never retried."""
    if isinstance(exc, ProviderAuthError):
        return True
    return _status_code(exc) in (401, 403)


def is_retryable_error(exc: BaseException) -> bool:
    """Classify an exception raised by an upstream call.

    Retryable: HTTP 429, HTTP 5xx, timeouts and connection errors.
    Everything else, 401/403 included, propagates immediately.
    """
    if is_auth_error(exc):
        return False
    if isinstance(exc, RETRYABLE_TRANSPORT_ERRORS):
        return True
    status = _status_code(exc)
    if status is None:
        return False
    return status == 429 or status >= 500


class RetryPolicy:
    """Retry a single upstream call on transient failure.

    Waits ``base_delay * 2 ** attempt`` seconds between attempts and gives
    up after ``max_retries`` retries (``max_retries + 1`` attempts in total),
    re-raising the last error.
    """

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 1.0,
        name: str = "",
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize retry policy.

        Args:
            max_retries: Retries allowed after the first attempt
            base_delay: Delay in seconds before the first retry
            name: Label used in log events (usually the provider slug)
            sleep: Coroutine used for backoff waits
        """
        if max_retries < 0:
            raise ValueError("max_retries cannot be negative")
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.name = name
        self._sleep = sleep

    def _log_retry(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "retrying_request",
            provider=self.name,
            attempt=retry_state.attempt_number,
            max_retries=self.max_retries,
            delay=retry_state.next_action.sleep if retry_state.next_action else None,
            status_code=_status_code(exc) if exc else None,
            error=str(exc),
        )

    def backoff_delays(self) -> list:
        """Delays the policy would sleep through if every attempt failed."""
        return [self.base_delay * 2 ** attempt for attempt in range(self.max_retries)]

    async def call(self, request_fn: Callable[[], Awaitable[T]]) -> T:
        """Run ``request_fn`` with retries.

        Args:
            request_fn: Zero-argument callable performing one upstream call

        Returns:
            The first successful result

        Raises:
            The last error when it is not retryable or retries are exhausted
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=self.base_delay, exp_base=2, min=0),
            retry=retry_if_exception(is_retryable_error),
            before_sleep=self._log_retry,
            sleep=self._sleep,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await request_fn()
        raise AssertionError("unreachable")  # pragma: no cover
