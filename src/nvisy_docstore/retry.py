"""Retry and timeout helpers shared by the engine components."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from nvisy_docstore.config import RetryPolicy
from nvisy_docstore.errors import DocStoreError, ErrorKind, is_transient

logger = logging.getLogger(__name__)


def retrying(
    policy: RetryPolicy,
    *,
    retry_on: Callable[[BaseException], bool] = is_transient,
) -> AsyncRetrying:
    """Build a tenacity controller for one call's retry budget.

    The last error is re-raised unchanged once the budget is spent.
    """
    return AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_exponential_jitter(
            initial=policy.initial_backoff,
            max=policy.max_backoff,
            jitter=policy.jitter,
        ),
        retry=retry_if_exception(retry_on),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


async def with_timeout[T](call: Awaitable[T], timeout: float | None, *, operation: str) -> T:
    """Await a store call, mapping expiry to a transient `TIMEOUT` error."""
    try:
        async with asyncio.timeout(timeout):
            return await call
    except TimeoutError as e:
        msg = f"{operation} timed out after {timeout}s"
        raise DocStoreError(msg, kind=ErrorKind.TIMEOUT, source=e) from e
