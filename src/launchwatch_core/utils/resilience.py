"""Retry policies.

Two callers need retries: Redis at process start (the store may come up after
us) and the upstream APIs during an evaluation, where the budget is tight and
only transport faults are worth a second try.
"""

import logging
from typing import Callable, Tuple, Type, TypeVar

import httpx
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

F = TypeVar("F")


def _log_retry_attempt(retry_state: RetryCallState) -> None:
    """Name the wrapped call and the failure before sleeping"""
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        f"[Retry] {retry_state.fn.__name__} failed on attempt {retry_state.attempt_number} "
        f"({retry_state.seconds_since_start:.1f}s elapsed): {error!r}"
    )


def create_custom_retry(
    max_attempts: int = 5,
    min_wait: float = 2,
    max_wait: float = 32,
    multiplier: float = 1,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
) -> Callable[[F], F]:
    """Build an exponential-backoff retry decorator.

    Args:
        max_attempts: Attempts including the first one
        min_wait / max_wait: Bounds of the wait between attempts (seconds)
        multiplier: Backoff multiplier
        retry_on: Exception types that trigger another attempt; anything
            else propagates on the first failure

    The last exception is re-raised once attempts run out.

    Example:
        ```python
        deployments_retry = create_custom_retry(max_attempts=3, min_wait=0.5, max_wait=2)

        @deployments_retry
        async def fetch_deployments():
            ...
        ```
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=multiplier, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(retry_on),
        before_sleep=_log_retry_attempt,
        reraise=True,
    )


# Redis at startup: 5 attempts, 2s..32s apart (about a minute in total)
service_startup_retry = create_custom_retry(max_attempts=5, min_wait=2, max_wait=32)

# Upstream API calls inside an evaluation: one retry on connect/read faults,
# never on an HTTP status, with a sub-second pause
external_api_retry = create_custom_retry(
    max_attempts=2,
    min_wait=0.25,
    max_wait=1,
    retry_on=(httpx.TransportError,),
)
