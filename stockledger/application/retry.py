"""
Retry helper for workflow calls that fail with UnavailableError.

Every workflow operation is one transaction and item operations are
guarded by request ids, so re-running a whole call is safe.
"""

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar, cast

from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from stockledger.config import get_logger, get_settings
from stockledger.core.exceptions import UnavailableError

logger = get_logger(__name__)

T = TypeVar("T")


def _log_retry(retry_state: RetryCallState) -> None:
    """Log retry attempts."""
    logger.warning(
        "workflow_retry",
        attempt=retry_state.attempt_number,
        error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
    )


def _get_retry_decorator() -> Any:
    """Get tenacity retry decorator with current workflow settings."""
    settings = get_settings().workflow
    return retry(
        stop=stop_after_attempt(settings.unavailable_max_retries),
        wait=wait_exponential(
            multiplier=settings.unavailable_retry_delay,
            min=settings.unavailable_retry_delay,
            max=settings.unavailable_retry_delay * (settings.unavailable_retry_multiplier**3),
        ),
        retry=retry_if_exception_type(UnavailableError),
        before_sleep=_log_retry,
        reraise=True,
    )


async def retrying(
    operation: Callable[..., Awaitable[T]],
    *args: Any,
    **kwargs: Any,
) -> T:
    """
    Run ``operation(*args, **kwargs)``, retrying only on UnavailableError.

    Usage:
        order = await retrying(service.receive_items, po_id, lines, request_id=rid)

    Domain errors are never retried. After the last attempt the final
    UnavailableError propagates unchanged.
    """
    result = await _get_retry_decorator()(operation)(*args, **kwargs)
    return cast(T, result)
