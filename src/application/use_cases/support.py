"""Helpers shared by the stock and job card use cases."""

from collections.abc import Awaitable, Callable
from datetime import date
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
)

from src.config import get_logger, get_settings
from src.core.exceptions import StaleReferenceError, ValidationError

logger = get_logger(__name__)

T = TypeVar("T")


def parse_iso_date(value: str | None, field: str) -> date:
    """Parse an ISO date string, defaulting to today."""
    if not value:
        return date.today()
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(field, "Expected an ISO date (YYYY-MM-DD)", value) from e


def _log_retry(retry_state: RetryCallState) -> None:
    """Log commit retries."""
    logger.warning(
        "commit_retry",
        attempt=retry_state.attempt_number,
        error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
    )


async def run_with_commit_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int | None = None,
) -> tuple[T, int]:
    """
    Run a reload-recompute-commit operation, retrying on stale references.

    The operation must reload everything it reads on each call.

    Args:
        operation: Async callable performing one full attempt
        max_retries: Retries after the first attempt
            (default ``costing.max_commit_retries``)

    Returns:
        Tuple of (operation result, number of attempts made)

    Raises:
        StaleReferenceError: If every attempt lost a concurrent update.
    """
    if max_retries is None:
        max_retries = get_settings().costing.max_commit_retries

    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(max_retries + 1),
        retry=retry_if_exception_type(StaleReferenceError),
        before_sleep=_log_retry,
        reraise=True,
    ):
        with attempt:
            result = await operation()
    return result, attempt.retry_state.attempt_number
