# ==============================================================================
# Retry Configuration
# ==============================================================================
"""
Retry decorators with exponential backoff for the CLI's HTTP calls.

Light retry: 3 attempts over ~7 seconds (for status checks and event sends)
"""

import logging
from typing import Tuple, Type

import requests
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

# ==============================================================================
# Retry Constants
# ==============================================================================

# Exponential backoff: 1s, 2s, 4s = ~7s total
RETRY_ATTEMPTS_LIGHT = 3
RETRY_WAIT_MIN = 1  # seconds
RETRY_WAIT_MAX = 4  # seconds

# Transient failures worth another attempt; HTTP error statuses are not retried
HTTP_RETRY_EXCEPTIONS = (
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
)


# ==============================================================================
# Logging Callbacks
# ==============================================================================


def log_retry_attempt_light(logger: logging.Logger):
    """
    Create a callback that logs retry attempts.

    Args:
        logger: Logger instance to use for logging

    Returns:
        Callback function for tenacity's before_sleep parameter
    """

    def _log_retry(retry_state: RetryCallState) -> None:
        exception = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "Retry attempt %d/%d after error: %s",
            retry_state.attempt_number,
            RETRY_ATTEMPTS_LIGHT,
            exception,
        )

    return _log_retry


# ==============================================================================
# Retry Decorators
# ==============================================================================


def retry_light(
    exception_types: Tuple[Type[Exception], ...] = HTTP_RETRY_EXCEPTIONS,
    logger: logging.Logger | None = None,
):
    """
    Create a light retry decorator (3 attempts, ~7 seconds).

    Args:
        exception_types: Tuple of exception types to retry on
        logger: Logger instance for retry logging

    Returns:
        Tenacity retry decorator

    Example:
        @retry_light(HTTP_RETRY_EXCEPTIONS, logger)
        def fetch_realtime(base_url):
            ...
    """
    return retry(
        stop=stop_after_attempt(RETRY_ATTEMPTS_LIGHT),
        wait=wait_exponential(multiplier=1, min=RETRY_WAIT_MIN, max=RETRY_WAIT_MAX),
        retry=retry_if_exception_type(exception_types),
        before_sleep=log_retry_attempt_light(logger or logging.getLogger(__name__)),
        reraise=True,
    )
