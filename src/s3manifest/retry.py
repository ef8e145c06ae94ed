"""Retry of transient S3 failures with jittered exponential backoff."""

from __future__ import annotations

from typing import Any, Callable, TypeVar

import backoff
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from .types import RetryPolicy

T = TypeVar("T")

# Errors raised by boto3 for network, throttling and service failures
RETRYABLE_ERRORS: tuple[type[Exception], ...] = (BotoCoreError, ClientError)


def call_with_retry(
    func: Callable[..., T],
    *args: Any,
    policy: RetryPolicy,
    operation: str,
    **kwargs: Any,
) -> T:
    """Call *func* and retry it on transient S3 errors.

    Delays start at ``policy.base_delay`` seconds, double on every attempt and
    are fully jittered. Attempts are sequential.

    Parameters
    ----------
    func : Callable[..., T]
        Function performing one network call.
    policy : RetryPolicy
        Attempt limit and base delay.
    operation : str
        Human readable name used in log messages (e.g. "listing objects").

    Returns
    -------
    T
        Result of the first successful call.

    Raises
    ------
    BotoCoreError | ClientError
        The last error once ``policy.max_attempts`` is exhausted.
    """

    def _on_backoff(details: dict[str, Any]) -> None:
        logger.warning(
            "Error {}, retrying in {:.2f}s (attempt {}/{}): {}",
            operation,
            details["wait"],
            details["tries"],
            policy.max_attempts,
            details.get("exception"),
        )

    def _on_giveup(details: dict[str, Any]) -> None:
        logger.error(
            "Giving up {} after {} attempts: {}",
            operation,
            details["tries"],
            details.get("exception"),
        )

    retrying = backoff.on_exception(
        backoff.expo,
        RETRYABLE_ERRORS,
        max_tries=policy.max_attempts,
        jitter=backoff.full_jitter,
        on_backoff=_on_backoff,
        on_giveup=_on_giveup,
        logger=None,
        base=2,
        factor=policy.base_delay,
    )(func)
    return retrying(*args, **kwargs)
