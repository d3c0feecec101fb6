# chess_sync/utils/retry.py
"""
Retries async calls that fail with transient errors.

A sync talks to two systems that fail transiently: the archive HTTP API
(rate limiting, 5xx responses, dropped connections) and the SQLite store
(lock contention surfacing as `OperationalError`). Calls into either are
wrapped with `retry_with_backoff`, which waits between attempts according to a
`RetryPolicy` and tags its log events with what the call was working on.
"""
import asyncio
import functools
import inspect
import random
from dataclasses import dataclass
from typing import Any, Callable, Coroutine, Dict, Optional, Tuple, Type

import structlog

from chess_sync.utils import metrics

logger = structlog.get_logger(__name__)

AsyncCallable = Callable[..., Coroutine]


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """How many times a call is tried and how long to wait in between."""
    attempts: int = 3
    initial_backoff_s: float = 0.5
    max_backoff_s: float = 5.0
    jitter_factor: float = 0.2

    def delay_before(self, retry: int) -> float:
        """
        The wait before the `retry`-th retry (1-based).

        The base delay doubles with every retry and is capped at
        `max_backoff_s`; the jitter moves it by up to `jitter_factor` of itself.
        """
        base = self.initial_backoff_s * 2 ** (retry - 1)
        spread = base * self.jitter_factor
        return max(0.0, min(self.max_backoff_s, base + random.uniform(-spread, spread)))


def _call_context(
    signature: Optional[inspect.Signature], context_arg: Optional[str], args: Tuple[Any, ...], kwargs: Dict[str, Any]
) -> Dict[str, str]:
    """Picks the value of `context_arg` out of a call; objects with a `url` are logged by it."""
    if signature is None or context_arg is None:
        return {}
    arguments = signature.bind_partial(*args, **kwargs).arguments
    if context_arg not in arguments:
        return {}
    value = arguments[context_arg]
    return {context_arg: str(getattr(value, "url", value))}


def retry_with_backoff(
    policy: Optional[RetryPolicy] = None,
    *,
    retry_on: Tuple[Type[BaseException], ...],
    system: str,
    context_arg: Optional[str] = None,
) -> Callable[[AsyncCallable], AsyncCallable]:
    """
    Decorates an async callable so that transient failures are retried.

    Args:
        policy: Attempts and backoff. Defaults to `RetryPolicy()`.
        retry_on: The exception classes treated as transient. Anything else
            propagates on the first occurrence.
        system: Label of the retried system, used for `TRANSIENT_ERRORS_TOTAL`
            and in the log events (e.g. "archive_http", "game_store").
        context_arg: Name of a parameter of the decorated callable whose value
            is added to the log events, e.g. "url" or "game_id".

    Once the attempts are used up, the last error is re-raised unchanged.
    """
    policy = policy or RetryPolicy()

    def decorator(func: AsyncCallable) -> AsyncCallable:
        signature = inspect.signature(func) if context_arg else None

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            attempt = 1
            while True:
                try:
                    return await func(*args, **kwargs)
                except retry_on as e:
                    metrics.TRANSIENT_ERRORS_TOTAL.labels(system=system).inc()
                    context = _call_context(signature, context_arg, args, kwargs)
                    if attempt >= policy.attempts:
                        logger.error(
                            "Giving up after repeated transient errors.",
                            system=system, operation=func.__name__, attempts=attempt, error=str(e), **context,
                        )
                        raise
                    wait_s = policy.delay_before(attempt)
                    logger.warning(
                        "Transient error, retrying.",
                        system=system, operation=func.__name__, attempt=attempt,
                        wait_seconds=round(wait_s, 2), error=str(e), **context,
                    )
                    await asyncio.sleep(wait_s)
                    attempt += 1
        return wrapper
    return decorator
