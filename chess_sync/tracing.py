# chess_sync/tracing.py

"""
tracing
~~~~~~~

Correlation ids and step tracing for sync runs.

A run has one `run_id`; every archive game processed in it gets a
`CorrelationID` that is bound to the structlog context while its task runs,
so all log lines about one game can be grepped together.
"""

import functools
import inspect
import time
import uuid
from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import Any, Callable

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CorrelationID:
    """Identifies the processing of one archive game within a sync run."""
    run_id: str
    game_id: str
    task_id: str

    @classmethod
    def for_game(cls, run_id: str, game_url: str) -> "CorrelationID":
        """Builds the id of a game from its archive URL, whose last segment is the game number."""
        return cls(run_id=run_id, game_id=game_url.rstrip("/").rsplit("/", 1)[-1], task_id=uuid.uuid4().hex[:8])

    @property
    def short_id(self) -> str:
        return f"{self.game_id}:{self.task_id}"

    def bound(self) -> AbstractContextManager:
        """Binds `run_id` and `correlation_id` to the log context for a `with` block."""
        return structlog.contextvars.bound_contextvars(run_id=self.run_id, correlation_id=self.short_id)


def trace_step(*context_args: str) -> Callable[[Callable], Callable]:
    """
    Logs the start and end of an async step at debug level.

    The values of the named `context_args` are attached to both events and the
    exit event carries the duration. A step that raises has no exit event;
    reporting the failure is left to the caller.

        @trace_step("archive_url")
        async def _sync_archive(self, archive_url, ...): ...
    """
    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            arguments = signature.bind_partial(*args, **kwargs).arguments
            context = {name: arguments[name] for name in context_args if name in arguments}
            logger.debug("Entering step.", step=func.__qualname__, **context)
            started = time.perf_counter()
            result = await func(*args, **kwargs)
            logger.debug(
                "Exiting step.", step=func.__qualname__, duration_s=round(time.perf_counter() - started, 3), **context
            )
            return result
        return wrapper
    return decorator
