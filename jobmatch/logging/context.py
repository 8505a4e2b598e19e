"""Context propagation for structured logging.

Fields pushed with :class:`log_context` are attached to every record emitted
inside the scope (``run_id``, ``owner_id``, ``job_url``...). Context lives in a
``ContextVar`` so it does not leak between threads; use :func:`bind_log_context`
to carry the caller's context into a worker thread.
"""

import contextvars
import functools
from contextvars import ContextVar, Token
from typing import Any, Callable, Dict, Optional, TypeVar

T = TypeVar("T")

LogContextVar: ContextVar[Dict[str, Any]] = ContextVar("log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the active logging context."""
    return LogContextVar.get().copy()


def push_log_context(**kwargs) -> Token:
    """Merge ``kwargs`` into the active context and return a reset token."""
    return LogContextVar.set({**LogContextVar.get(), **kwargs})


def pop_log_context(token: Token) -> None:
    """Restore the context captured by :func:`push_log_context`."""
    LogContextVar.reset(token)


def clear_log_context() -> None:
    """Drop every context field. Mostly useful in tests."""
    LogContextVar.set({})


def bind_log_context(func: Callable[..., T]) -> Callable[..., T]:
    """Wrap ``func`` so it runs inside a snapshot of the caller's context.

    Thread pools do not inherit context variables, so tasks submitted to an
    executor lose ``run_id`` and friends unless they are bound first.

    Example:
        >>> with log_context(run_id="abc"):
        ...     executor.submit(bind_log_context(process_record), record)
    """
    snapshot = contextvars.copy_context()

    @functools.wraps(func)
    def runner(*args, **kwargs) -> T:
        return snapshot.copy().run(func, *args, **kwargs)

    return runner


class log_context:
    """Context manager that scopes extra logging fields.

    Example:
        >>> with log_context(run_id="abc123", owner_id="user-1"):
        ...     logger.info("Searching")  # record carries run_id and owner_id
    """

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.token: Optional[Token] = None

    def __enter__(self):
        self.token = push_log_context(**self.kwargs)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token is not None:
            pop_log_context(self.token)
        return False
