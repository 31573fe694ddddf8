"""
Correlation ID generation and context management.

Provides short IDs tying a request (or a maintenance job run) to its log
lines, Sentry events and error responses.
"""

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

# Context variable for request-scoped correlation ID
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")


def generate_correlation_id() -> str:
    """
    Generate a short, unique correlation ID.

    Returns:
        8-character hexadecimal string (e.g. "abc123de").
    """
    return uuid.uuid4().hex[:8]


def get_correlation_id() -> str:
    """Return the current context's correlation ID, or "" if none is set."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """
    Set correlation ID for current request context.

    Args:
        correlation_id: The correlation ID to set for this request.
    """
    correlation_id_var.set(correlation_id)


@contextmanager
def correlation_scope(prefix: str = "") -> Iterator[str]:
    """
    Bind a fresh correlation ID for the duration of a block.

    Used by scheduled jobs and CLI tasks, which have no incoming request.

    Args:
        prefix: Optional label prepended to the generated ID (e.g. "job").

    Yields:
        The correlation ID bound for the block.
    """
    correlation_id = generate_correlation_id()
    if prefix:
        correlation_id = f"{prefix}-{correlation_id}"
    token = correlation_id_var.set(correlation_id)
    try:
        yield correlation_id
    finally:
        correlation_id_var.reset(token)
