"""Trace ID and operation context propagation for structured logging.

Two context variables follow each request through its async call chain:

- ``trace_id``: a UUIDv4 string correlating every log line of one request
- ``operation``: the external operation being served (e.g. ``addDrug``)

Both are read by the logging filter and written into every JSON record.

Example:
    >>> from libs.common.logging.context import operation_context, set_trace_id
    >>> set_trace_id("abc-123")
    >>> with operation_context("registerCompany"):
    ...     logger.info("Submitting")  # record carries trace_id and operation
"""

import contextvars
import uuid
from collections.abc import Iterator
from contextlib import contextmanager

_trace_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("trace_id", default=None)
_operation_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation", default=None
)

# HTTP header name for trace ID propagation
TRACE_ID_HEADER = "X-Trace-ID"


def generate_trace_id() -> str:
    """Generate a new unique trace ID (UUID v4 string)."""
    return str(uuid.uuid4())


def get_trace_id() -> str | None:
    """Get the current trace ID from context, or None if unset."""
    return _trace_id_var.get()


def set_trace_id(trace_id: str) -> None:
    """Set the trace ID for the current context.

    Args:
        trace_id: The trace ID to set

    Raises:
        ValueError: If trace_id is empty or None
    """
    if not trace_id:
        raise ValueError("Trace ID cannot be empty")
    _trace_id_var.set(trace_id)


def clear_trace_id() -> None:
    """Clear the trace ID from the current context."""
    _trace_id_var.set(None)


def get_operation() -> str | None:
    """Get the operation name bound to the current context."""
    return _operation_var.get()


@contextmanager
def operation_context(operation: str) -> Iterator[str]:
    """Bind an operation name to all log records emitted inside the block.

    The previous value is restored on exit, so nested scopes behave.

    Args:
        operation: External operation name (e.g. "createShipment")

    Yields:
        The bound operation name
    """
    token = _operation_var.set(operation)
    try:
        yield operation
    finally:
        _operation_var.reset(token)

