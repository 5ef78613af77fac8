"""Request-scoped context, stored in context variables so it is async-safe."""

from contextvars import ContextVar
from typing import Optional

_correlation_id_context: ContextVar[Optional[str]] = ContextVar(
    "correlation_id", default=None
)


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current request."""
    _correlation_id_context.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    """Get the correlation ID of the current request, if any."""
    return _correlation_id_context.get()


def clear_correlation_id() -> None:
    """Clear the correlation ID once the request is done."""
    _correlation_id_context.set(None)
