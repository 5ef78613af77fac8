"""Correlation ID middleware for request tracking.

Every request gets a correlation ID, taken from the caller's headers when it
is a valid UUID and generated otherwise, so log lines and error bodies of one
request can be tied together.
"""

import re
import uuid
from typing import Callable, Optional

from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response as StarletteResponse

from souvella.settings.context import clear_correlation_id, set_correlation_id

# Supported correlation ID header names (in order of precedence)
CORRELATION_ID_HEADERS = [
    "X-Correlation-ID",
    "X-Request-ID",
]

RESPONSE_CORRELATION_ID_HEADER = "X-Correlation-ID"

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def generate_correlation_id() -> str:
    """Generate a new correlation ID using UUID v4."""
    return str(uuid.uuid4())


def is_valid_correlation_id(correlation_id: Optional[str]) -> bool:
    """Check that a correlation ID is a UUID.

    Args:
        correlation_id: The correlation ID to validate

    Returns:
        True if valid UUID format, False otherwise
    """
    if not correlation_id:
        return False
    return UUID_PATTERN.match(correlation_id.strip()) is not None


def extract_correlation_id(request: Request) -> Optional[str]:
    """Extract a valid correlation ID from the request headers.

    Args:
        request: The incoming request

    Returns:
        The normalised correlation ID if found and valid, None otherwise
    """
    for header_name in CORRELATION_ID_HEADERS:
        correlation_id = request.headers.get(header_name)
        if not correlation_id:
            continue
        if is_valid_correlation_id(correlation_id):
            return correlation_id.strip().lower()
        logger.warning(
            f"Invalid correlation ID in header {header_name}: {correlation_id}. Generating new ID."
        )
    return None


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Attach a correlation ID to the request context and the response headers."""

    def __init__(self, app, header_name: str = RESPONSE_CORRELATION_ID_HEADER):
        """Initialize the correlation ID middleware.

        Args:
            app: The ASGI application
            header_name: Response header carrying the correlation ID
        """
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: Callable) -> StarletteResponse:
        correlation_id = extract_correlation_id(request) or generate_correlation_id()
        set_correlation_id(correlation_id)

        logger.info(
            f"[{correlation_id}] {request.method} {request.url.path} - "
            f"Client: {request.client.host if request.client else 'unknown'}"
        )

        try:
            response = await call_next(request)
            response.headers[self.header_name] = correlation_id
            logger.info(f"[{correlation_id}] Response status: {response.status_code}")
            return response
        finally:
            clear_correlation_id()
