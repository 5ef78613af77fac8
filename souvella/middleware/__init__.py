"""Middleware package for the Souvella backend."""

from souvella.middleware.correlation_id import (
    CORRELATION_ID_HEADERS,
    RESPONSE_CORRELATION_ID_HEADER,
    CorrelationIdMiddleware,
    extract_correlation_id,
    generate_correlation_id,
    is_valid_correlation_id,
)

__all__ = [
    "CorrelationIdMiddleware",
    "generate_correlation_id",
    "extract_correlation_id",
    "is_valid_correlation_id",
    "CORRELATION_ID_HEADERS",
    "RESPONSE_CORRELATION_ID_HEADER",
]
