"""FastAPI application factory."""

from typing import Any

import orjson
from fastapi import FastAPI, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from loguru import logger
from starlette.exceptions import HTTPException

from souvella.exceptions import (
    DailyUploadLimitError,
    NotFoundError,
    SouvellaBaseException,
    StoreUnavailableError,
    ValidationError,
)
from souvella.lifespan import lifespan_setup
from souvella.middleware import CorrelationIdMiddleware
from souvella.routes.router import api_router
from souvella.settings import settings
from souvella.settings.context import get_correlation_id

STORE_UNAVAILABLE_DETAIL = "The memory jar is unavailable right now, please try again"


class ORJSONResponse(Response):
    """JSON response rendered with orjson."""

    media_type = "application/json"

    def render(self, content: Any) -> bytes:
        return orjson.dumps(content, option=orjson.OPT_SERIALIZE_DATACLASS)


def _error_response(status_code: int, detail: Any) -> ORJSONResponse:
    return ORJSONResponse(
        status_code=status_code,
        content=jsonable_encoder({"detail": detail, "correlation_id": get_correlation_id()}),
    )


def _register_exception_handlers(app: FastAPI) -> None:
    """Map domain errors to HTTP responses carrying the correlation ID."""

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request, exc: NotFoundError):
        return _error_response(status.HTTP_404_NOT_FOUND, str(exc))

    @app.exception_handler(DailyUploadLimitError)
    async def upload_limit_handler(request, exc: DailyUploadLimitError):
        return _error_response(status.HTTP_409_CONFLICT, str(exc))

    @app.exception_handler(ValidationError)
    async def validation_handler(request, exc: ValidationError):
        return _error_response(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable_handler(request, exc: StoreUnavailableError):
        logger.error(f"Store unavailable | path={request.url.path} error={exc}")
        return _error_response(status.HTTP_503_SERVICE_UNAVAILABLE, STORE_UNAVAILABLE_DETAIL)

    @app.exception_handler(SouvellaBaseException)
    async def domain_error_handler(request, exc: SouvellaBaseException):
        logger.error(f"Unhandled domain error | path={request.url.path} error={exc!r}")
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request, exc: HTTPException):
        return _error_response(exc.status_code, exc.detail)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request, exc: RequestValidationError):
        return _error_response(422, exc.errors())

    @app.exception_handler(Exception)
    async def general_exception_handler(request, exc: Exception):
        logger.opt(exception=exc).error(f"Unhandled exception: {exc}")
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def get_app() -> FastAPI:
    """
    Get FastAPI application.

    This is the main constructor of an application.

    :return: application.
    """
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan_setup,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=f"{settings.api_prefix}/openapi.json",
        default_response_class=ORJSONResponse,
    )

    app.add_middleware(CorrelationIdMiddleware)

    cors_origins = settings.cors_origins_list
    if "*" in cors_origins and settings.cors_allow_credentials:
        logger.warning(
            "SECURITY WARNING: CORS is configured with allow_origins=['*'] and "
            "allow_credentials=True. Consider explicitly whitelisting allowed origins."
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=[
            "Accept",
            "Content-Type",
            "Idempotency-Key",
            "X-Correlation-ID",
            "X-Request-ID",
        ],
        expose_headers=["X-Correlation-ID"],
    )

    app.include_router(router=api_router, prefix=settings.api_prefix)

    _register_exception_handlers(app)

    return app
