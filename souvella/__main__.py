"""Main entry point for the Souvella backend."""

import uvicorn

from souvella.settings import settings


def main() -> None:
    """Start the application with uvicorn."""
    if settings.reload:
        # With reload uvicorn expects an import string
        uvicorn.run(
            "souvella.application:get_app",
            factory=True,
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level.value.lower(),
            reload=True,
        )
    else:
        from souvella.application import get_app

        uvicorn.run(
            get_app(),
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level.value.lower(),
        )


if __name__ == "__main__":
    main()
