"""
DotPrint FastAPI Application

HTTP entry point for collecting dot patterns. Authentication, CAPTCHA checks
and rate limiting happen upstream; this app validates, extracts features,
stores and reports.

Example usage:
    # Start the server
    uvicorn app:app --host 0.0.0.0 --port 8000

    # Health check
    curl http://localhost:8000/health
"""

from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from api.routes.admin import router as admin_router
from api.routes.leaderboard import router as leaderboard_router
from api.routes.patterns import router as patterns_router
from core.config import Settings, load_settings
from core.errors import ValidationError, install_error_handlers, validation_error_response
from core.logging import RequestLoggingMiddleware, get_logger, setup_logging
from core.services import Services

logger = get_logger(__name__)

VERSION = "0.1.0"


# Query parameters whose parse failures carry their own constraint name
QUERY_CONSTRAINTS = {
    "limit": ("Limit must be an integer", "limit"),
}


def _as_validation_error(exc: RequestValidationError) -> ValidationError:
    for error in exc.errors():
        loc = error.get("loc", ())
        if len(loc) >= 2 and loc[0] == "query" and loc[1] in QUERY_CONSTRAINTS:
            message, constraint = QUERY_CONSTRAINTS[loc[1]]
            return ValidationError(message, constraint=constraint)
    return ValidationError("Invalid request format.", constraint="shape")


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies and query strings get the same 400 shape as core validation errors."""
    error = _as_validation_error(exc)
    logger.info(
        f"Malformed request on {request.url.path}",
        extra={"path": request.url.path, "constraint": error.constraint}
    )
    return validation_error_response(error)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Databases are opened in the lifespan handler, so creating the app has no
    side effects until it starts serving.

    Args:
        settings: Configuration to use instead of the environment
    """
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        services = Services.from_settings(settings)
        await services.init()
        app.state.services = services
        logger.info("Starting DotPrint application")
        try:
            yield
        finally:
            logger.info("Shutting down DotPrint application")
            await services.dispose()

    app = FastAPI(
        title="DotPrint",
        description="Collect hand-drawn dot patterns and their geometric features",
        version=VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)
    install_error_handlers(app)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)

    app.include_router(patterns_router)
    app.include_router(leaderboard_router)
    app.include_router(admin_router)

    @app.get("/health", tags=["health"])
    async def health_check() -> Dict[str, Any]:
        return {"status": "ok", "service": "dotprint", "version": VERSION}

    return app


app = create_app()


if __name__ == "__main__":
    settings = load_settings()
    setup_logging(level=settings.log_level, format_type=settings.log_format)
    uvicorn.run(app, host="0.0.0.0", port=8000, log_level="info")
