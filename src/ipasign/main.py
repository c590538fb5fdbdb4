"""Main application entrypoint for the IPA signing service."""

import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from ipasign.api import routes_health
from ipasign.api.routes_files import router as files_router
from ipasign.api.routes_sign import router as sign_router, ui_router
from ipasign.core.config import settings
from ipasign.core.exceptions import IpaSignError
from ipasign.core.logging import setup_logging
from ipasign.core.middleware import HTTPErrorLoggingMiddleware, UploadSizeLimitMiddleware
from ipasign.models.signing import ErrorResponse
from ipasign.services.zsign import SigningPool

logger = logging.getLogger(__name__)


def _error_response(status_code: int, error: str, details: str | None = None, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, details=details).model_dump(exclude_none=True),
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Turn every error into a {success: false, error, details?} body."""

    @app.exception_handler(IpaSignError)
    async def handle_service_error(request: Request, exc: IpaSignError) -> JSONResponse:
        return _error_response(exc.status_code, exc.message, exc.details)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        messages = [
            f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', '')}"
            for error in exc.errors()
        ]
        return _error_response(400, "Invalid request", "; ".join(messages) or None)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled error: {exc}", exc_info=exc)
        return _error_response(500, "Internal server error")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    # Initialize logging first
    setup_logging()

    settings.upload_path.mkdir(parents=True, exist_ok=True)
    settings.output_path.mkdir(parents=True, exist_ok=True)

    app = FastAPI(
        title=settings.SERVICE_NAME,
        version=settings.SERVICE_VERSION,
    )
    app.state.signing_pool = SigningPool(settings.MAX_CONCURRENT_SIGNINGS)

    # Added innermost first
    app.add_middleware(UploadSizeLimitMiddleware)
    app.add_middleware(HTTPErrorLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Register routers
    app.include_router(sign_router)
    app.include_router(files_router)
    app.include_router(routes_health.router, tags=["health"])
    app.include_router(ui_router)
    app.mount("/output", StaticFiles(directory=settings.output_path), name="output")

    logger.info(
        "IPA signing service configured",
        extra={
            "domain": settings.public_domain,
            "upload_dir": str(settings.upload_path.resolve()),
            "output_dir": str(settings.output_path.resolve()),
            "zsign_path": settings.ZSIGN_PATH,
            "max_concurrent_signings": settings.MAX_CONCURRENT_SIGNINGS,
        },
    )

    return app


# Export app instance for ASGI servers
app = create_app()


def run() -> None:
    """Console entrypoint: serve the app with uvicorn."""
    uvicorn.run(
        "ipasign.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_config=None,
    )


if __name__ == "__main__":
    run()
