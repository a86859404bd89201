"""
Main entrypoint for the Reactivities API.

This module assembles the FastAPI application, sets up logging,
registers the global exception handlers and includes the routers.  The
``create_app`` function builds and configures the app, which is then
instantiated at module import time as ``app``.  Importing the app here
makes it easy to run with uvicorn or another ASGI server, e.g.::

    uvicorn reactivities_api.app.main:app --reload

The application title and version are provided via ``Settings`` from
``core.config``.
"""

import logging
import traceback
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .api.v1.endpoints import comments
from .api.v1.router import router as api_router
from .core.config import settings
from .core.db import init_db
from .core.exceptions import AppError, ValidationFailedError, format_validation_errors
from .core.logging_config import setup_logging
from .core.seed import seed_data


logger = logging.getLogger(__name__)

VALIDATION_DETAIL = "One or more validation errors has occurred"


def validation_problem(errors: dict, detail: str = VALIDATION_DETAIL) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "type": "ValidationFailure",
            "title": "Validation error",
            "status": 400,
            "detail": detail,
            "errors": errors,
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Map application exceptions to HTTP responses."""

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = format_validation_errors(exc.errors())
        logger.info("Validation failed for %s %s: %s", request.method, request.url.path, errors)
        return validation_problem(errors)

    @app.exception_handler(ValidationFailedError)
    async def validation_failed_handler(request: Request, exc: ValidationFailedError) -> JSONResponse:
        logger.info("Validation failed for %s %s: %s", request.method, request.url.path, exc.errors)
        return validation_problem(exc.errors, exc.message)

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"statusCode": exc.status_code, "message": exc.message},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error for %s %s", request.method, request.url.path)
        details = None
        if settings.debug:
            details = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return JSONResponse(
            status_code=500,
            content={"statusCode": 500, "message": str(exc), "details": details},
        )


def create_app() -> FastAPI:
    """Create and configure a FastAPI application.

    This function performs one-time setup tasks such as configuring
    logging, CORS and exception handlers and including the routers.
    Database migrations and demo data are applied on startup.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    # Initialise logging before anything else so that imports below can
    # safely log messages.
    setup_logging(settings.log_level, settings.log_file or None)

    app = FastAPI(title=settings.project_name, version=settings.api_version)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api")
    app.include_router(comments.router)

    # Locally stored photos; the directory is created on startup.
    app.mount(
        settings.photo_base_url,
        StaticFiles(directory=settings.photo_storage_dir, check_dir=False),
        name="photos",
    )

    @app.on_event("startup")
    async def startup_event() -> None:
        # Apply migrations at startup.  This will create the database
        # file if it does not exist and ensure all tables are up to date.
        init_db()
        Path(settings.photo_storage_dir).mkdir(parents=True, exist_ok=True)
        if settings.seed_data:
            seed_data()
        logger.info("%s %s started", settings.project_name, settings.api_version)

    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()
