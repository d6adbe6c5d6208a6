"""FastAPI application entry point.

This module creates and configures the FastAPI application, including:
- Exception handlers for AuthError and request validation
- Security headers
- API v1 router mounting
- Health check endpoint

Collaborators are built from explicit Settings inside create_app() and kept
on app.state.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from taskboard_auth.api.v1.router import router as v1_router
from taskboard_auth.core.config import Settings, load_settings
from taskboard_auth.core.database import create_engine_and_factory, init_models
from taskboard_auth.core.errors import AuthError
from taskboard_auth.core.responses import ErrorDetail, ErrorResponse
from taskboard_auth.providers.email.base import EmailSender
from taskboard_auth.providers.factory import get_email_sender, get_webauthn_provider
from taskboard_auth.providers.webauthn.base import WebAuthnProvider
from taskboard_auth.services.session_manager import SessionManager

logger = structlog.get_logger()


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to every response.

    HSTS is only sent in production (HTTPS is terminated at the proxy).
    """

    def __init__(self, app: ASGIApp, *, production: bool) -> None:
        super().__init__(app)
        self._production = production

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        # Auth responses carry session state
        if request.url.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-store, max-age=0"

        response.headers["Content-Security-Policy"] = (
            "default-src 'none'; frame-ancestors 'none'"
        )

        if self._production:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        return response


def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Render an AuthError as the error envelope.

    Only the kind and its public message reach the client; ``detail`` is
    logged.
    """
    logger.info(
        "auth_error",
        code=str(exc.kind),
        detail=exc.detail,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(code=str(exc.kind), message=exc.message)
        ).model_dump(exclude_none=True),
    )


def validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Convert FastAPI's validation errors to the standard envelope (400)."""
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(
            error=ErrorDetail(
                code="VALIDATION_ERROR",
                message="Request validation failed",
                details=[
                    {"loc": list(e["loc"]), "msg": e["msg"], "type": e["type"]}
                    for e in exc.errors()
                ],
            )
        ).model_dump(),
    )


def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions; never exposes stack traces."""
    logger.exception("Unhandled exception", exc_info=exc, path=str(request.url.path))

    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="INTERNAL_ERROR",
                message="An unexpected error occurred",
            )
        ).model_dump(exclude_none=True),
    )


def create_app(
    settings: Settings | None = None,
    *,
    email_sender: EmailSender | None = None,
    webauthn: WebAuthnProvider | None = None,
    create_tables: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Validated settings. Loaded from the environment if omitted.
        email_sender: Email collaborator override (tests).
        webauthn: WebAuthn primitive override (tests).
        create_tables: Run metadata.create_all() on startup.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or load_settings()
    logging.basicConfig(level=settings.log_level.upper())

    engine, session_factory = create_engine_and_factory(settings)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        if create_tables:
            await init_models(engine)
        yield
        await engine.dispose()

    app = FastAPI(
        title=f"{settings.app_name} Auth API",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.session_manager = SessionManager(settings)
    app.state.email_sender = email_sender or get_email_sender(settings)
    app.state.webauthn = webauthn or get_webauthn_provider()

    app.add_middleware(
        SecurityHeadersMiddleware,
        production=settings.environment == "production",
    )

    app.add_exception_handler(AuthError, auth_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, internal_error_handler)

    app.include_router(v1_router, prefix="/api/v1")

    @app.get("/health")
    def health_check() -> dict:
        """Health check endpoint for monitoring."""
        return {"status": "healthy"}

    return app
