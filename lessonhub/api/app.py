"""
FastAPI application for the LessonHub backend.

`create_app()` wires settings, storage, the token service, the email
gateway and the workflows onto `app.state` once; request handlers reach
them through small dependency getters. Tests build their own app with an
in-memory store and a fake email gateway.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from lessonhub.api import admin as admin_routes
from lessonhub.api.responses import error
from lessonhub.auth import routes as auth_routes
from lessonhub.auth.admin import AdminService
from lessonhub.auth.jwt import TokenService
from lessonhub.auth.workflows import AuthWorkflows
from lessonhub.config import Settings, get_settings
from lessonhub.core.errors import InternalError, LessonHubError, ValidationFailed
from lessonhub.integrations.email import EmailService
from lessonhub.integrations.sentry import capture_exception, init_sentry
from lessonhub.storage import StorageProvider, UserStore, create_local_storage

logger = logging.getLogger(__name__)


# =============================================================================
# Exception Handlers
# =============================================================================


def _auth_headers(status_code: int) -> dict[str, str] | None:
    return {"WWW-Authenticate": "Bearer"} if status_code == 401 else None


async def handle_app_error(request: Request, exc: LessonHubError) -> JSONResponse:
    errors = exc.errors if isinstance(exc, ValidationFailed) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=error(exc.message, errors=errors),
        headers=_auth_headers(exc.status_code),
    )


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Body/query validation → 400 with one message per field."""
    messages = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{field}: {err.get('msg')}" if field else err.get("msg", ""))
    return JSONResponse(
        status_code=400,
        content=error(ValidationFailed.message, errors=messages),
    )


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


def _make_internal_handler(settings: Settings):
    async def handle_internal_error(request: Request, exc: Exception) -> JSONResponse:
        capture_exception(exc, path=request.url.path, method=request.method)
        detail = f"{type(exc).__name__}: {exc}" if settings.debug else None
        return JSONResponse(
            status_code=500,
            content=error(InternalError.message, detail=detail),
        )

    return handle_internal_error


# =============================================================================
# App Factory
# =============================================================================


def create_app(
    settings: Settings | None = None,
    storage: StorageProvider | None = None,
    email: EmailService | None = None,
) -> FastAPI:
    """Build the application. Everything not passed in comes from settings."""
    settings = settings or get_settings()
    storage = storage or create_local_storage()
    email = email or EmailService(settings)

    logging.basicConfig(level=settings.log_level.upper())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if init_sentry(settings):
            logger.info("Sentry error tracking enabled")
        logger.info(f"LessonHub API starting in {settings.environment} mode")
        yield
        logger.info("LessonHub API shutting down")

    app = FastAPI(
        title="LessonHub API",
        description="Accounts, roles and access control for the LessonHub learning platform",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Process-wide collaborators, read-only after this point
    users = UserStore(storage.metadata)
    tokens = TokenService(settings)
    workflows = AuthWorkflows(users, tokens, email, settings)

    app.state.settings = settings
    app.state.storage = storage
    app.state.users = users
    app.state.tokens = tokens
    app.state.email = email
    app.state.workflows = workflows
    app.state.admin = AdminService(users, workflows)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(LessonHubError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(Exception, _make_internal_handler(settings))

    app.include_router(auth_routes.router)
    app.include_router(admin_routes.router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
