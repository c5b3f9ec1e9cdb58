"""auth-api entrypoint and HTTP route wiring."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from artswave_auth.application.services.auth_service import AuthService
from artswave_auth.config.settings import load_settings
from artswave_auth.infrastructure.db.auth_token_repository import SqlAlchemyAuthTokenRepository
from artswave_auth.infrastructure.db.session import create_session_factory
from artswave_auth.infrastructure.db.user_repository import SqlAlchemyUserRepository
from artswave_auth.infrastructure.http.auth_guard import SessionAuthGuard
from artswave_auth.infrastructure.http.auth_router import build_auth_router
from artswave_auth.infrastructure.logging import configure_logging
from artswave_auth.infrastructure.security.password_hasher import BcryptPasswordHasher
from artswave_auth.infrastructure.security.token_service import OpaqueTokenService

AUTH_API_HOST = "0.0.0.0"
logger = logging.getLogger(__name__)


def build_auth_service(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    users: SqlAlchemyUserRepository,
    bcrypt_rounds: int,
    token_ttl: timedelta,
    storage_timeout_seconds: float,
) -> AuthService:
    """Build authentication service with SQLAlchemy-backed dependencies."""

    return AuthService(
        users=users,
        password_hasher=BcryptPasswordHasher(rounds=bcrypt_rounds),
        auth_tokens=SqlAlchemyAuthTokenRepository(
            session_factory,
            timeout_seconds=storage_timeout_seconds,
        ),
        token_service=OpaqueTokenService(token_ttl=token_ttl),
    )


def create_app(
    *,
    auth_service: AuthService | None = None,
    cors_allowed_origins: list[str] | None = None,
) -> FastAPI:
    """Create FastAPI app exposing register, login and session endpoints.

    When ``auth_service`` is omitted, settings are loaded from the environment and
    the app owns the database pool, which is disposed on shutdown.
    """

    owned_users: SqlAlchemyUserRepository | None = None
    if auth_service is None:
        settings = load_settings()
        configure_logging(level=settings.log_level)
        session_factory = create_session_factory(settings.database_url)
        owned_users = SqlAlchemyUserRepository(
            session_factory,
            timeout_seconds=settings.storage_timeout_seconds,
        )
        auth_service = build_auth_service(
            session_factory,
            users=owned_users,
            bcrypt_rounds=settings.bcrypt_rounds,
            token_ttl=timedelta(seconds=settings.auth_token_ttl_seconds),
            storage_timeout_seconds=settings.storage_timeout_seconds,
        )
        if cors_allowed_origins is None:
            cors_allowed_origins = settings.cors_allowed_origins

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        logger.info("auth_api_started")
        yield
        if owned_users is not None:
            await owned_users.close()
        logger.info("auth_api_stopped")

    app = FastAPI(lifespan=lifespan)
    if cors_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_allowed_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(
        build_auth_router(
            auth_service=auth_service,
            auth_guard=SessionAuthGuard(auth_service=auth_service),
        )
    )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        _ = request, exc
        return JSONResponse(
            status_code=400,
            content={"detail": "username and password are required"},
        )

    @app.exception_handler(404)
    async def not_found_handler(request: Request, exc: Exception) -> JSONResponse:
        _ = request, exc
        return JSONResponse(status_code=404, content={"detail": "endpoint not found"})

    return app


def run_asgi_server(*, host: str = AUTH_API_HOST, port: int) -> None:
    """Run auth-api as a long-lived ASGI process using application factory mode."""

    uvicorn.run(
        "apps.auth_api.main:create_app",
        host=host,
        port=port,
        factory=True,
    )


def main() -> None:
    """Run auth-api runtime process."""

    run_asgi_server(port=load_settings().port)


if __name__ == "__main__":
    main()
