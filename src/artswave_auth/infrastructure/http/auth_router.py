"""FastAPI router for register, login and current-session endpoints."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import ValidationError as PayloadValidationError

from artswave_auth.application.dto.auth_models import (
    CredentialsRequest,
    CurrentUserResponse,
    LoginResponse,
    RegisterResponse,
)
from artswave_auth.application.services.auth_service import AuthService
from artswave_auth.domain.auth.errors import (
    DuplicateUsernameError,
    HashingError,
    InvalidCredentialsError,
    StorageError,
    ValidationError,
)
from artswave_auth.infrastructure.http.auth_guard import (
    InvalidAuthTokenError,
    MissingAuthTokenError,
    SessionAuthGuard,
)

logger = logging.getLogger(__name__)

_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
_MISSING_CREDENTIALS_DETAIL = "username and password are required"


async def read_credentials(request: Request) -> CredentialsRequest:
    """Parse a register/login body sent as JSON or as an urlencoded form."""

    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    try:
        if content_type == _FORM_CONTENT_TYPE:
            form = await request.form()
            payload: object = {
                key: value for key, value in form.items() if isinstance(value, str)
            }
        else:
            payload = await request.json()
        return CredentialsRequest.model_validate(payload)
    except (ValueError, PayloadValidationError) as exc:
        raise HTTPException(status_code=400, detail=_MISSING_CREDENTIALS_DETAIL) from exc


def build_auth_router(*, auth_service: AuthService, auth_guard: SessionAuthGuard) -> APIRouter:
    """Build router exposing the authentication endpoints under `/api`."""

    router = APIRouter(prefix="/api", tags=["auth"])

    @router.post("/register", status_code=201, response_model=RegisterResponse)
    async def register(
        payload: Annotated[CredentialsRequest, Depends(read_credentials)],
    ) -> RegisterResponse:
        try:
            user = await auth_service.register(
                username=payload.username,
                password=payload.password,
            )
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except DuplicateUsernameError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        except (StorageError, HashingError) as exc:
            logger.error("auth_register_error error_type=%s", type(exc).__name__)
            raise HTTPException(
                status_code=500,
                detail="internal server error during registration",
            ) from exc

        return RegisterResponse(username=user.username, created_at=user.created_at)

    @router.post("/login", response_model=LoginResponse)
    async def login(
        payload: Annotated[CredentialsRequest, Depends(read_credentials)],
    ) -> LoginResponse:
        try:
            result = await auth_service.login(
                username=payload.username,
                password=payload.password,
            )
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except InvalidCredentialsError as exc:
            raise HTTPException(status_code=401, detail=str(exc)) from exc
        except (StorageError, HashingError) as exc:
            logger.error("auth_login_error error_type=%s", type(exc).__name__)
            raise HTTPException(
                status_code=500,
                detail="internal server error during login",
            ) from exc

        return LoginResponse(
            username=result.user.username,
            last_login=result.user.last_login,
            token=result.token,
            expires_at=result.expires_at,
        )

    @router.get("/me", response_model=CurrentUserResponse)
    async def current_user(
        authorization: Annotated[str | None, Header()] = None,
    ) -> CurrentUserResponse:
        try:
            user = await auth_guard.require_user(authorization_header=authorization)
        except (MissingAuthTokenError, InvalidAuthTokenError) as exc:
            raise HTTPException(status_code=401, detail=str(exc)) from exc
        except StorageError as exc:
            logger.error("auth_session_error error_type=%s", type(exc).__name__)
            raise HTTPException(status_code=500, detail="internal server error") from exc

        return CurrentUserResponse(
            username=user.username,
            created_at=user.created_at,
            last_login=user.last_login,
        )

    return router
