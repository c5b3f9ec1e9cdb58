"""Auth header parsing and session resolution for protected endpoints."""

from __future__ import annotations

from artswave_auth.application.services.auth_service import AuthService, PublicUser


class MissingAuthTokenError(PermissionError):
    """Raised when a bearer token is required but not provided."""


class InvalidAuthTokenError(PermissionError):
    """Raised when bearer token header or persisted token is invalid."""


def extract_bearer_token(authorization_header: str | None) -> str:
    """Extract opaque token from standard `Authorization: Bearer <token>` header."""

    if authorization_header is None or not authorization_header.strip():
        raise MissingAuthTokenError("missing bearer token")

    parts = authorization_header.strip().split()
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise InvalidAuthTokenError("invalid bearer token header")

    return parts[1]


class SessionAuthGuard:
    """Resolve the authenticated caller from a bearer token."""

    def __init__(self, *, auth_service: AuthService) -> None:
        self._auth_service = auth_service

    async def require_user(self, *, authorization_header: str | None) -> PublicUser:
        """Return the session owner or raise a token error."""

        token = extract_bearer_token(authorization_header)
        user = await self._auth_service.resolve_session(token=token)
        if user is None:
            raise InvalidAuthTokenError("invalid or expired auth token")
        return user
