"""Opaque bearer token generation and hashing."""

from __future__ import annotations

import hashlib
import secrets
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from artswave_auth.application.ports.token_service_port import IssuedToken, TokenServicePort

DEFAULT_TOKEN_TTL = timedelta(hours=24)
_TOKEN_BYTES = 32


def _default_token_factory() -> str:
    return secrets.token_urlsafe(_TOKEN_BYTES)


def _default_now() -> datetime:
    return datetime.now(tz=UTC)


class OpaqueTokenService(TokenServicePort):
    """Issue random session tokens; only their SHA-256 digest is ever persisted."""

    def __init__(
        self,
        *,
        token_ttl: timedelta = DEFAULT_TOKEN_TTL,
        token_factory: Callable[[], str] | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        if token_ttl <= timedelta(0):
            raise ValueError("token_ttl must be positive")
        self._token_ttl = token_ttl
        self._token_factory = token_factory or _default_token_factory
        self._now = now or _default_now

    def issue_token(self) -> IssuedToken:
        """Generate a new token and compute its hash and expiry."""

        token = self._token_factory()
        return IssuedToken(
            token=token,
            token_hash=self.hash_token(token),
            expires_at=self._now() + self._token_ttl,
        )

    def hash_token(self, token: str) -> str:
        return hashlib.sha256(token.encode("utf-8")).hexdigest()
