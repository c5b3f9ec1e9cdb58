"""Application authentication service for registration, login and session lookup."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from artswave_auth.application.ports.auth_token_repository_port import (
    AuthTokenCreateInput,
    AuthTokenRepositoryPort,
)
from artswave_auth.application.ports.password_hasher_port import PasswordHasherPort
from artswave_auth.application.ports.token_service_port import TokenServicePort
from artswave_auth.application.ports.user_repository_port import UserRecord, UserRepositoryPort
from artswave_auth.domain.auth.credentials import (
    validate_login_credentials,
    validate_registration_credentials,
)
from artswave_auth.domain.auth.errors import (
    InvalidCredentialsError,
    NotFoundError,
    StorageError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PublicUser:
    """User view safe to return to callers; never carries the password hash."""

    username: str
    created_at: datetime
    last_login: datetime | None

    @classmethod
    def from_record(cls, record: UserRecord) -> PublicUser:
        return cls(
            username=record.username,
            created_at=record.created_at,
            last_login=record.last_login,
        )


@dataclass(frozen=True)
class LoginResult:
    """Successful login payload."""

    user: PublicUser
    token: str
    expires_at: datetime


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


class AuthService:
    """Register accounts, verify credentials and issue session tokens.

    The service keeps no mutable state between calls. Password hashing and
    verification run on worker threads so a slow bcrypt round never blocks the
    event loop serving other requests.
    """

    def __init__(
        self,
        *,
        users: UserRepositoryPort,
        password_hasher: PasswordHasherPort,
        auth_tokens: AuthTokenRepositoryPort,
        token_service: TokenServicePort,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._users = users
        self._password_hasher = password_hasher
        self._auth_tokens = auth_tokens
        self._token_service = token_service
        self._now = now or _utc_now

    async def register(self, *, username: str | None, password: str | None) -> PublicUser:
        """Validate, hash, then persist one new account.

        Raises:
            ValidationError: input fails length/presence rules.
            DuplicateUsernameError: username already taken.
            HashingError: bcrypt failed.
            StorageError: store unreachable or timed out.
        """

        credentials = validate_registration_credentials(username=username, password=password)
        password_hash = await asyncio.to_thread(
            self._password_hasher.hash_password,
            credentials.password,
        )
        record = await self._users.create_user(
            username=credentials.username,
            password_hash=password_hash,
        )
        logger.info("auth_register_succeeded username=%s", record.username)
        return PublicUser.from_record(record)

    async def login(self, *, username: str | None, password: str | None) -> LoginResult:
        """Verify credentials, advance last_login and issue a session token.

        Unknown usernames and wrong passwords raise the same
        ``InvalidCredentialsError`` so responses cannot reveal which accounts exist.
        """

        credentials = validate_login_credentials(username=username, password=password)

        user = await self._users.get_by_username(username=credentials.username)
        if user is None:
            logger.info("auth_login_failed reason=invalid_credentials")
            raise InvalidCredentialsError()

        is_valid = await asyncio.to_thread(
            self._password_hasher.verify_password,
            password=credentials.password,
            password_hash=user.password_hash,
        )
        if not is_valid:
            logger.info("auth_login_failed reason=invalid_credentials")
            raise InvalidCredentialsError()

        try:
            updated = await self._users.record_login(
                username=user.username,
                logged_in_at=self._now(),
            )
        except NotFoundError as exc:
            logger.warning("auth_login_user_vanished username=%s", user.username)
            raise StorageError("user record changed during login") from exc

        issued = self._token_service.issue_token()
        await self._auth_tokens.create_token(
            AuthTokenCreateInput(
                user_id=updated.user_id,
                token_hash=issued.token_hash,
                expires_at=issued.expires_at,
            )
        )
        logger.info("auth_login_succeeded username=%s", updated.username)
        return LoginResult(
            user=PublicUser.from_record(updated),
            token=issued.token,
            expires_at=issued.expires_at,
        )

    async def resolve_session(self, *, token: str) -> PublicUser | None:
        """Return the owner of an unexpired session token, or None."""

        token_hash = self._token_service.hash_token(token)
        token_record = await self._auth_tokens.get_active_by_hash(token_hash=token_hash)
        if token_record is None:
            return None

        user = await self._users.get_by_id(user_id=token_record.user_id)
        if user is None:
            return None
        return PublicUser.from_record(user)
