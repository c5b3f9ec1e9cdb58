"""SQLAlchemy adapter for opaque auth token persistence."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import cast
from uuid import UUID

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from artswave_auth.application.ports.auth_token_repository_port import (
    AuthTokenCreateInput,
    AuthTokenRecord,
    AuthTokenRepositoryPort,
)
from artswave_auth.infrastructure.db.metadata import auth_tokens
from artswave_auth.infrastructure.db.storage_guard import (
    DEFAULT_STORAGE_TIMEOUT_SECONDS,
    guard_storage,
)
from artswave_auth.infrastructure.db.timestamps import as_utc


class SqlAlchemyAuthTokenRepository(AuthTokenRepositoryPort):
    """Auth token repository backed by SQLAlchemy async sessions."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        timeout_seconds: float = DEFAULT_STORAGE_TIMEOUT_SECONDS,
    ) -> None:
        self._session_factory = session_factory
        self._timeout_seconds = timeout_seconds

    async def create_token(self, payload: AuthTokenCreateInput) -> AuthTokenRecord:
        """Persist a token hash row and return the inserted token record."""

        statement = sa.insert(auth_tokens).values(
            user_id=payload.user_id,
            token_hash=payload.token_hash,
            issued_at=datetime.now(tz=UTC),
            expires_at=payload.expires_at,
        ).returning(*auth_tokens.c)

        async with guard_storage(operation="create_token", timeout_seconds=self._timeout_seconds):
            async with self._session_factory() as session:
                result = await session.execute(statement)
                row = result.mappings().one()
                await session.commit()

        return _to_auth_token_record(row)

    async def get_active_by_hash(self, *, token_hash: str) -> AuthTokenRecord | None:
        """Return token by hash when not expired."""

        now = datetime.now(tz=UTC)
        statement = sa.select(*auth_tokens.c).where(
            auth_tokens.c.token_hash == token_hash,
            auth_tokens.c.expires_at > now,
        ).limit(1)

        async with guard_storage(
            operation="get_active_token",
            timeout_seconds=self._timeout_seconds,
        ):
            async with self._session_factory() as session:
                result = await session.execute(statement)
                row = result.mappings().first()

        if row is None:
            return None
        return _to_auth_token_record(row)


def _to_auth_token_record(row: sa.RowMapping) -> AuthTokenRecord:
    raw_user_id = row["user_id"]
    user_id = raw_user_id if isinstance(raw_user_id, UUID) else UUID(str(raw_user_id))
    issued_at = as_utc(cast(datetime, row["issued_at"]))
    expires_at = as_utc(cast(datetime, row["expires_at"]))
    assert issued_at is not None
    assert expires_at is not None
    return AuthTokenRecord(
        id=int(row["id"]),
        user_id=user_id,
        token_hash=cast(str, row["token_hash"]),
        issued_at=issued_at,
        expires_at=expires_at,
    )
