"""SQLAlchemy adapter for the credential store."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import cast
from uuid import UUID, uuid4

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from artswave_auth.application.ports.user_repository_port import UserRecord, UserRepositoryPort
from artswave_auth.domain.auth.errors import DuplicateUsernameError, NotFoundError
from artswave_auth.infrastructure.db.metadata import users
from artswave_auth.infrastructure.db.session import dispose_session_factory
from artswave_auth.infrastructure.db.storage_guard import (
    DEFAULT_STORAGE_TIMEOUT_SECONDS,
    guard_storage,
)
from artswave_auth.infrastructure.db.timestamps import as_utc

_USERNAME_CONFLICT_MARKERS = ("uq_users_username", "users.username")


class SqlAlchemyUserRepository(UserRepositoryPort):
    """User repository backed by SQLAlchemy async sessions.

    Username uniqueness is decided by the ``uq_users_username`` constraint on a
    single INSERT, never by a prior lookup.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        timeout_seconds: float = DEFAULT_STORAGE_TIMEOUT_SECONDS,
    ) -> None:
        self._session_factory = session_factory
        self._timeout_seconds = timeout_seconds

    async def create_user(self, *, username: str, password_hash: str) -> UserRecord:
        """Insert one user row and return it, or raise DuplicateUsernameError."""

        statement = sa.insert(users).values(
            id=uuid4(),
            username=username,
            password_hash=password_hash,
            created_at=datetime.now(tz=UTC),
        ).returning(*users.c)

        async with guard_storage(operation="create_user", timeout_seconds=self._timeout_seconds):
            async with self._session_factory() as session:
                try:
                    result = await session.execute(statement)
                    row = result.mappings().one()
                    await session.commit()
                except IntegrityError as exc:
                    await session.rollback()
                    if _is_username_conflict(exc):
                        raise DuplicateUsernameError(username=username) from exc
                    raise

        return _to_user_record(row)

    async def get_by_username(self, *, username: str) -> UserRecord | None:
        """Return user by exact username or None."""

        statement = sa.select(*users.c).where(users.c.username == username).limit(1)
        return await self._fetch_one(statement, operation="get_by_username")

    async def get_by_id(self, *, user_id: UUID) -> UserRecord | None:
        """Return user by id or None."""

        statement = sa.select(*users.c).where(users.c.id == user_id).limit(1)
        return await self._fetch_one(statement, operation="get_by_id")

    async def record_login(self, *, username: str, logged_in_at: datetime) -> UserRecord:
        """Set last_login unless a later login is already stored."""

        logged_in = sa.bindparam("logged_in_at", logged_in_at, type_=users.c.last_login.type)
        statement = (
            sa.update(users)
            .where(users.c.username == username)
            .values(
                last_login=sa.case(
                    (users.c.last_login.is_(None), logged_in),
                    (users.c.last_login < logged_in, logged_in),
                    else_=users.c.last_login,
                )
            )
            .returning(*users.c)
        )

        async with guard_storage(operation="record_login", timeout_seconds=self._timeout_seconds):
            async with self._session_factory() as session:
                result = await session.execute(statement)
                row = result.mappings().first()
                await session.commit()

        if row is None:
            raise NotFoundError(username=username)
        return _to_user_record(row)

    async def close(self) -> None:
        """Release the connection pool owned by this store."""

        await dispose_session_factory(self._session_factory)

    async def _fetch_one(self, statement: sa.Select, *, operation: str) -> UserRecord | None:
        async with guard_storage(operation=operation, timeout_seconds=self._timeout_seconds):
            async with self._session_factory() as session:
                result = await session.execute(statement)
                row = result.mappings().first()

        if row is None:
            return None
        return _to_user_record(row)


def _is_username_conflict(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    return any(marker in message for marker in _USERNAME_CONFLICT_MARKERS)


def _to_user_record(row: sa.RowMapping) -> UserRecord:
    raw_user_id = row["id"]
    user_id = raw_user_id if isinstance(raw_user_id, UUID) else UUID(str(raw_user_id))
    created_at = as_utc(cast(datetime, row["created_at"]))
    assert created_at is not None
    return UserRecord(
        user_id=user_id,
        username=cast(str, row["username"]),
        password_hash=cast(str, row["password_hash"]),
        created_at=created_at,
        last_login=as_utc(cast(datetime | None, row["last_login"])),
    )
