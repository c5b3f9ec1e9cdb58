"""Port for credential store operations used by authentication services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import UUID


@dataclass(frozen=True)
class UserRecord:
    """User persistence model."""

    user_id: UUID
    username: str
    password_hash: str
    created_at: datetime
    last_login: datetime | None


class UserRepositoryPort(Protocol):
    """Credential store contract."""

    async def create_user(self, *, username: str, password_hash: str) -> UserRecord:
        """Insert one user atomically or raise DuplicateUsernameError."""

    async def get_by_username(self, *, username: str) -> UserRecord | None:
        """Return user by exact username or None."""

    async def get_by_id(self, *, user_id: UUID) -> UserRecord | None:
        """Return user by id or None."""

    async def record_login(self, *, username: str, logged_in_at: datetime) -> UserRecord:
        """Advance last_login for one user or raise NotFoundError."""
