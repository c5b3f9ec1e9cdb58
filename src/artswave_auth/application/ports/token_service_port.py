"""Port for opaque session token generation and hashing."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


@dataclass(frozen=True)
class IssuedToken:
    """Freshly generated token with its storage hash and expiry."""

    token: str
    token_hash: str
    expires_at: datetime


class TokenServicePort(Protocol):
    """Session token contract."""

    def issue_token(self) -> IssuedToken:
        """Generate a new opaque token."""

    def hash_token(self, token: str) -> str:
        """Return the deterministic storage hash for one token."""
