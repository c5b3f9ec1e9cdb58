"""Bounded-time wrapper translating driver failures into StorageError."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError

from artswave_auth.domain.auth.errors import StorageError

DEFAULT_STORAGE_TIMEOUT_SECONDS = 5.0
logger = logging.getLogger(__name__)


@asynccontextmanager
async def guard_storage(*, operation: str, timeout_seconds: float) -> AsyncIterator[None]:
    """Run one storage round trip under a deadline.

    Timeouts and SQLAlchemy errors leaving the block are logged and re-raised as
    ``StorageError`` with a message free of driver details. Domain errors raised
    inside the block pass through unchanged.
    """

    try:
        async with asyncio.timeout(timeout_seconds):
            yield
    except TimeoutError as exc:
        logger.error(
            "storage_timeout operation=%s timeout_seconds=%s",
            operation,
            timeout_seconds,
        )
        raise StorageError(f"{operation} timed out") from exc
    except SQLAlchemyError as exc:
        logger.exception("storage_failure operation=%s", operation)
        raise StorageError(f"{operation} failed") from exc
