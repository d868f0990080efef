"""Explicit time bounds for store operations.

Wrap every awaited store call: ``await bounded(db.execute(stmt))``. The
quick bound is for existence checks and image serving.
"""
import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from quillpost.core.config import settings
from quillpost.core.errors import StoreTimeoutError

T = TypeVar("T")


async def bounded(operation: Awaitable[T], timeout: float | None = None) -> T:
    limit = settings.STORE_TIMEOUT_SECONDS if timeout is None else timeout
    try:
        return await asyncio.wait_for(operation, timeout=limit)
    except asyncio.TimeoutError as exc:
        raise StoreTimeoutError(f"Store operation exceeded {limit:g}s") from exc


async def bounded_quick(operation: Awaitable[T]) -> T:
    return await bounded(operation, settings.QUICK_TIMEOUT_SECONDS)
