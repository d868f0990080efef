"""Celery tasks that repair drift in the denormalized post counters."""
import asyncio
from uuid import UUID

from quillpost.core.celery_app import celery_app
from quillpost.core.logger import logger
from quillpost.db.session import async_session_maker
from quillpost.services.engagement_service import reconcile_all, reconcile_post_counters as reconcile_one


async def _reconcile_post(post_id: UUID) -> bool:
    async with async_session_maker() as db:
        drift = await reconcile_one(db, post_id)
        await db.commit()
        return drift is not None


async def _reconcile_all() -> int:
    async with async_session_maker() as db:
        drifts = await reconcile_all(db)
        await db.commit()
        return len(drifts)


@celery_app.task
def reconcile_post_counters(post_id: str) -> bool:
    return asyncio.run(_reconcile_post(UUID(post_id)))


@celery_app.task
def reconcile_all_counters() -> int:
    fixed = asyncio.run(_reconcile_all())
    logger.bind(posts_fixed=fixed).info("counters_reconciled")
    return fixed
