"""Report (and optionally fix) drift between post counters and marker tables.

Usage: python scripts/check_counters.py [--fix]
"""
import asyncio
import sys

from quillpost.core.logger import setup_logging
from quillpost.db.session import async_session_maker
from quillpost.services.engagement_service import reconcile_all


async def check_counters(apply: bool):
    async with async_session_maker() as db:
        drifts = await reconcile_all(db, apply=apply)
        if apply:
            await db.commit()

    if not drifts:
        print("All post counters match their marker tables.")
        return
    print(f"{len(drifts)} post(s) with drift (stored -> actual):")
    for drift in drifts:
        print(
            f"  - {drift.post_id}: unique_views {drift.unique_view_count[0]} -> {drift.unique_view_count[1]}, "
            f"likes {drift.like_count[0]} -> {drift.like_count[1]}, "
            f"comments {drift.comment_count[0]} -> {drift.comment_count[1]}"
        )
    if apply:
        print("Counters fixed.")


if __name__ == "__main__":
    setup_logging()
    asyncio.run(check_counters(apply="--fix" in sys.argv[1:]))
