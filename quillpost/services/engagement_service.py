"""Views, likes, comments and the counters they maintain on ``posts``.

Counters only move through single-statement ``SET col = col +/- 1``
updates. Uniqueness of views and likes is enforced by the
``(post_id, user_id)`` constraints on the marker tables, never by
read-then-write checks in the application.
"""
import uuid
from uuid import UUID

from sqlalchemy import delete, desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from quillpost.core.errors import AuthorizationError, ClientInputError, NotFoundError
from quillpost.core.logger import logger
from quillpost.core.metrics import MetricsSink
from quillpost.db.filters import increment_counter, insert_if_absent, marker_key, published_post_by_slug
from quillpost.db.session import utcnow
from quillpost.db.timeouts import bounded, bounded_quick
from quillpost.models.engagement import PostComment, PostLike, PostView
from quillpost.models.post import Post
from quillpost.models.user import Profile
from quillpost.schemas.engagement import CommentResponse, CounterDrift, PostStatsResponse

COMMENT_MAX_LENGTH = 2000


async def get_published_post(db: AsyncSession, slug: str) -> Post:
    result = await bounded_quick(db.execute(select(Post).where(published_post_by_slug(slug))))
    post = result.scalar_one_or_none()
    if post is None:
        raise NotFoundError("Post not found")
    return post


async def _adjust(db: AsyncSession, post_id: UUID, counter: str, delta: int) -> None:
    await bounded(db.execute(increment_counter(post_id, counter, delta)))


async def _insert_marker(db: AsyncSession, model, post_id: UUID, user_id: UUID) -> bool:
    """True only when this call created the marker."""
    values = {"id": uuid.uuid4(), "post_id": post_id, "user_id": user_id}
    result = await bounded(db.execute(insert_if_absent(db, model, values)))
    return result.scalar_one_or_none() is not None


async def record_view(db: AsyncSession, post: Post, user_id: UUID | None, metrics: MetricsSink) -> bool:
    """Count a view; returns whether it was the viewer's first."""
    await _adjust(db, post.id, "view_count", 1)
    unique = False
    if user_id is not None:
        unique = await _insert_marker(db, PostView, post.id, user_id)
        if unique:
            await _adjust(db, post.id, "unique_view_count", 1)
    metrics.incr("post_views")
    logger.bind(
        post_id=str(post.id),
        user_id=str(user_id) if user_id else None,
        unique=unique,
    ).info("post_view_recorded")
    return unique


async def current_counters(db: AsyncSession, post_id: UUID) -> dict[str, int]:
    result = await bounded(
        db.execute(
            select(Post.view_count, Post.unique_view_count, Post.like_count, Post.comment_count).where(
                Post.id == post_id
            )
        )
    )
    row = result.one()
    return dict(row._mapping)


async def has_liked(db: AsyncSession, post_id: UUID, user_id: UUID) -> bool:
    found = await bounded_quick(db.scalar(select(PostLike.id).where(marker_key(PostLike, post_id, user_id))))
    return found is not None


async def get_post_stats(db: AsyncSession, post: Post, user_id: UUID | None) -> PostStatsResponse:
    counters = await current_counters(db, post.id)
    liked = await has_liked(db, post.id, user_id) if user_id is not None else False
    return PostStatsResponse(**counters, liked=liked)


async def toggle_like(db: AsyncSession, post: Post, user_id: UUID, metrics: MetricsSink) -> tuple[bool, int]:
    """Flip the caller's like; returns ``(liked, like_count)`` read after the change.

    A concurrent like that wins the insert race leaves the caller liked
    without a second increment.
    """
    removed = await bounded(db.execute(delete(PostLike).where(marker_key(PostLike, post.id, user_id))))
    if removed.rowcount:
        await _adjust(db, post.id, "like_count", -1)
        liked = False
        metrics.incr("post_unlikes")
    else:
        if await _insert_marker(db, PostLike, post.id, user_id):
            await _adjust(db, post.id, "like_count", 1)
        liked = True
        metrics.incr("post_likes")

    like_count = await bounded(db.scalar(select(Post.like_count).where(Post.id == post.id)))
    logger.bind(post_id=str(post.id), user_id=str(user_id), like_count=like_count).info(
        "post_liked" if liked else "post_unliked"
    )
    return liked, like_count or 0


def _comment_response(comment: PostComment, author: Profile | None) -> CommentResponse:
    response = CommentResponse.model_validate(comment)
    if author is not None:
        response.author_name = author.name
        response.author_avatar = author.avatar
    return response


async def list_comments(db: AsyncSession, post: Post, *, page: int, limit: int) -> tuple[list[CommentResponse], int]:
    total = await bounded(db.scalar(select(func.count(PostComment.id)).where(PostComment.post_id == post.id)))
    result = await bounded(
        db.execute(
            select(PostComment, Profile)
            .outerjoin(Profile, Profile.user_id == PostComment.user_id)
            .where(PostComment.post_id == post.id)
            .order_by(desc(PostComment.created_at))
            .offset((page - 1) * limit)
            .limit(limit)
        )
    )
    return [_comment_response(c, p) for c, p in result.all()], total or 0


async def create_comment(
    db: AsyncSession, post: Post, user_id: UUID, content: str, metrics: MetricsSink
) -> CommentResponse:
    content = content.strip()
    if not content or len(content) > COMMENT_MAX_LENGTH:
        raise ClientInputError(f"Comment must be between 1 and {COMMENT_MAX_LENGTH} characters")

    now = utcnow()
    comment = PostComment(post_id=post.id, user_id=user_id, content=content, created_at=now, updated_at=now)
    db.add(comment)
    await bounded(db.flush())
    # separate statement from the insert; drift is repaired by reconciliation
    await _adjust(db, post.id, "comment_count", 1)

    author = await bounded(db.scalar(select(Profile).where(Profile.user_id == user_id)))
    metrics.incr("comments_created")
    logger.bind(post_id=str(post.id), user_id=str(user_id), comment_id=str(comment.id)).info("comment_created")
    return _comment_response(comment, author)


async def delete_comment(
    db: AsyncSession, post: Post, comment_id: UUID, user_id: UUID, role: str, metrics: MetricsSink
) -> None:
    """Comment author, post author or admin may delete."""
    result = await bounded(
        db.execute(select(PostComment).where(PostComment.id == comment_id, PostComment.post_id == post.id))
    )
    comment = result.scalar_one_or_none()
    if comment is None:
        raise NotFoundError("Comment not found")
    if user_id not in (comment.user_id, post.author_id) and role != "admin":
        raise AuthorizationError("Not allowed to delete this comment")

    removed = await bounded(db.execute(delete(PostComment).where(PostComment.id == comment_id)))
    if removed.rowcount != 1:
        # a concurrent delete got there first
        raise NotFoundError("Comment not found")
    await _adjust(db, post.id, "comment_count", -1)
    metrics.incr("comments_deleted")
    logger.bind(post_id=str(post.id), user_id=str(user_id), comment_id=str(comment_id)).info("comment_deleted")


async def _marker_count(db: AsyncSession, model, post_id: UUID) -> int:
    return await bounded(db.scalar(select(func.count(model.id)).where(model.post_id == post_id))) or 0


async def reconcile_post_counters(db: AsyncSession, post_id: UUID, *, apply: bool = True) -> CounterDrift | None:
    """Recompute marker-backed counters; returns the drift found, or None.

    ``view_count`` has no marker table, so it is only raised to keep it at
    or above ``unique_view_count``.
    """
    counters = await current_counters(db, post_id)
    actual = {
        "unique_view_count": await _marker_count(db, PostView, post_id),
        "like_count": await _marker_count(db, PostLike, post_id),
        "comment_count": await _marker_count(db, PostComment, post_id),
    }
    if all(counters[name] == value for name, value in actual.items()):
        return None

    drift = CounterDrift(post_id=post_id, **{name: (counters[name], value) for name, value in actual.items()})
    if apply:
        values = dict(actual)
        values["view_count"] = max(counters["view_count"], actual["unique_view_count"])
        await bounded(db.execute(update(Post).where(Post.id == post_id).values(**values)))
    logger.bind(applied=apply, **drift.model_dump(mode="json")).warning("counter_drift")
    return drift


async def reconcile_all(db: AsyncSession, *, apply: bool = True) -> list[CounterDrift]:
    post_ids = (await bounded(db.execute(select(Post.id)))).scalars().all()
    drifts = []
    for post_id in post_ids:
        drift = await reconcile_post_counters(db, post_id, apply=apply)
        if drift is not None:
            drifts.append(drift)
    return drifts
