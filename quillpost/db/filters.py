"""Typed query builders.

Each builder returns a SQLAlchemy expression instead of an ad-hoc dict, so
column names and operand types are checked where the filter is built.
"""
from typing import Any
from uuid import UUID

from sqlalchemy import ColumnElement, and_, case, cast, func, select, true, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from quillpost.models.engagement import PostLike, PostView
from quillpost.models.post import Post
from quillpost.models.user import Profile

COUNTER_COLUMNS = {
    "view_count": Post.view_count,
    "unique_view_count": Post.unique_view_count,
    "like_count": Post.like_count,
    "comment_count": Post.comment_count,
}

MarkerModel = type[PostView] | type[PostLike]


def published_post_by_slug(slug: str) -> ColumnElement[bool]:
    return and_(Post.slug == slug, Post.status == "published")


def post_by_id_or_slug(key: str) -> ColumnElement[bool]:
    try:
        return Post.id == UUID(key)
    except ValueError:
        return Post.slug == key


def published_posts(dialect: str, category: str | None = None, tag: str | None = None) -> ColumnElement[bool]:
    clauses: list[ColumnElement[bool]] = [Post.status == "published"]
    if category:
        clauses.append(Post.category == category)
    if tag:
        clauses.append(post_has_tag(dialect, tag))
    return and_(*clauses)


def post_has_tag(dialect: str, tag: str) -> ColumnElement[bool]:
    """Exact membership of ``tag`` in the ``tags`` JSON array."""
    if dialect == "postgresql":
        return cast(Post.tags, postgresql.JSONB).contains([tag])
    if dialect == "sqlite":
        element = func.json_each(Post.tags).table_valued("value")
        return select(element.c.value).where(element.c.value == tag).exists()
    raise NotImplementedError(f"tag filtering is not supported on {dialect}")


def marker_key(model: MarkerModel, post_id: UUID, user_id: UUID) -> ColumnElement[bool]:
    return and_(model.post_id == post_id, model.user_id == user_id)


def profile_search(search: str | None = None, role: str | None = None) -> ColumnElement[bool]:
    clauses: list[ColumnElement[bool]] = []
    if role:
        clauses.append(Profile.role == role)
    if search:
        clauses.append(func.lower(Profile.name).contains(search.lower()))
    return and_(true(), *clauses)


def increment_counter(post_id: UUID, counter: str, delta: int = 1):
    """Atomic ``SET counter = counter + delta``; negative deltas floor at zero."""
    column = COUNTER_COLUMNS[counter]
    if delta >= 0:
        new_value: Any = column + delta
    else:
        new_value = case((column + delta < 0, 0), else_=column + delta)
    return update(Post).where(Post.id == post_id).values({counter: new_value})


def insert_if_absent(db: AsyncSession, model: MarkerModel, values: dict[str, Any]):
    """``INSERT ... ON CONFLICT (post_id, user_id) DO NOTHING RETURNING id``.

    The statement yields a row only when a new marker was actually created.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(model)
    elif dialect == "sqlite":
        stmt = sqlite.insert(model)
    else:
        raise NotImplementedError(f"insert-if-absent is not supported on {dialect}")
    return (
        stmt.values(**values)
        .on_conflict_do_nothing(index_elements=["post_id", "user_id"])
        .returning(model.id)
    )


__all__ = [
    "COUNTER_COLUMNS",
    "increment_counter",
    "insert_if_absent",
    "marker_key",
    "post_by_id_or_slug",
    "post_has_tag",
    "profile_search",
    "published_post_by_slug",
    "published_posts",
]
