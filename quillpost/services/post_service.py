"""Blog post business logic."""
import math
import re
import unicodedata
from uuid import UUID

from sqlalchemy import delete, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from quillpost.core.errors import AuthorizationError, NotFoundError
from quillpost.db.filters import post_by_id_or_slug, published_posts
from quillpost.db.session import utcnow
from quillpost.db.timeouts import bounded, bounded_quick
from quillpost.models.engagement import PostComment, PostLike, PostView
from quillpost.models.post import Post
from quillpost.models.user import Profile
from quillpost.schemas.post import PostCreate, PostResponse, PostUpdate

WORDS_PER_MINUTE = 200
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """``"Café com Leite!"`` -> ``"cafe-com-leite"``."""
    folded = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    slug = _NON_ALNUM.sub("-", folded.lower()).strip("-")
    return slug or "post"


def reading_time(content: str) -> int:
    return max(1, math.ceil(len(content.split()) / WORDS_PER_MINUTE))


async def ensure_unique_slug(db: AsyncSession, base: str, exclude_id: UUID | None = None) -> str:
    slug = base
    suffix = 2
    while True:
        stmt = select(Post.id).where(Post.slug == slug)
        if exclude_id is not None:
            stmt = stmt.where(Post.id != exclude_id)
        if await bounded_quick(db.scalar(stmt)) is None:
            return slug
        slug = f"{base}-{suffix}"
        suffix += 1


async def _authors(db: AsyncSession, author_ids: set[UUID]) -> dict[UUID, Profile]:
    if not author_ids:
        return {}
    result = await bounded(db.execute(select(Profile).where(Profile.user_id.in_(author_ids))))
    return {p.user_id: p for p in result.scalars().all()}


def post_to_response(post: Post, author: Profile | None = None) -> PostResponse:
    response = PostResponse.model_validate(post)
    if author is not None:
        response.author_name = author.name
        response.author_avatar = author.avatar
    return response


async def posts_to_response(db: AsyncSession, posts: list[Post]) -> list[PostResponse]:
    authors = await _authors(db, {p.author_id for p in posts})
    return [post_to_response(p, authors.get(p.author_id)) for p in posts]


async def list_published_posts(
    db: AsyncSession,
    *,
    page: int,
    limit: int,
    category: str | None = None,
    tag: str | None = None,
) -> tuple[list[Post], int]:
    condition = published_posts(db.get_bind().dialect.name, category, tag)
    total = await bounded(db.scalar(select(func.count(Post.id)).where(condition)))
    result = await bounded(
        db.execute(
            select(Post)
            .where(condition)
            .order_by(desc(Post.published_at), desc(Post.created_at))
            .offset((page - 1) * limit)
            .limit(limit)
        )
    )
    return list(result.scalars().all()), total or 0


async def list_author_posts(db: AsyncSession, author_id: UUID, *, page: int, limit: int) -> tuple[list[Post], int]:
    total = await bounded(db.scalar(select(func.count(Post.id)).where(Post.author_id == author_id)))
    result = await bounded(
        db.execute(
            select(Post)
            .where(Post.author_id == author_id)
            .order_by(desc(Post.created_at))
            .offset((page - 1) * limit)
            .limit(limit)
        )
    )
    return list(result.scalars().all()), total or 0


async def get_post_by_slug(db: AsyncSession, slug: str, viewer_id: UUID | None = None) -> Post:
    """Published post by slug; a draft is only visible to its author."""
    result = await bounded(db.execute(select(Post).where(Post.slug == slug)))
    post = result.scalar_one_or_none()
    if post is None or (post.status != "published" and post.author_id != viewer_id):
        raise NotFoundError("Post not found")
    return post


async def get_post_for_edit(db: AsyncSession, key: str, user_id: UUID, role: str) -> Post:
    result = await bounded(db.execute(select(Post).where(post_by_id_or_slug(key))))
    post = result.scalar_one_or_none()
    if post is None:
        raise NotFoundError("Post not found")
    if post.author_id != user_id and role != "admin":
        raise AuthorizationError("Only the author or an admin can modify this post")
    return post


async def create_post(db: AsyncSession, author_id: UUID, data: PostCreate) -> Post:
    slug = await ensure_unique_slug(db, slugify(data.title))
    post = Post(
        author_id=author_id,
        title=data.title,
        slug=slug,
        content=data.content,
        excerpt=data.excerpt,
        cover_image=data.cover_image,
        cover_images=data.cover_images,
        category=data.category,
        tags=data.tags,
        status=data.status,
        meta_title=data.meta_title,
        meta_description=data.meta_description,
        reading_time=reading_time(data.content),
        published_at=utcnow() if data.status == "published" else None,
    )
    db.add(post)
    await bounded(db.flush())
    await bounded(db.refresh(post))
    return post


async def update_post(db: AsyncSession, post: Post, data: PostUpdate) -> Post:
    fields = data.model_dump(exclude_unset=True, exclude_none=True)
    if "title" in fields and fields["title"] != post.title:
        post.slug = await ensure_unique_slug(db, slugify(fields["title"]), exclude_id=post.id)
    if "content" in fields:
        post.reading_time = reading_time(fields["content"])
    if fields.get("status") == "published" and post.published_at is None:
        post.published_at = utcnow()
    for key, value in fields.items():
        setattr(post, key, value)
    post.updated_at = utcnow()
    await bounded(db.flush())
    await bounded(db.refresh(post))
    return post


async def delete_post(db: AsyncSession, post: Post) -> None:
    """Delete a post with its markers and comments.

    The FKs cascade on postgres, but the dependents are removed explicitly
    so the result does not depend on the store's cascade support.
    """
    for model in (PostView, PostLike, PostComment):
        await bounded(db.execute(delete(model).where(model.post_id == post.id)))
    await bounded(db.execute(delete(Post).where(Post.id == post.id)))
