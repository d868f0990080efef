"""Views, likes, comments and stats on published posts."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from quillpost.api.deps import get_current_profile, get_current_user, get_current_user_optional, get_db
from quillpost.core.metrics import MetricsSink, get_metrics
from quillpost.models.user import Profile, User
from quillpost.schemas.engagement import (
    CommentCreate,
    CommentListResponse,
    CommentResponse,
    LikeResponse,
    PostStatsResponse,
    ViewResponse,
)
from quillpost.services import engagement_service

router = APIRouter(prefix="/blog/posts/{slug}", tags=["engagement"])


@router.post("/view", response_model=ViewResponse)
async def record_view(
    slug: str,
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
    metrics: MetricsSink = Depends(get_metrics),
):
    post = await engagement_service.get_published_post(db, slug)
    unique = await engagement_service.record_view(db, post, current_user.id if current_user else None, metrics)
    await db.commit()
    return ViewResponse(unique=unique)


@router.get("/stats", response_model=PostStatsResponse)
async def get_stats(
    slug: str,
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    post = await engagement_service.get_published_post(db, slug)
    return await engagement_service.get_post_stats(db, post, current_user.id if current_user else None)


@router.post("/like", response_model=LikeResponse)
async def toggle_like(
    slug: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    metrics: MetricsSink = Depends(get_metrics),
):
    post = await engagement_service.get_published_post(db, slug)
    liked, like_count = await engagement_service.toggle_like(db, post, current_user.id, metrics)
    await db.commit()
    return LikeResponse(liked=liked, like_count=like_count)


@router.get("/comments", response_model=CommentListResponse)
async def list_comments(
    slug: str,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
):
    post = await engagement_service.get_published_post(db, slug)
    comments, total = await engagement_service.list_comments(db, post, page=page, limit=limit)
    return CommentListResponse(comments=comments, total=total, page=page, limit=limit)


@router.post("/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(
    slug: str,
    data: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    metrics: MetricsSink = Depends(get_metrics),
):
    post = await engagement_service.get_published_post(db, slug)
    comment = await engagement_service.create_comment(db, post, current_user.id, data.content, metrics)
    await db.commit()
    return comment


@router.delete("/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    slug: str,
    comment_id: UUID,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db),
    metrics: MetricsSink = Depends(get_metrics),
):
    post = await engagement_service.get_published_post(db, slug)
    await engagement_service.delete_comment(db, post, comment_id, profile.user_id, profile.role, metrics)
    await db.commit()
    return None
