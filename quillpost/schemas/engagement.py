"""Pydantic schemas for views, likes, comments and stats."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class ViewResponse(BaseModel):
    message: str = "View recorded"
    unique: bool = False


class LikeResponse(BaseModel):
    liked: bool
    like_count: int


class PostStatsResponse(BaseModel):
    view_count: int
    unique_view_count: int
    like_count: int
    comment_count: int
    liked: bool = False


class CommentCreate(BaseModel):
    content: str


class CommentResponse(BaseModel):
    id: UUID
    post_id: UUID
    user_id: UUID
    content: str
    created_at: datetime
    updated_at: datetime
    author_name: str = ""
    author_avatar: str | None = None

    model_config = {"from_attributes": True}


class CommentListResponse(BaseModel):
    comments: list[CommentResponse]
    total: int
    page: int
    limit: int


class CounterDrift(BaseModel):
    post_id: UUID
    unique_view_count: tuple[int, int]
    like_count: tuple[int, int]
    comment_count: tuple[int, int]
