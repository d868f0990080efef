"""Pydantic schemas for blog posts and images."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class PostCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=300)
    content: str = Field(..., min_length=1)
    excerpt: str = ""
    cover_image: str | None = None
    cover_images: list[str] | None = None  # group_ids
    category: str = ""
    tags: list[str] = []
    status: str = Field(default="draft", pattern="^(draft|published)$")
    meta_title: str | None = None
    meta_description: str | None = None


class PostUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=300)
    content: str | None = Field(None, min_length=1)
    excerpt: str | None = None
    cover_image: str | None = None
    cover_images: list[str] | None = None
    category: str | None = None
    tags: list[str] | None = None
    status: str | None = Field(None, pattern="^(draft|published)$")
    meta_title: str | None = None
    meta_description: str | None = None


class PostResponse(BaseModel):
    id: UUID
    author_id: UUID
    title: str
    slug: str
    content: str
    excerpt: str = ""
    cover_image: str | None = None
    cover_images: list[str] | None = None
    category: str = ""
    tags: list[str] = []
    status: str
    meta_title: str | None = None
    meta_description: str | None = None
    reading_time: int = 1
    view_count: int = 0
    unique_view_count: int = 0
    like_count: int = 0
    comment_count: int = 0
    published_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    author_name: str = ""
    author_avatar: str | None = None

    model_config = {"from_attributes": True}


class PostListResponse(BaseModel):
    posts: list[PostResponse]
    total: int
    page: int
    limit: int


class ImageUploadResponse(BaseModel):
    url: str
    id: UUID
    width: int
    size: int
