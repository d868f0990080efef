"""Blog posts CRUD, post image upload and image serving."""
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from quillpost.api.deps import get_current_user, get_current_user_optional, get_db, require_roles
from quillpost.core.config import settings
from quillpost.core.errors import ClientInputError
from quillpost.core.logger import logger
from quillpost.core.metrics import MetricsSink, get_metrics
from quillpost.models.image import StoredImage
from quillpost.models.user import Profile, User
from quillpost.schemas.post import ImageUploadResponse, PostCreate, PostListResponse, PostResponse, PostUpdate
from quillpost.services import image_service, post_service

router = APIRouter(prefix="/blog", tags=["blog"])


def _image_response(image: StoredImage) -> Response:
    return Response(
        content=image_service.image_bytes(image),
        media_type="image/jpeg",
        headers={"Cache-Control": f"public, max-age={settings.IMAGE_CACHE_SECONDS}, immutable"},
    )


@router.get("/posts", response_model=PostListResponse)
async def list_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    category: str | None = Query(None),
    tag: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    posts, total = await post_service.list_published_posts(db, page=page, limit=limit, category=category, tag=tag)
    return PostListResponse(
        posts=await post_service.posts_to_response(db, posts), total=total, page=page, limit=limit
    )


@router.get("/posts/me", response_model=PostListResponse)
async def list_my_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    author: Profile = Depends(require_roles("admin", "author")),
    db: AsyncSession = Depends(get_db),
):
    posts, total = await post_service.list_author_posts(db, author.user_id, page=page, limit=limit)
    return PostListResponse(
        posts=[post_service.post_to_response(p, author) for p in posts], total=total, page=page, limit=limit
    )


@router.get("/posts/{slug}", response_model=PostResponse)
async def get_post(
    slug: str,
    current_user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    post = await post_service.get_post_by_slug(db, slug, current_user.id if current_user else None)
    responses = await post_service.posts_to_response(db, [post])
    return responses[0]


@router.post("/posts", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    data: PostCreate,
    author: Profile = Depends(require_roles("admin", "author")),
    db: AsyncSession = Depends(get_db),
    metrics: MetricsSink = Depends(get_metrics),
):
    post = await post_service.create_post(db, author.user_id, data)
    await db.commit()
    metrics.incr("posts_created")
    logger.bind(post_id=str(post.id), slug=post.slug, author_id=str(author.user_id), status=post.status).info(
        "post_created"
    )
    return post_service.post_to_response(post, author)


@router.put("/posts/{key}", response_model=PostResponse)
async def update_post(
    key: str,
    data: PostUpdate,
    editor: Profile = Depends(require_roles("admin", "author")),
    db: AsyncSession = Depends(get_db),
    metrics: MetricsSink = Depends(get_metrics),
):
    """Update by id or slug; only the owner or an admin may edit."""
    post = await post_service.get_post_for_edit(db, key, editor.user_id, editor.role)
    post = await post_service.update_post(db, post, data)
    await db.commit()
    metrics.incr("posts_updated")
    logger.bind(post_id=str(post.id), slug=post.slug, editor_id=str(editor.user_id)).info("post_updated")
    responses = await post_service.posts_to_response(db, [post])
    return responses[0]


@router.delete("/posts/{key}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    key: str,
    editor: Profile = Depends(require_roles("admin", "author")),
    db: AsyncSession = Depends(get_db),
    metrics: MetricsSink = Depends(get_metrics),
):
    post = await post_service.get_post_for_edit(db, key, editor.user_id, editor.role)
    post_id, slug = post.id, post.slug
    await post_service.delete_post(db, post)
    await db.commit()
    metrics.incr("posts_deleted")
    logger.bind(post_id=str(post_id), slug=slug, editor_id=str(editor.user_id)).info("post_deleted")
    return None


@router.post("/upload", response_model=ImageUploadResponse)
async def upload_image(
    image: UploadFile | None = File(None),
    group_id: str | None = Form(None, max_length=64),
    size_label: str | None = Form(None, max_length=32),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    metrics: MetricsSink = Depends(get_metrics),
):
    """Store a post image as a JPEG at most 800px wide."""
    if image is None:
        raise ClientInputError("No file uploaded")
    data = await image.read()
    stored = await image_service.upload_post_image(
        db, current_user.id, data, metrics, group_id=group_id, size_label=size_label
    )
    await db.commit()
    return ImageUploadResponse(url=image_service.image_url(stored), id=stored.id, width=stored.width, size=stored.size)


@router.get("/images/{image_id}")
async def get_image(image_id: str, db: AsyncSession = Depends(get_db)):
    return _image_response(await image_service.get_image(db, image_id))


@router.get("/images/group/{group_id}/{size_label}")
async def get_image_variant(group_id: str, size_label: str, db: AsyncSession = Depends(get_db)):
    return _image_response(await image_service.get_image_variant(db, group_id, size_label))
