"""Image ingestion: validate, normalize, re-encode and persist uploads.

Avatars become a 256x256 JPEG data URI on the profile; post images become
rows in ``images`` served back by id or by ``(group_id, size_label)``.
"""
import base64
from uuid import UUID

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from quillpost.core.config import settings
from quillpost.core.errors import ClientInputError, InternalError, NotFoundError, PayloadTooLargeError
from quillpost.core.logger import logger
from quillpost.core.metrics import MetricsSink
from quillpost.db.timeouts import bounded, bounded_quick
from quillpost.imaging import (
    ImageDecodeError,
    ImageEncodeError,
    correct_orientation,
    decode,
    encode_jpeg,
    scale_to_max_width,
    sniff_content_type,
    square_crop_and_scale,
)
from quillpost.imaging.codec import JPEG, PNG, WEBP
from quillpost.models.image import StoredImage
from quillpost.models.user import Profile
from quillpost.services.profile_service import set_avatar

AVATAR_TYPES = {JPEG, PNG}
POST_IMAGE_TYPES = {JPEG, PNG, WEBP}


def check_size(data: bytes) -> None:
    if len(data) > settings.MAX_UPLOAD_BYTES:
        limit_mb = settings.MAX_UPLOAD_BYTES / (1024 * 1024)
        raise PayloadTooLargeError(f"File too large. Max {limit_mb:g}MB")
    if not data:
        raise ClientInputError("No file uploaded")


def check_type(data: bytes, allowed: set[str]) -> str:
    content_type = sniff_content_type(data)
    if content_type not in allowed:
        raise ClientInputError(f"Invalid file type. Allowed: {', '.join(sorted(allowed))}")
    return content_type


def process_avatar(data: bytes) -> bytes:
    try:
        grid = decode(data)
    except ImageDecodeError as exc:
        raise ClientInputError("Invalid image") from exc
    grid = correct_orientation(data, grid)
    grid = square_crop_and_scale(grid, settings.AVATAR_SIZE)
    try:
        return encode_jpeg(grid, settings.AVATAR_QUALITY)
    except ImageEncodeError as exc:
        raise InternalError("Failed to encode image") from exc


def process_post_image(data: bytes) -> tuple[bytes, int]:
    """Returns the encoded JPEG and its width."""
    try:
        grid = decode(data)
    except ImageDecodeError as exc:
        raise ClientInputError("Invalid image") from exc
    grid = scale_to_max_width(grid, settings.POST_IMAGE_MAX_WIDTH)
    try:
        return encode_jpeg(grid, settings.POST_IMAGE_QUALITY), grid.width
    except ImageEncodeError as exc:
        raise InternalError("Failed to encode image") from exc


def to_data_uri(jpeg: bytes) -> str:
    return "data:image/jpeg;base64," + base64.b64encode(jpeg).decode("ascii")


def image_url(image: StoredImage) -> str:
    return f"{settings.SITE_API_PREFIX}/blog/images/{image.id}"


def image_bytes(image: StoredImage) -> bytes:
    return base64.b64decode(image.data)


async def upload_avatar(db: AsyncSession, user_id: UUID, data: bytes, metrics: MetricsSink) -> Profile:
    check_size(data)
    check_type(data, AVATAR_TYPES)
    jpeg = await run_in_threadpool(process_avatar, data)
    profile = await set_avatar(db, user_id, to_data_uri(jpeg))
    metrics.incr("avatar_uploads")
    logger.bind(user_id=str(user_id), original_bytes=len(data), stored_bytes=len(jpeg)).info("avatar_uploaded")
    return profile


async def upload_post_image(
    db: AsyncSession,
    uploader_id: UUID,
    data: bytes,
    metrics: MetricsSink,
    group_id: str | None = None,
    size_label: str | None = None,
) -> StoredImage:
    check_size(data)
    check_type(data, POST_IMAGE_TYPES)
    jpeg, width = await run_in_threadpool(process_post_image, data)
    image = StoredImage(
        uploader_id=uploader_id,
        group_id=group_id or None,
        size_label=size_label or None,
        width=width,
        data=base64.b64encode(jpeg).decode("ascii"),
        size=len(jpeg),
    )
    db.add(image)
    await bounded(db.flush())
    await bounded(db.refresh(image))
    metrics.incr("post_images_uploaded")
    logger.bind(
        user_id=str(uploader_id),
        image_id=str(image.id),
        group_id=group_id,
        size_label=size_label,
        width=width,
        original_bytes=len(data),
        stored_bytes=len(jpeg),
    ).info("post_image_uploaded")
    return image


async def get_image(db: AsyncSession, image_id: str) -> StoredImage:
    try:
        key = UUID(image_id)
    except ValueError as exc:
        raise ClientInputError("Invalid image id") from exc
    result = await bounded_quick(db.execute(select(StoredImage).where(StoredImage.id == key)))
    image = result.scalar_one_or_none()
    if image is None:
        raise NotFoundError("Image not found")
    return image


async def get_image_variant(db: AsyncSession, group_id: str, size_label: str) -> StoredImage:
    result = await bounded_quick(
        db.execute(
            select(StoredImage)
            .where(StoredImage.group_id == group_id, StoredImage.size_label == size_label)
            .order_by(desc(StoredImage.created_at))
            .limit(1)
        )
    )
    image = result.scalar_one_or_none()
    if image is None:
        raise NotFoundError("Image not found")
    return image
