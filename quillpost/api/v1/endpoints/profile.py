"""Current user's profile and avatar upload."""
from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from quillpost.api.deps import get_current_user, get_db
from quillpost.core.errors import ClientInputError
from quillpost.core.logger import logger
from quillpost.core.metrics import MetricsSink, get_metrics
from quillpost.models.user import User
from quillpost.schemas.user import ProfileResponse, ProfileUpdate
from quillpost.services import image_service, profile_service

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=ProfileResponse)
async def get_profile(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await profile_service.get_profile_or_404(db, current_user.id)


@router.put("", response_model=ProfileResponse)
async def update_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    metrics: MetricsSink = Depends(get_metrics),
):
    profile, changed = await profile_service.update_profile(db, current_user.id, data)
    await db.commit()
    metrics.incr("profile_updates")
    logger.bind(user_id=str(current_user.id), fields_changed=changed).info("profile_updated")
    return profile


@router.post("/avatar", response_model=ProfileResponse)
async def upload_avatar(
    avatar: UploadFile | None = File(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    metrics: MetricsSink = Depends(get_metrics),
):
    """Store a square JPEG avatar inline on the profile."""
    if avatar is None:
        raise ClientInputError("No file uploaded")
    data = await avatar.read()
    profile = await image_service.upload_avatar(db, current_user.id, data, metrics)
    await db.commit()
    return profile
