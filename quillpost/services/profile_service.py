"""Profile reads and partial updates."""
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from quillpost.core.errors import NotFoundError
from quillpost.db.filters import profile_search
from quillpost.db.session import utcnow
from quillpost.db.timeouts import bounded
from quillpost.models.user import Profile, User, default_profile_settings
from quillpost.schemas.user import ProfileUpdate, UserListItem


async def get_profile_or_404(db: AsyncSession, user_id: UUID) -> Profile:
    result = await bounded(db.execute(select(Profile).where(Profile.user_id == user_id)))
    profile = result.scalar_one_or_none()
    if profile is None:
        raise NotFoundError("Profile not found")
    return profile


def _merge_settings(current: dict | None, update: dict) -> dict:
    merged = dict(current or default_profile_settings())
    theme = dict(merged.get("theme") or {})
    for key, value in update.items():
        if value is None:
            continue
        if key == "theme":
            theme.update({k: v for k, v in value.items() if v is not None})
        else:
            merged[key] = value
    merged["theme"] = theme
    return merged


async def update_profile(db: AsyncSession, user_id: UUID, data: ProfileUpdate) -> tuple[Profile, int]:
    """Apply the non-empty fields of ``data``; returns the profile and how many fields changed."""
    profile = await get_profile_or_404(db, user_id)
    changed = 0
    if data.name:
        profile.name = data.name
        changed += 1
    if data.avatar:
        profile.avatar = data.avatar
        changed += 1
    if data.bio:
        profile.bio = data.bio
        changed += 1
    if data.settings is not None:
        update = data.settings.model_dump(exclude_none=True)
        if update:
            profile.settings = _merge_settings(profile.settings, update)
            changed += len(update)
    profile.updated_at = utcnow()
    await bounded(db.flush())
    await bounded(db.refresh(profile))
    return profile, changed


async def set_avatar(db: AsyncSession, user_id: UUID, data_uri: str) -> Profile:
    profile = await get_profile_or_404(db, user_id)
    profile.avatar = data_uri
    profile.updated_at = utcnow()
    await bounded(db.flush())
    await bounded(db.refresh(profile))
    return profile


async def list_users(
    db: AsyncSession,
    *,
    page: int,
    limit: int,
    search: str | None = None,
    role: str | None = None,
) -> tuple[list[UserListItem], int]:
    condition = profile_search(search, role)
    total = await bounded(db.scalar(select(func.count(Profile.id)).where(condition)))
    result = await bounded(
        db.execute(
            select(Profile, User.email)
            .join(User, User.id == Profile.user_id)
            .where(condition)
            .order_by(Profile.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
    )
    items = [
        UserListItem(
            id=profile.user_id,
            email=email,
            name=profile.name,
            avatar=profile.avatar,
            role=profile.role,
            created_at=profile.created_at,
        )
        for profile, email in result.all()
    ]
    return items, total or 0


async def set_role(db: AsyncSession, user_id: UUID, role: str) -> UserListItem:
    profile = await get_profile_or_404(db, user_id)
    profile.role = role
    profile.updated_at = utcnow()
    await bounded(db.flush())
    email = await bounded(db.scalar(select(User.email).where(User.id == user_id)))
    return UserListItem(
        id=profile.user_id,
        email=email or "",
        name=profile.name,
        avatar=profile.avatar,
        role=profile.role,
        created_at=profile.created_at,
    )
