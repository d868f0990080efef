"""Authentication business logic."""
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quillpost.core.errors import ConflictError
from quillpost.core.security import create_access_token, create_refresh_token, get_password_hash, verify_password
from quillpost.db.timeouts import bounded
from quillpost.models.user import Profile, User, default_profile_settings
from quillpost.schemas.user import AuthResponse, ProfileResponse, RegisterRequest, UserResponse


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await bounded(db.execute(select(User).where(User.email == normalize_email(email))))
    return result.scalar_one_or_none()


async def get_user_by_id(db: AsyncSession, user_id: UUID) -> User | None:
    result = await bounded(db.execute(select(User).where(User.id == user_id)))
    return result.scalar_one_or_none()


async def get_profile(db: AsyncSession, user_id: UUID) -> Profile | None:
    result = await bounded(db.execute(select(Profile).where(Profile.user_id == user_id)))
    return result.scalar_one_or_none()


async def create_user(db: AsyncSession, data: RegisterRequest) -> tuple[User, Profile]:
    """Create the auth record and its profile in one transaction."""
    if await get_user_by_email(db, data.email):
        raise ConflictError("Email already exists")
    user = User(email=normalize_email(data.email), password_hash=get_password_hash(data.password))
    db.add(user)
    await bounded(db.flush())
    profile = Profile(user_id=user.id, name=data.name, role="user", settings=default_profile_settings())
    db.add(profile)
    await bounded(db.flush())
    await bounded(db.refresh(user))
    await bounded(db.refresh(profile))
    return user, profile


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User | None:
    user = await get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        return None
    return user


def create_tokens_for_user(user: User) -> tuple[str, str]:
    return create_access_token(user.id, user.email), create_refresh_token(user.id, user.email)


def auth_response(user: User, profile: Profile) -> AuthResponse:
    access_token, refresh_token = create_tokens_for_user(user)
    return AuthResponse(
        user=UserResponse.model_validate(user),
        profile=ProfileResponse.model_validate(profile),
        token=access_token,
        refresh_token=refresh_token,
    )
