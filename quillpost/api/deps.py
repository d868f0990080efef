"""API dependencies: auth, db session, metrics."""
from collections.abc import Awaitable, Callable
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quillpost.core.errors import AuthError, AuthorizationError
from quillpost.core.metrics import MetricsSink, get_metrics
from quillpost.core.security import decode_token
from quillpost.db.session import get_db
from quillpost.db.timeouts import bounded_quick
from quillpost.models.user import Profile, User

security = HTTPBearer(auto_error=False)


async def get_current_user_optional(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    if not credentials:
        return None
    payload = decode_token(credentials.credentials)
    if not payload or payload.get("type") != "access":
        return None
    try:
        user_id = UUID(payload.get("sub", ""))
    except ValueError:
        return None
    result = await bounded_quick(db.execute(select(User).where(User.id == user_id)))
    return result.scalar_one_or_none()


async def get_current_user(
    user: User | None = Depends(get_current_user_optional),
    metrics: MetricsSink = Depends(get_metrics),
) -> User:
    if user is None:
        metrics.incr("auth_errors")
        raise AuthError()
    return user


async def get_current_profile(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Profile:
    result = await bounded_quick(db.execute(select(Profile).where(Profile.user_id == user.id)))
    profile = result.scalar_one_or_none()
    if profile is None:
        raise AuthError("Profile not found")
    return profile


def require_roles(*roles: str) -> Callable[..., Awaitable[Profile]]:
    async def dependency(profile: Profile = Depends(get_current_profile)) -> Profile:
        if profile.role not in roles:
            raise AuthorizationError("The user does not have enough privileges")
        return profile

    return dependency
