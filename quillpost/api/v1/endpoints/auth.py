"""Auth endpoints: register, login, refresh, me."""
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from quillpost.api.deps import get_current_user, get_db
from quillpost.core.errors import AuthError
from quillpost.core.logger import logger
from quillpost.core.metrics import MetricsSink, get_metrics
from quillpost.core.security import decode_token
from quillpost.models.user import User
from quillpost.schemas.user import AuthResponse, LoginRequest, MeResponse, ProfileResponse, RegisterRequest, TokenRefresh, UserResponse
from quillpost.services.auth_service import auth_response, authenticate_user, create_user, get_profile, get_user_by_id

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    metrics: MetricsSink = Depends(get_metrics),
):
    user, profile = await create_user(db, data)
    await db.commit()
    metrics.incr("users_registered")
    logger.bind(user_id=str(user.id), email=user.email).info("user_registered")
    return auth_response(user, profile)


@router.post("/login", response_model=AuthResponse)
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
    metrics: MetricsSink = Depends(get_metrics),
):
    user = await authenticate_user(db, data.email, data.password)
    if not user:
        metrics.incr("login_failed")
        logger.bind(email=data.email).warning("login_failed")
        raise AuthError("Invalid email or password")
    profile = await get_profile(db, user.id)
    if profile is None:
        raise AuthError("Profile not found")
    metrics.incr("login_success")
    logger.bind(user_id=str(user.id)).info("login_success")
    return auth_response(user, profile)


@router.post("/refresh", response_model=AuthResponse)
async def refresh_token(
    body: TokenRefresh,
    db: AsyncSession = Depends(get_db),
):
    payload = decode_token(body.refresh_token)
    if not payload or payload.get("type") != "refresh":
        raise AuthError("Invalid refresh token")
    try:
        user_id = UUID(payload.get("sub", ""))
    except ValueError:
        raise AuthError("Invalid refresh token")
    user = await get_user_by_id(db, user_id)
    profile = await get_profile(db, user_id) if user else None
    if not user or not profile:
        raise AuthError("User not found")
    return auth_response(user, profile)


@router.get("/me", response_model=MeResponse)
async def me(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    profile = await get_profile(db, current_user.id)
    if profile is None:
        raise AuthError("Profile not found")
    return MeResponse(user=UserResponse.model_validate(current_user), profile=ProfileResponse.model_validate(profile))
