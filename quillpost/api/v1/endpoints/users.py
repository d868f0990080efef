"""Admin user management."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from quillpost.api.deps import get_db, require_roles
from quillpost.core.logger import logger
from quillpost.models.user import Profile
from quillpost.schemas.user import UpdateUserRoleRequest, UserListItem, UserListResponse
from quillpost.services import profile_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: str | None = Query(None),
    role: str | None = Query(None, pattern="^(admin|author|user)$"),
    admin: Profile = Depends(require_roles("admin")),
    db: AsyncSession = Depends(get_db),
):
    users, total = await profile_service.list_users(db, page=page, limit=limit, search=search, role=role)
    return UserListResponse(users=users, total=total, page=page, limit=limit)


@router.put("/{user_id}/role", response_model=UserListItem)
async def update_user_role(
    user_id: UUID,
    data: UpdateUserRoleRequest,
    admin: Profile = Depends(require_roles("admin")),
    db: AsyncSession = Depends(get_db),
):
    item = await profile_service.set_role(db, user_id, data.role)
    await db.commit()
    logger.bind(user_id=str(user_id), role=data.role, changed_by=str(admin.user_id)).info("user_role_updated")
    return item
