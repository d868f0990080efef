"""V1 API router aggregation."""
from fastapi import APIRouter

from quillpost.api.v1.endpoints import auth, engagement, posts, profile, users

api_router = APIRouter(prefix="/v1")
api_router.include_router(auth.router)
api_router.include_router(profile.router)
api_router.include_router(users.router)
api_router.include_router(posts.router)
api_router.include_router(engagement.router)


@api_router.get("/health", tags=["health"])
async def health():
    return {"status": "ok"}
