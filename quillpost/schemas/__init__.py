from quillpost.schemas.user import (
    AuthResponse,
    LoginRequest,
    ProfileResponse,
    ProfileUpdate,
    RegisterRequest,
    UserResponse,
)
from quillpost.schemas.post import PostCreate, PostUpdate, PostResponse, PostListResponse, ImageUploadResponse
from quillpost.schemas.engagement import (
    CommentCreate,
    CommentListResponse,
    CommentResponse,
    LikeResponse,
    PostStatsResponse,
    ViewResponse,
)
