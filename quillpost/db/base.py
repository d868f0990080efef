"""SQLAlchemy declarative base and model imports for Alembic."""
from quillpost.db.session import Base  # noqa: F401
from quillpost.models.user import User, Profile  # noqa: F401
from quillpost.models.post import Post  # noqa: F401
from quillpost.models.image import StoredImage  # noqa: F401
from quillpost.models.engagement import PostView, PostLike, PostComment  # noqa: F401

__all__ = ["Base", "User", "Profile", "Post", "StoredImage", "PostView", "PostLike", "PostComment"]
