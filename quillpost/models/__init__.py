from quillpost.models.user import User, Profile
from quillpost.models.post import Post
from quillpost.models.image import StoredImage
from quillpost.models.engagement import PostView, PostLike, PostComment

__all__ = ["User", "Profile", "Post", "StoredImage", "PostView", "PostLike", "PostComment"]
