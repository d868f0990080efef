"""Blog post model with denormalized engagement counters."""
import uuid

from sqlalchemy import JSON, BigInteger, Column, DateTime, ForeignKey, Index, Integer, String, Text, Uuid

from quillpost.db.session import Base, utcnow


class Post(Base):
    __tablename__ = "posts"
    __table_args__ = (Index("ix_posts_status_published_at", "status", "published_at"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    author_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(300), nullable=False)
    slug = Column(String(320), unique=True, nullable=False, index=True)
    content = Column(Text, nullable=False)
    excerpt = Column(Text, nullable=False, default="")
    cover_image = Column(Text, nullable=True)
    cover_images = Column(JSON, nullable=True)  # group_ids of multi-size images
    category = Column(String(100), nullable=False, default="")
    tags = Column(JSON, nullable=False, default=list)
    status = Column(String(20), nullable=False, default="draft")  # draft | published
    meta_title = Column(String(300), nullable=True)
    meta_description = Column(Text, nullable=True)
    reading_time = Column(Integer, nullable=False, default=1)

    # Adjusted only through atomic UPDATE ... SET col = col +/- 1
    view_count = Column(BigInteger, nullable=False, default=0, server_default="0")
    unique_view_count = Column(BigInteger, nullable=False, default=0, server_default="0")
    like_count = Column(BigInteger, nullable=False, default=0, server_default="0")
    comment_count = Column(BigInteger, nullable=False, default=0, server_default="0")

    published_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
