"""Stored image model: encoded JPEG kept inline as base64."""
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, Uuid

from quillpost.db.session import Base, utcnow


class StoredImage(Base):
    __tablename__ = "images"
    __table_args__ = (Index("ix_images_group_id_size_label", "group_id", "size_label"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    uploader_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    group_id = Column(String(64), nullable=True)  # shared by the size variants of one image
    size_label = Column(String(32), nullable=True)  # thumb | card | banner
    width = Column(Integer, nullable=True)
    data = Column(Text, nullable=False)  # base64 JPEG, never re-decoded
    size = Column(Integer, nullable=False)  # encoded bytes
    created_at = Column(DateTime, default=utcnow)
