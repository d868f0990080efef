"""User (auth data) and Profile (editable profile data) models."""
import uuid

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, Text, Uuid

from quillpost.db.session import Base, utcnow

ROLES = ("admin", "author", "user")


def default_profile_settings() -> dict:
    return {
        "currency": "BRL",
        "language": "pt-BR",
        "theme": {"mode": "dark", "primary_color": "#D4AF37", "accent_color": ""},
        "first_day_of_week": 0,
        "date_format": "DD/MM/YYYY",
    }


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=utcnow)


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    avatar = Column(Text, nullable=True)  # data:image/jpeg;base64,... or external URL
    bio = Column(Text, nullable=True)
    role = Column(String(20), nullable=False, default="user")  # admin | author | user
    settings = Column(JSON, nullable=False, default=default_profile_settings)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
