"""Shared fixtures: a fresh SQLite database and an app wired to it per test."""
import io
import os

# Test-friendly environment before the app is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./.test_unused.sqlite3")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from collections.abc import AsyncIterator  # noqa: E402
from uuid import UUID  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from PIL import Image  # noqa: E402
from sqlalchemy import update  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker  # noqa: E402

import quillpost.models  # noqa: E402,F401
from quillpost.db.session import Base, build_engine, build_session_maker, get_db  # noqa: E402
from quillpost.main import create_app  # noqa: E402
from quillpost.models.user import Profile  # noqa: E402

PASSWORD = "secret1"


def png_bytes(width: int, height: int, color=(200, 30, 30), mode: str = "RGB") -> bytes:
    if mode == "RGBA" and len(color) == 3:
        color = (*color, 255)
    buf = io.BytesIO()
    Image.new(mode, (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


def jpeg_bytes(width: int, height: int, color=(30, 200, 30), orientation: int | None = None) -> bytes:
    image = Image.new("RGB", (width, height), color)
    buf = io.BytesIO()
    if orientation is None:
        image.save(buf, format="JPEG")
    else:
        exif = Image.Exif()
        exif[0x0112] = orientation
        image.save(buf, format="JPEG", exif=exif)
    return buf.getvalue()


def gif_bytes(width: int, height: int) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), (0, 0, 255)).save(buf, format="GIF")
    return buf.getvalue()


def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
async def engine(tmp_path) -> AsyncIterator[AsyncEngine]:
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.sqlite3'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_maker(engine)


@pytest.fixture()
def app(session_maker: async_sessionmaker[AsyncSession]) -> FastAPI:
    application = create_app()

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest.fixture()
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac


class Helpers:
    """Small API drivers shared by the endpoint tests."""

    def __init__(self, client: httpx.AsyncClient, session_maker: async_sessionmaker[AsyncSession]):
        self.client = client
        self.session_maker = session_maker

    async def register(self, email: str, name: str = "Alice", password: str = PASSWORD) -> dict:
        response = await self.client.post(
            "/api/v1/auth/register", json={"email": email, "password": password, "name": name}
        )
        assert response.status_code == 201, response.text
        return response.json()

    async def set_role(self, user_id: str, role: str) -> None:
        key = UUID(user_id)
        async with self.session_maker() as session:
            await session.execute(update(Profile).where(Profile.user_id == key).values(role=role))
            await session.commit()

    async def author(self, email: str = "author@x.com", name: str = "Author") -> dict:
        data = await self.register(email, name)
        await self.set_role(data["user"]["id"], "author")
        return data

    async def create_post(self, token: str, title: str = "Hello World", **fields) -> dict:
        body = {"title": title, "content": "one two three four", "status": "published", **fields}
        response = await self.client.post("/api/v1/blog/posts", json=body, headers=auth(token))
        assert response.status_code == 201, response.text
        return response.json()


@pytest.fixture()
def helpers(client: httpx.AsyncClient, session_maker: async_sessionmaker[AsyncSession]) -> Helpers:
    return Helpers(client, session_maker)
