"""Blog post CRUD, slugs and cascading deletes."""
from uuid import UUID

import pytest
from fastapi import status
from sqlalchemy import func, select

from conftest import auth
from quillpost.models.engagement import PostComment, PostLike, PostView
from quillpost.services.post_service import reading_time, slugify


class TestSlugs:
    @pytest.mark.parametrize(
        ("title", "expected"),
        [
            ("Hello World", "hello-world"),
            ("Café com Leite!", "cafe-com-leite"),
            ("  --Ação & Reação--  ", "acao-reacao"),
            ("???", "post"),
        ],
    )
    def test_slugify(self, title, expected):
        assert slugify(title) == expected

    def test_reading_time(self):
        assert reading_time("") == 1
        assert reading_time("word " * 200) == 1
        assert reading_time("word " * 201) == 2

    async def test_duplicate_titles_get_suffixes(self, helpers):
        author = await helpers.author()
        slugs = [(await helpers.create_post(author["token"], title="Same Title"))["slug"] for _ in range(3)]
        assert slugs == ["same-title", "same-title-2", "same-title-3"]


class TestPostCrud:
    async def test_only_authors_and_admins_create(self, client, helpers):
        reader = await helpers.register("reader@x.com", "Reader")
        response = await client.post(
            "/api/v1/blog/posts", json={"title": "T", "content": "c"}, headers=auth(reader["token"])
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

    async def test_create_sets_published_at_and_author(self, helpers):
        author = await helpers.author(name="Ana")
        post = await helpers.create_post(author["token"], tags=["python", "api"], category="dev")
        assert post["published_at"] is not None
        assert post["author_name"] == "Ana"
        assert post["reading_time"] == 1
        assert post["view_count"] == post["like_count"] == 0

    async def test_public_listing_filters(self, client, helpers):
        author = await helpers.author()
        await helpers.create_post(author["token"], title="One", tags=["python"], category="dev")
        await helpers.create_post(author["token"], title="Two", tags=["go"], category="dev")
        await helpers.create_post(author["token"], title="Three", status="draft", tags=["python"])

        everything = (await client.get("/api/v1/blog/posts")).json()
        assert everything["total"] == 2
        tagged = (await client.get("/api/v1/blog/posts", params={"tag": "python"})).json()
        assert [p["title"] for p in tagged["posts"]] == ["One"]
        by_category = (await client.get("/api/v1/blog/posts", params={"category": "dev"})).json()
        assert by_category["total"] == 2

        mine = (await client.get("/api/v1/blog/posts/me", headers=auth(author["token"]))).json()
        assert mine["total"] == 3

    async def test_tag_filter_matches_whole_tags(self, client, helpers):
        author = await helpers.author()
        await helpers.create_post(author["token"], title="Accented", tags=["café", "receitas"])
        await helpers.create_post(author["token"], title="Underscore", tags=["x_y"])
        await helpers.create_post(author["token"], title="Lookalike", tags=["xzy", "cafe"])

        async def titles(tag):
            response = await client.get("/api/v1/blog/posts", params={"tag": tag})
            assert response.status_code == status.HTTP_200_OK
            return sorted(p["title"] for p in response.json()["posts"])

        assert await titles("café") == ["Accented"]
        assert await titles("cafe") == ["Lookalike"]
        assert await titles("x_y") == ["Underscore"]
        assert await titles("%") == []
        assert await titles("caf") == []

    async def test_drafts_are_visible_only_to_their_author(self, client, helpers):
        author = await helpers.author()
        draft = await helpers.create_post(author["token"], title="Secret", status="draft")
        other = await helpers.register("other@x.com", "Other")

        assert (await client.get(f"/api/v1/blog/posts/{draft['slug']}")).status_code == 404
        hidden = await client.get(f"/api/v1/blog/posts/{draft['slug']}", headers=auth(other["token"]))
        assert hidden.status_code == 404
        visible = await client.get(f"/api/v1/blog/posts/{draft['slug']}", headers=auth(author["token"]))
        assert visible.status_code == status.HTTP_200_OK

    async def test_update_by_slug_or_id(self, client, helpers, app):
        author = await helpers.author()
        draft = await helpers.create_post(author["token"], title="Draft", status="draft")
        assert draft["published_at"] is None

        response = await client.put(
            f"/api/v1/blog/posts/{draft['slug']}",
            json={"title": "Renamed Post", "status": "published"},
            headers=auth(author["token"]),
        )
        assert response.status_code == status.HTTP_200_OK
        updated = response.json()
        assert updated["slug"] == "renamed-post"
        assert updated["published_at"] is not None

        by_id = await client.put(
            f"/api/v1/blog/posts/{draft['id']}", json={"excerpt": "Short"}, headers=auth(author["token"])
        )
        assert by_id.json()["excerpt"] == "Short"
        assert by_id.json()["slug"] == "renamed-post"
        assert app.state.metrics.value("posts_updated") == 2

    async def test_other_authors_cannot_edit(self, client, helpers):
        owner = await helpers.author()
        post = await helpers.create_post(owner["token"])
        rival = await helpers.author("rival@x.com", "Rival")
        response = await client.put(
            f"/api/v1/blog/posts/{post['slug']}", json={"title": "Mine"}, headers=auth(rival["token"])
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN

        admin = await helpers.register("admin@x.com", "Admin")
        await helpers.set_role(admin["user"]["id"], "admin")
        allowed = await client.put(
            f"/api/v1/blog/posts/{post['slug']}", json={"title": "Edited"}, headers=auth(admin["token"])
        )
        assert allowed.status_code == status.HTTP_200_OK


class TestPostDelete:
    async def test_delete_removes_markers_and_comments(self, client, helpers, session_maker):
        author = await helpers.author()
        post = await helpers.create_post(author["token"])
        reader = await helpers.register("reader@x.com", "Reader")
        slug = post["slug"]
        await client.post(f"/api/v1/blog/posts/{slug}/view", headers=auth(reader["token"]))
        await client.post(f"/api/v1/blog/posts/{slug}/like", headers=auth(reader["token"]))
        await client.post(f"/api/v1/blog/posts/{slug}/comments", json={"content": "hi"}, headers=auth(reader["token"]))

        response = await client.delete(f"/api/v1/blog/posts/{slug}", headers=auth(author["token"]))
        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert (await client.get(f"/api/v1/blog/posts/{slug}")).status_code == 404

        post_id = UUID(post["id"])
        async with session_maker() as db:
            for model in (PostView, PostLike, PostComment):
                count = await db.scalar(select(func.count(model.id)).where(model.post_id == post_id))
                assert count == 0, model.__tablename__

    async def test_delete_unknown_post(self, client, helpers):
        author = await helpers.author()
        response = await client.delete("/api/v1/blog/posts/missing", headers=auth(author["token"]))
        assert response.status_code == status.HTTP_404_NOT_FOUND
