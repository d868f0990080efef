"""Registration, login, token refresh, profile and admin user management."""
from fastapi import status

from conftest import PASSWORD, auth


class TestRegisterAndLogin:
    async def test_register_then_login(self, client, helpers, app):
        registered = await helpers.register("a@x.com", "Alice")
        assert registered["user"]["email"] == "a@x.com"
        assert registered["profile"]["name"] == "Alice"
        assert registered["profile"]["role"] == "user"
        assert registered["profile"]["settings"]["theme"]["mode"] == "dark"
        assert registered["token"] and registered["refresh_token"]

        response = await client.post("/api/v1/auth/login", json={"email": "a@x.com", "password": PASSWORD})
        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["token"]
        assert body["user"]["id"] == registered["user"]["id"]
        assert app.state.metrics.value("users_registered") == 1
        assert app.state.metrics.value("login_success") == 1

    async def test_email_is_case_insensitive(self, client, helpers):
        await helpers.register("a@x.com")
        response = await client.post("/api/v1/auth/login", json={"email": "A@X.com", "password": PASSWORD})
        assert response.status_code == status.HTTP_200_OK

    async def test_duplicate_email_conflicts(self, client, helpers):
        await helpers.register("a@x.com")
        response = await client.post(
            "/api/v1/auth/register", json={"email": "a@x.com", "password": PASSWORD, "name": "Other"}
        )
        assert response.status_code == status.HTTP_409_CONFLICT

    async def test_bad_credentials(self, client, helpers, app):
        await helpers.register("a@x.com")
        response = await client.post("/api/v1/auth/login", json={"email": "a@x.com", "password": "wrong-one"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert app.state.metrics.value("login_failed") == 1

    async def test_invalid_payload_is_a_bad_request(self, client):
        response = await client.post("/api/v1/auth/register", json={"email": "nope", "password": "x"})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

        malformed = await client.post(
            "/api/v1/auth/login", content=b"{not json", headers={"content-type": "application/json"}
        )
        assert malformed.status_code == status.HTTP_400_BAD_REQUEST

    async def test_refresh_and_me(self, client, helpers):
        registered = await helpers.register("a@x.com", "Alice")
        refreshed = await client.post("/api/v1/auth/refresh", json={"refresh_token": registered["refresh_token"]})
        assert refreshed.status_code == status.HTTP_200_OK

        me = await client.get("/api/v1/auth/me", headers=auth(refreshed.json()["token"]))
        assert me.status_code == status.HTTP_200_OK
        assert me.json()["profile"]["name"] == "Alice"

    async def test_access_token_cannot_refresh(self, client, helpers):
        registered = await helpers.register("a@x.com")
        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": registered["token"]})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    async def test_garbage_token_is_unauthorized(self, client, app):
        response = await client.get("/api/v1/auth/me", headers=auth("garbage"))
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.headers["www-authenticate"] == "Bearer"
        assert app.state.metrics.value("auth_errors") == 1


class TestProfile:
    async def test_partial_update_merges_settings(self, client, helpers, app):
        alice = await helpers.register("a@x.com", "Alice")
        response = await client.put(
            "/api/v1/profile",
            json={"bio": "Writer", "settings": {"language": "en-US", "theme": {"mode": "light"}}},
            headers=auth(alice["token"]),
        )
        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["name"] == "Alice"
        assert body["bio"] == "Writer"
        assert body["settings"]["language"] == "en-US"
        assert body["settings"]["currency"] == "BRL"
        assert body["settings"]["theme"] == {"mode": "light", "primary_color": "#D4AF37", "accent_color": ""}
        assert app.state.metrics.value("profile_updates") == 1

    async def test_invalid_theme_mode(self, client, helpers):
        alice = await helpers.register("a@x.com")
        response = await client.put(
            "/api/v1/profile", json={"settings": {"theme": {"mode": "neon"}}}, headers=auth(alice["token"])
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestAdminUsers:
    async def test_list_and_change_role(self, client, helpers):
        admin = await helpers.register("admin@x.com", "Admin")
        await helpers.set_role(admin["user"]["id"], "admin")
        bob = await helpers.register("bob@x.com", "Bob")

        listing = await client.get("/api/v1/users", params={"search": "bo"}, headers=auth(admin["token"]))
        assert listing.status_code == status.HTTP_200_OK
        assert [u["email"] for u in listing.json()["users"]] == ["bob@x.com"]

        changed = await client.put(
            f"/api/v1/users/{bob['user']['id']}/role", json={"role": "author"}, headers=auth(admin["token"])
        )
        assert changed.status_code == status.HTTP_200_OK
        assert changed.json()["role"] == "author"

        authors = await client.get("/api/v1/users", params={"role": "author"}, headers=auth(admin["token"]))
        assert authors.json()["total"] == 1

    async def test_non_admin_is_forbidden(self, client, helpers):
        bob = await helpers.register("bob@x.com", "Bob")
        response = await client.get("/api/v1/users", headers=auth(bob["token"]))
        assert response.status_code == status.HTTP_403_FORBIDDEN
