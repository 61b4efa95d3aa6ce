"""End-to-end tests for the HTTP API with in-memory stores behind the services."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from utm_connect.repositories import Link
from utm_connect.services import AuthService, LinkService, PostService
from web.app import create_app
from web.dependencies import get_auth_service, get_link_service, get_post_service

PASSWORD = "Str0ng!Pass1234"

pytestmark = pytest.mark.integration


@pytest.fixture
def auth_service(user_store, refresh_store, token_service, hasher, policy):
    return AuthService(
        users=user_store,
        refresh_tokens=refresh_store,
        tokens=token_service,
        hasher=hasher,
        policy=policy,
    )


@pytest.fixture
def app(auth_service):
    app = create_app(run_security_validation=False, env_override="testing")
    app.dependency_overrides[get_auth_service] = lambda: auth_service
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    # No context manager: the lifespan would try to reach PostgreSQL
    return TestClient(app)


def register(client, email="ana@utm.md", password=PASSWORD):
    return client.post(
        "/api/auth/register",
        json={
            "email": email,
            "name": "Ana",
            "password": password,
            "passwordConfirm": password,
            "group": "FAF-211",
        },
    )


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


class TestAuthRoutes:
    def test_register_sets_refresh_cookie(self, client):
        response = register(client)

        assert response.status_code == 201
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["user"]["email"] == "ana@utm.md"
        assert set(body["user"]) == {"id", "email", "name"}
        assert "university_group" not in body["user"]
        assert "password" not in body["user"]
        cookie = response.headers["set-cookie"]
        assert "refresh_token=" in cookie
        assert "HttpOnly" in cookie
        assert "samesite=strict" in cookie.lower()

    def test_register_duplicate_email(self, client):
        register(client)
        response = register(client, email="ANA@utm.md")

        assert response.status_code == 409
        assert response.headers["content-type"].startswith("application/problem+json")
        assert response.json()["detail"] == "email already registered"

    def test_register_password_mismatch(self, client):
        response = client.post(
            "/api/auth/register",
            json={
                "email": "ana@utm.md",
                "name": "Ana",
                "password": PASSWORD,
                "passwordConfirm": PASSWORD + "x",
            },
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "passwords do not match"

    def test_register_weak_password_lists_violations(self, client):
        response = register(client, password="weak")

        assert response.status_code == 400
        assert response.json()["violations"]

    def test_malformed_body_is_400(self, client):
        response = client.post("/api/auth/register", json={"email": "not-an-email"})

        assert response.status_code == 400
        body = response.json()
        assert body["detail"] == "Request validation failed"
        assert body["type"] == "urn:utmconnect:error:bad-request"
        assert "email" in body["errors"]

    def test_login_wrong_password(self, client):
        register(client)

        response = client.post(
            "/api/auth/login", json={"email": "ana@utm.md", "password": "Wr0ng!Pass1234"}
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "invalid email or password"
        assert response.headers["www-authenticate"] == "Bearer"

    def test_login_unknown_email_same_message(self, client):
        response = client.post(
            "/api/auth/login", json={"email": "nobody@utm.md", "password": PASSWORD}
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "invalid email or password"

    def test_refresh_from_cookie(self, client):
        register(client)

        response = client.post("/api/auth/refresh")

        assert response.status_code == 200
        access_token = response.json()["access_token"]
        assert client.get("/api/auth/me", headers=bearer(access_token)).status_code == 200

    def test_refresh_from_body(self, client):
        token = register(client).cookies["refresh_token"]
        client.cookies.clear()

        response = client.post("/api/auth/refresh", json={"refresh_token": token})

        assert response.status_code == 200

    def test_refresh_without_token(self, client):
        response = client.post("/api/auth/refresh")

        assert response.status_code == 401
        assert response.json()["detail"] == "invalid refresh token"

    def test_login_invalidates_previous_refresh_token(self, client):
        old_token = register(client).cookies["refresh_token"]
        client.post("/api/auth/login", json={"email": "ana@utm.md", "password": PASSWORD})
        client.cookies.clear()

        response = client.post("/api/auth/refresh", json={"refresh_token": old_token})

        assert response.status_code == 401
        assert response.json()["detail"] == "refresh token not found or revoked"

    def test_logout_revokes_refresh_tokens(self, client):
        body = register(client).json()
        refresh_token = client.cookies["refresh_token"]

        response = client.post("/api/auth/logout", headers=bearer(body["access_token"]))

        assert response.status_code == 200
        assert response.json() == {"message": "Logged out successfully"}
        client.cookies.clear()
        refreshed = client.post("/api/auth/refresh", json={"refresh_token": refresh_token})
        assert refreshed.status_code == 401

    def test_me_requires_token(self, client):
        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["detail"] == "Not authenticated"

    def test_me_rejects_refresh_token_as_access(self, client):
        register(client)
        refresh_token = client.cookies["refresh_token"]

        response = client.get("/api/auth/me", headers=bearer(refresh_token))

        assert response.status_code == 401
        assert response.json()["detail"] == "invalid token"


class TestLinkRoutes:
    @pytest.fixture
    def links(self, app):
        links, campaigns = AsyncMock(), AsyncMock()
        app.dependency_overrides[get_link_service] = lambda: LinkService(links, campaigns)
        return links

    def test_resolve_records_click_metadata(self, client, links):
        link = Link(id="l1", original_url="https://utm.md/?utm_source=x", short_code="abc", user_id="u1")
        links.get_by_short_code.return_value = link
        links.record_click.return_value = link

        response = client.get(
            "/api/links/abc", headers={"User-Agent": "pytest", "Referer": "https://ref.md"}
        )

        assert response.status_code == 200
        assert response.json()["original_url"] == "https://utm.md/?utm_source=x"
        link_id, user_agent, referer, ip_address = links.record_click.call_args.args
        assert (link_id, user_agent, referer) == ("l1", "pytest", "https://ref.md")

    def test_unknown_short_code(self, client, links):
        links.get_by_short_code.return_value = None

        response = client.get("/api/links/missing")

        assert response.status_code == 404
        assert response.json()["detail"] == "Link not found"

    def test_duplicate_short_code(self, client, links):
        access_token = register(client).json()["access_token"]
        links.get_by_short_code.return_value = Link(
            id="l1", original_url="https://a.md", short_code="abc", user_id="u1"
        )

        response = client.post(
            "/api/links",
            json={"originalUrl": "https://b.md", "shortCode": "abc"},
            headers=bearer(access_token),
        )

        assert response.status_code == 409

    def test_invalid_short_code_characters(self, client, links):
        access_token = register(client).json()["access_token"]

        response = client.post(
            "/api/links",
            json={"originalUrl": "https://b.md", "shortCode": "no spaces"},
            headers=bearer(access_token),
        )

        assert response.status_code == 400
        links.create.assert_not_called()


class TestPostRoutes:
    def test_cannot_like_for_someone_else(self, app, client):
        posts = AsyncMock()
        app.dependency_overrides[get_post_service] = lambda: PostService(posts)
        access_token = register(client).json()["access_token"]

        response = client.post("/api/posts/p1/likes/someone-else", headers=bearer(access_token))

        assert response.status_code == 403
        posts.add_like.assert_not_called()


class TestHealthAndMiddleware:
    def test_health_reports_unhealthy_database(self, client):
        with patch(
            "web.routes.health.check_database",
            new=AsyncMock(return_value={"status": "unhealthy", "latency_ms": 0}),
        ):
            response = client.get("/health")

        assert response.status_code == 503
        assert response.json()["components"]["database"]["status"] == "unhealthy"

    def test_liveness(self, client):
        assert client.get("/health/live").json()["status"] == "alive"

    def test_security_headers(self, client):
        response = client.get("/health/live")

        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["Referrer-Policy"] == "no-referrer"
        assert "Strict-Transport-Security" not in response.headers

    def test_request_id_echoed(self, client):
        response = client.get("/health/live", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"

    def test_unsafe_request_id_replaced(self, client):
        response = client.get("/health/live", headers={"X-Request-ID": "bad id with spaces"})

        assert response.headers["X-Request-ID"] != "bad id with spaces"

    def test_unknown_route_is_problem_json(self, client):
        response = client.get("/api/nope")

        assert response.status_code == 404
        assert response.json()["title"] == "Not Found"
        assert response.json()["type"] == "urn:utmconnect:error:not-found"

    def test_wrong_method_is_problem_json(self, client):
        response = client.get("/api/auth/login")

        assert response.status_code == 405
        assert response.headers["content-type"].startswith("application/problem+json")
        assert response.json()["title"] == "Method Not Allowed"

    def test_cors_preflight_for_configured_origin(self, client):
        response = client.options(
            "/api/auth/login",
            headers={"Origin": "http://localhost:8080", "Access-Control-Request-Method": "POST"},
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:8080"
