"""Tests for application-level wiring in main.py."""

from main import app


class TestAppWiring:
    def test_root(self, client):
        assert client.get("/").json() == {"message": "Welcome to the Forum API"}

    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_response_time_header(self, client):
        response = client.get("/api/health")

        assert response.headers["X-Response-Time"].endswith("s")

    def test_cors_allows_configured_origin(self, client):
        response = client.options(
            "/api/posts/",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "GET",
            },
        )

        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
        assert response.headers["access-control-allow-credentials"] == "true"

    def test_cors_rejects_unknown_origin(self, client):
        response = client.options(
            "/api/posts/",
            headers={
                "Origin": "http://evil.example.com",
                "Access-Control-Request-Method": "GET",
            },
        )

        assert "access-control-allow-origin" not in response.headers

    def test_routers_mounted_under_api(self):
        paths = app.openapi()["paths"]

        for prefix in ("auth", "posts", "comments", "users", "tags", "announcements", "admin"):
            assert any(path.startswith(f"/api/{prefix}/") for path in paths), prefix
