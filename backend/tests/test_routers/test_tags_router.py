"""Integration tests for tags API endpoints."""


class TestTagsRouter:
    """Test cases for /api/tags endpoints."""

    def test_list_is_public(self, client, test_tag):
        response = client.get("/api/tags/")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data[0]["name"] == "python"
        assert data[0]["displayName"] == "Python"

    def test_invalid_sort(self, client):
        assert client.get("/api/tags/", params={"sortBy": "color"}).status_code == 422

    def test_popular_and_search(self, client, test_tag):
        popular = client.get("/api/tags/popular").json()["data"]
        found = client.get("/api/tags/search", params={"q": "PYT"}).json()["data"]

        assert [t["name"] for t in popular] == ["python"]
        assert [t["name"] for t in found] == ["python"]

    def test_tag_posts(self, client, test_tag, test_post):
        response = client.get("/api/tags/python/posts")

        assert response.status_code == 200
        body = response.json()
        assert body["tag"]["id"] == test_tag.id
        assert [p["id"] for p in body["data"]] == [test_post.id]

    def test_unknown_tag_posts(self, client):
        assert client.get("/api/tags/nothing/posts").status_code == 404

    def test_create_requires_admin(self, client, auth_headers):
        response = client.post("/api/tags/", json={"name": "rust"}, headers=auth_headers)

        assert response.status_code == 403

    def test_create(self, client, admin_auth_headers, test_post):
        response = client.post(
            "/api/tags/",
            json={"name": "FastAPI", "color": "#10B981"},
            headers=admin_auth_headers,
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["name"] == "fastapi"
        assert data["usageCount"] == 1

    def test_create_duplicate(self, client, admin_auth_headers, test_tag):
        response = client.post(
            "/api/tags/", json={"name": "python"}, headers=admin_auth_headers
        )

        assert response.status_code == 409

    def test_create_bad_color(self, client, admin_auth_headers):
        response = client.post(
            "/api/tags/", json={"name": "go", "color": "blue"}, headers=admin_auth_headers
        )

        assert response.status_code == 422

    def test_update_and_delete(self, client, admin_auth_headers, test_tag):
        updated = client.put(
            f"/api/tags/{test_tag.id}",
            json={"description": "Snakes"},
            headers=admin_auth_headers,
        )
        assert updated.json()["data"]["description"] == "Snakes"

        deleted = client.delete(f"/api/tags/{test_tag.id}", headers=admin_auth_headers)
        assert deleted.status_code == 200
        assert client.get("/api/tags/").json()["total"] == 0

    def test_reconcile(self, client, admin_auth_headers, test_tag, test_post):
        response = client.post("/api/tags/reconcile", headers=admin_auth_headers)

        assert response.json()["data"] == {"tagsChecked": 1, "tagsUpdated": 1}
