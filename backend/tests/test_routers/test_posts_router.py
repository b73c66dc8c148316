"""Integration tests for posts API endpoints."""

from models.config import settings

NEW_POST = {"title": "Async tips", "description": "Use asyncio.gather", "tags": ["Python"]}


class TestListPosts:
    def test_pagination_envelope(self, client, make_post, test_user):
        for i in range(7):
            make_post(test_user, title=f"Post {i}")

        response = client.get("/api/posts/", params={"page": 2, "limit": 5})

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 2
        assert body["total"] == 7
        assert body["totalPages"] == 2
        assert body["currentPage"] == 2
        assert body["pagination"] == {"prev": {"page": 1, "limit": 5}}

    def test_single_page_has_no_links(self, client, test_post):
        body = client.get("/api/posts/").json()

        assert body["pagination"] == {}

    def test_default_page_size(self, client, make_post, test_user):
        for i in range(settings.POSTS_PAGE_SIZE + 1):
            make_post(test_user, title=f"Post {i}")

        body = client.get("/api/posts/").json()

        assert body["count"] == settings.POSTS_PAGE_SIZE
        assert body["pagination"]["next"] == {"page": 2, "limit": settings.POSTS_PAGE_SIZE}

    def test_invalid_sort(self, client):
        assert client.get("/api/posts/", params={"sortBy": "random"}).status_code == 422

    def test_private_posts_not_listed(self, client, test_post, private_post):
        body = client.get("/api/posts/").json()

        assert [p["id"] for p in body["data"]] == [test_post.id]


class TestReadPost:
    def test_get_post_with_user_vote(self, client, test_post, other_auth_headers):
        client.post(
            f"/api/posts/{test_post.id}/vote",
            json={"voteType": "up"},
            headers=other_auth_headers,
        )

        response = client.get(f"/api/posts/{test_post.id}", headers=other_auth_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["userVote"] == "up"
        assert data["upVote"] == 1
        assert data["tags"] == ["python", "fastapi"]
        assert data["author"]["name"] == "Test User"

    def test_anonymous_has_no_vote(self, client, test_post):
        data = client.get(f"/api/posts/{test_post.id}").json()["data"]

        assert data["userVote"] is None
        assert data["views"] == 1

    def test_private_post_forbidden(self, client, private_post, other_auth_headers):
        response = client.get(f"/api/posts/{private_post.id}", headers=other_auth_headers)

        assert response.status_code == 403
        assert response.json()["message"] == "This post is private"

    def test_missing_post(self, client):
        response = client.get("/api/posts/999")

        assert response.status_code == 404
        assert response.json()["success"] is False


class TestWritePost:
    def test_create_requires_auth(self, client):
        assert client.post("/api/posts/", json=NEW_POST).status_code == 401

    def test_create(self, client, auth_headers):
        response = client.post("/api/posts/", json=NEW_POST, headers=auth_headers)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["tags"] == ["python"]
        assert data["visibility"] == "public"

    def test_post_limit_body(self, client, auth_headers, make_post, test_user):
        for i in range(settings.BRONZE_POST_LIMIT):
            make_post(test_user, title=f"Post {i}")

        response = client.post("/api/posts/", json=NEW_POST, headers=auth_headers)

        assert response.status_code == 403
        body = response.json()
        assert body["postLimit"] is True
        assert body["success"] is False

    def test_create_requires_tags(self, client, auth_headers):
        response = client.post(
            "/api/posts/", json={**NEW_POST, "tags": []}, headers=auth_headers
        )

        assert response.status_code == 422

    def test_update_by_other_user(self, client, test_post, other_auth_headers):
        response = client.put(
            f"/api/posts/{test_post.id}", json={"title": "Taken"}, headers=other_auth_headers
        )

        assert response.status_code == 403

    def test_update_and_delete(self, client, test_post, auth_headers):
        response = client.put(
            f"/api/posts/{test_post.id}", json={"title": "Renamed"}, headers=auth_headers
        )
        assert response.json()["data"]["title"] == "Renamed"

        assert client.delete(f"/api/posts/{test_post.id}", headers=auth_headers).status_code == 200
        assert client.get(f"/api/posts/{test_post.id}").status_code == 404

    def test_my_posts_include_private(self, client, test_post, private_post, auth_headers):
        body = client.get("/api/posts/user/my-posts", headers=auth_headers).json()

        assert body["total"] == 2


class TestVoting:
    def test_toggle_vote(self, client, test_post, other_auth_headers):
        url = f"/api/posts/{test_post.id}/vote"

        first = client.post(url, json={"voteType": "down"}, headers=other_auth_headers)
        second = client.post(url, json={"voteType": "down"}, headers=other_auth_headers)

        assert first.json()["data"] == {
            "upVote": 0,
            "downVote": 1,
            "voteDifference": -1,
            "userVote": "down",
        }
        assert second.json()["data"]["userVote"] is None

    def test_invalid_vote_type(self, client, test_post, other_auth_headers):
        response = client.post(
            f"/api/posts/{test_post.id}/vote",
            json={"voteType": "maybe"},
            headers=other_auth_headers,
        )

        assert response.status_code == 400


class TestSearch:
    def test_search_echoes_query(self, client, test_post):
        response = client.get("/api/posts/search", params={"q": "hello", "tags": "Python, fastapi"})

        assert response.status_code == 200
        body = response.json()
        assert body["searchTerm"] == "hello"
        assert body["tags"] == ["python", "fastapi"]
        assert body["total"] == 1

    def test_search_without_criteria(self, client):
        assert client.get("/api/posts/search").status_code == 400

    def test_popular_searches(self, client, test_post):
        for _ in range(2):
            client.get("/api/posts/search", params={"q": "hello"})

        data = client.get("/api/posts/popular-searches").json()["data"]

        assert [s["term"] for s in data] == ["hello"]
        assert data[0]["searchCount"] == 2
