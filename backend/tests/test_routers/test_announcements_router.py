"""Integration tests for announcements API endpoints."""

from datetime import timedelta, timezone

import repositories.db_models as db_models
from helpers.time_utils import utc_now


class TestAnnouncementsRouter:
    """Test cases for /api/announcements endpoints."""

    def test_list_by_audience(self, client, make_announcement, gold_auth_headers):
        make_announcement("Everyone")
        make_announcement("Members", target_audience=db_models.TargetAudience.MEMBERS)

        anonymous = client.get("/api/announcements/").json()
        member = client.get("/api/announcements/", headers=gold_auth_headers).json()

        assert [a["title"] for a in anonymous["data"]] == ["Everyone"]
        assert member["total"] == 2

    def test_count(self, client, make_announcement):
        make_announcement()
        make_announcement(is_active=False)

        response = client.get("/api/announcements/count")

        assert response.json()["data"] == {"count": 1}

    def test_get_counts_view(self, client, make_announcement):
        announcement = make_announcement()

        data = client.get(f"/api/announcements/{announcement.id}").json()["data"]

        assert data["views"] == 1
        assert data["author"]["name"] == "Admin User"

    def test_get_members_only_as_bronze(self, client, make_announcement, auth_headers):
        announcement = make_announcement(target_audience=db_models.TargetAudience.MEMBERS)

        response = client.get(f"/api/announcements/{announcement.id}", headers=auth_headers)

        assert response.status_code == 403

    def test_get_expired(self, client, make_announcement):
        announcement = make_announcement(expires_at=utc_now() - timedelta(days=1))

        assert client.get(f"/api/announcements/{announcement.id}").status_code == 404

    def test_create_requires_admin(self, client, auth_headers):
        response = client.post(
            "/api/announcements/",
            json={"title": "Hi", "description": "There"},
            headers=auth_headers,
        )

        assert response.status_code == 403

    def test_create_with_offset_expiry(self, client, admin_auth_headers):
        expiry = (utc_now() + timedelta(hours=2)).astimezone(timezone(timedelta(hours=-5)))

        created = client.post(
            "/api/announcements/",
            json={
                "title": "Window",
                "description": "Closes in two hours",
                "expiresAt": expiry.isoformat(),
            },
            headers=admin_auth_headers,
        )

        assert created.status_code == 201
        assert created.json()["data"]["isActive"] is True
        assert client.get("/api/announcements/count").json()["data"]["count"] == 1

    def test_admin_lifecycle(self, client, admin_auth_headers):
        created = client.post(
            "/api/announcements/",
            json={
                "title": "Release",
                "description": "Version 2 is out",
                "priority": "high",
                "type": "feature",
                "targetAudience": "members",
            },
            headers=admin_auth_headers,
        )
        assert created.status_code == 201
        announcement_id = created.json()["data"]["id"]

        pinned = client.put(
            f"/api/announcements/{announcement_id}/toggle-pin", headers=admin_auth_headers
        )
        assert pinned.json()["data"]["isPinned"] is True

        updated = client.put(
            f"/api/announcements/{announcement_id}",
            json={"priority": "urgent"},
            headers=admin_auth_headers,
        )
        assert updated.json()["data"]["priority"] == "urgent"

        deleted = client.delete(
            f"/api/announcements/{announcement_id}", headers=admin_auth_headers
        )
        assert deleted.status_code == 200

        inactive = client.get(
            "/api/announcements/admin/all",
            params={"status": "inactive"},
            headers=admin_auth_headers,
        ).json()
        assert [a["id"] for a in inactive["data"]] == [announcement_id]

    def test_admin_list_rejects_unknown_status(self, client, admin_auth_headers):
        response = client.get(
            "/api/announcements/admin/all",
            params={"status": "archived"},
            headers=admin_auth_headers,
        )

        assert response.status_code == 422
