"""
Tests for profiles, photos, followings and profile activity lists.
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path

from conftest import activity_payload

from reactivities_api.app.core.db import get_cursor, to_db_datetime


PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def _upload(client, user, content=PNG_BYTES, content_type="image/png", name="me.png"):
    return client.post(
        "/api/profiles/add-photo",
        files={"file": (name, content, content_type)},
        headers=user.headers,
    )


class TestProfile:
    """Reading and editing profiles."""

    def test_get_profile(self, client, bob, tom):
        response = client.get(f"/api/profiles/{bob.id}", headers=tom.headers)
        assert response.status_code == 200
        assert response.json() == {
            "id": bob.id,
            "displayName": "Bob",
            "bio": None,
            "imageUrl": None,
            "following": False,
            "followersCount": 0,
            "followingCount": 0,
        }

    def test_unknown_profile_is_404(self, client, bob):
        response = client.get("/api/profiles/nobody", headers=bob.headers)
        assert response.status_code == 404

    def test_edit_profile(self, client, bob):
        response = client.put("/api/profiles", json={"displayName": "Robert", "bio": "Likes jazz"}, headers=bob.headers)
        assert response.status_code == 200
        data = client.get(f"/api/profiles/{bob.id}", headers=bob.headers).json()
        assert data["displayName"] == "Robert"
        assert data["bio"] == "Likes jazz"


class TestPhotos:
    """Uploading, listing, deleting and choosing the main photo."""

    def test_first_photo_becomes_main(self, client, bob, photo_storage):
        response = _upload(client, bob)
        assert response.status_code == 200
        photo = response.json()
        assert photo["userId"] == bob.id
        assert photo["url"] == f"/photos/{photo['publicId']}"
        assert (Path(photo_storage.directory) / photo["publicId"]).exists()

        profile = client.get(f"/api/profiles/{bob.id}", headers=bob.headers).json()
        assert profile["imageUrl"] == photo["url"]

    def test_second_photo_does_not_replace_main(self, client, bob):
        first = _upload(client, bob).json()
        second = _upload(client, bob).json()
        profile = client.get(f"/api/profiles/{bob.id}", headers=bob.headers).json()
        assert profile["imageUrl"] == first["url"]

        photos = client.get(f"/api/profiles/{bob.id}/photos", headers=bob.headers).json()
        assert [p["id"] for p in photos] == [first["id"], second["id"]]

    def test_rejected_upload(self, client, bob):
        response = _upload(client, bob, content=b"plain text", content_type="text/plain", name="notes.txt")
        assert response.status_code == 400
        assert response.json()["message"] == "Failed to upload photo"

    def test_empty_upload_is_rejected(self, client, bob):
        response = _upload(client, bob, content=b"")
        assert response.status_code == 400

    def test_cannot_delete_main_photo(self, client, bob):
        photo = _upload(client, bob).json()
        response = client.delete(f"/api/profiles/{photo['id']}/photos", headers=bob.headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Cannot delete main photo"

    def test_delete_photo_removes_file(self, client, bob, photo_storage):
        _upload(client, bob)
        second = _upload(client, bob).json()
        response = client.delete(f"/api/profiles/{second['id']}/photos", headers=bob.headers)
        assert response.status_code == 200
        assert not (Path(photo_storage.directory) / second["publicId"]).exists()
        photos = client.get(f"/api/profiles/{bob.id}/photos", headers=bob.headers).json()
        assert second["id"] not in [p["id"] for p in photos]

    def test_cannot_delete_someone_elses_photo(self, client, bob, tom):
        _upload(client, bob)
        second = _upload(client, bob).json()
        response = client.delete(f"/api/profiles/{second['id']}/photos", headers=tom.headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Cannot find photo"

    def test_set_main_photo(self, client, bob):
        _upload(client, bob)
        second = _upload(client, bob).json()
        response = client.put(f"/api/profiles/{second['id']}/setMain", headers=bob.headers)
        assert response.status_code == 200
        info = client.get("/api/account/user-info", headers=bob.headers).json()
        assert info["imageUrl"] == second["url"]

    def test_set_main_unknown_photo(self, client, bob):
        response = client.put("/api/profiles/missing/setMain", headers=bob.headers)
        assert response.status_code == 400
        assert response.json()["message"] == "Cannot find photo"


class TestFollowings:
    """Follow toggle and follow lists."""

    def test_follow_and_unfollow(self, client, bob, tom):
        response = client.post(f"/api/profiles/{tom.id}/follow", headers=bob.headers)
        assert response.status_code == 200
        tom_profile = client.get(f"/api/profiles/{tom.id}", headers=bob.headers).json()
        assert tom_profile["following"] is True
        assert tom_profile["followersCount"] == 1
        bob_profile = client.get(f"/api/profiles/{bob.id}", headers=bob.headers).json()
        assert bob_profile["followingCount"] == 1

        client.post(f"/api/profiles/{tom.id}/follow", headers=bob.headers)
        tom_profile = client.get(f"/api/profiles/{tom.id}", headers=bob.headers).json()
        assert tom_profile["following"] is False
        assert tom_profile["followersCount"] == 0

    def test_cannot_follow_yourself(self, client, bob):
        response = client.post(f"/api/profiles/{bob.id}/follow", headers=bob.headers)
        assert response.status_code == 400

    def test_follow_unknown_user_is_404(self, client, bob):
        response = client.post("/api/profiles/nobody/follow", headers=bob.headers)
        assert response.status_code == 404

    def test_follow_lists(self, client, bob, tom, jane):
        client.post(f"/api/profiles/{bob.id}/follow", headers=tom.headers)
        client.post(f"/api/profiles/{bob.id}/follow", headers=jane.headers)
        client.post(f"/api/profiles/{jane.id}/follow", headers=bob.headers)

        followers = client.get(f"/api/profiles/{bob.id}/follow-list", headers=bob.headers).json()
        assert sorted(p["displayName"] for p in followers) == ["Jane", "Tom"]
        jane_entry = next(p for p in followers if p["id"] == jane.id)
        assert jane_entry["following"] is True

        followings = client.get(
            f"/api/profiles/{bob.id}/follow-list", params={"predicate": "followings"}, headers=bob.headers
        ).json()
        assert [p["id"] for p in followings] == [jane.id]

    def test_unknown_predicate_gives_empty_list(self, client, bob, tom):
        client.post(f"/api/profiles/{bob.id}/follow", headers=tom.headers)
        response = client.get(
            f"/api/profiles/{bob.id}/follow-list", params={"predicate": "friends"}, headers=bob.headers
        )
        assert response.status_code == 200
        assert response.json() == []


class TestUserActivities:
    """GET /api/profiles/{id}/activities."""

    def test_filters(self, client, bob, tom):
        hosted = client.post("/api/activities", json=activity_payload(title="Hosted"), headers=bob.headers).json()
        attended = client.post(
            "/api/activities", json=activity_payload(title="Attended"), headers=tom.headers
        ).json()
        client.post(f"/api/activities/{attended}/attend", headers=bob.headers)
        past = client.post("/api/activities", json=activity_payload(title="Old"), headers=bob.headers).json()
        with get_cursor() as cursor:
            cursor.execute(
                "UPDATE activities SET date = ? WHERE id = ?",
                (to_db_datetime(datetime.now(timezone.utc) - timedelta(days=3)), past),
            )

        future = client.get(f"/api/profiles/{bob.id}/activities", headers=bob.headers).json()
        assert sorted(a["id"] for a in future) == sorted([hosted, attended])

        past_items = client.get(
            f"/api/profiles/{bob.id}/activities", params={"filter": "past"}, headers=bob.headers
        ).json()
        assert [a["id"] for a in past_items] == [past]
        assert set(past_items[0]) == {"id", "title", "category", "date"}

        hosting = client.get(
            f"/api/profiles/{bob.id}/activities", params={"filter": "hosting"}, headers=bob.headers
        ).json()
        assert sorted(a["id"] for a in hosting) == sorted([hosted, past])
