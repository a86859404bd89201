"""
Tests for activity CRUD and the host-only policy.
"""

from conftest import activity_payload

from reactivities_api.app.core.db import get_cursor


class TestCreateActivity:
    """Creating activities."""

    def test_create_returns_id_and_persists(self, client, bob):
        response = client.post("/api/activities", json=activity_payload(title="Pub quiz"), headers=bob.headers)
        assert response.status_code == 200
        activity_id = response.json()
        assert isinstance(activity_id, str)

        details = client.get(f"/api/activities/{activity_id}", headers=bob.headers)
        assert details.status_code == 200
        data = details.json()
        assert data["id"] == activity_id
        assert data["title"] == "Pub quiz"
        assert data["isCancelled"] is False
        assert data["city"] == "London"

    def test_creator_becomes_host(self, client, bob, activity_id):
        data = client.get(f"/api/activities/{activity_id}", headers=bob.headers).json()
        assert data["hostId"] == bob.id
        assert data["hostDisplayName"] == "Bob"
        assert [a["id"] for a in data["attendees"]] == [bob.id]
        assert data["attendees"][0]["displayName"] == "Bob"

    def test_create_requires_authentication(self, client):
        response = client.post("/api/activities", json=activity_payload())
        assert response.status_code == 401


class TestGetActivity:
    """Reading activity details."""

    def test_unknown_activity_is_404(self, client, bob):
        response = client.get("/api/activities/does-not-exist", headers=bob.headers)
        assert response.status_code == 404
        assert response.json() == {"statusCode": 404, "message": "Activity not found"}

    def test_attendee_profiles_are_relative_to_viewer(self, client, bob, tom, activity_id):
        client.post(f"/api/profiles/{bob.id}/follow", headers=tom.headers)
        data = client.get(f"/api/activities/{activity_id}", headers=tom.headers).json()
        host = data["attendees"][0]
        assert host["following"] is True
        assert host["followersCount"] == 1


class TestEditActivity:
    """Editing activities (host only)."""

    def test_host_can_edit(self, client, bob, activity_id):
        payload = activity_payload(title="Updated title", city="Paris", id=activity_id)
        response = client.put(f"/api/activities/{activity_id}", json=payload, headers=bob.headers)
        assert response.status_code == 200
        data = client.get(f"/api/activities/{activity_id}", headers=bob.headers).json()
        assert data["title"] == "Updated title"
        assert data["city"] == "Paris"

    def test_non_host_is_forbidden(self, client, tom, activity_id):
        response = client.put(f"/api/activities/{activity_id}", json=activity_payload(), headers=tom.headers)
        assert response.status_code == 403
        assert response.json()["message"] == "Only the host can modify this activity"

    def test_attendee_who_is_not_host_is_forbidden(self, client, bob, tom, activity_id):
        client.post(f"/api/activities/{activity_id}/attend", headers=tom.headers)
        response = client.put(f"/api/activities/{activity_id}", json=activity_payload(), headers=tom.headers)
        assert response.status_code == 403

    def test_edit_unknown_activity_is_404(self, client, bob):
        response = client.put("/api/activities/missing", json=activity_payload(), headers=bob.headers)
        assert response.status_code == 404

    def test_edit_is_validated(self, client, bob, activity_id):
        response = client.put(
            f"/api/activities/{activity_id}", json=activity_payload(title=""), headers=bob.headers
        )
        assert response.status_code == 400
        assert response.json()["errors"]["title"] == ["Title is required"]


class TestDeleteActivity:
    """Deleting activities (host only)."""

    def test_delete_unknown_activity_is_404(self, client, bob):
        response = client.delete("/api/activities/missing", headers=bob.headers)
        assert response.status_code == 404

    def test_non_host_cannot_delete(self, client, tom, activity_id):
        response = client.delete(f"/api/activities/{activity_id}", headers=tom.headers)
        assert response.status_code == 403

    def test_host_deletes_activity_with_attendees_and_comments(self, client, bob, tom, activity_id):
        client.post(f"/api/activities/{activity_id}/attend", headers=tom.headers)
        with client.websocket_connect(f"/comments?activityId={activity_id}&access_token={tom.token}") as ws:
            ws.receive_json()
            ws.send_json({"body": "See you there"})
            ws.receive_json()

        response = client.delete(f"/api/activities/{activity_id}", headers=bob.headers)
        assert response.status_code == 200
        assert client.get(f"/api/activities/{activity_id}", headers=bob.headers).status_code == 404

        with get_cursor() as cursor:
            attendees = cursor.execute(
                "SELECT COUNT(*) AS count FROM activity_attendees WHERE activity_id = ?", (activity_id,)
            ).fetchone()["count"]
            comments = cursor.execute(
                "SELECT COUNT(*) AS count FROM comments WHERE activity_id = ?", (activity_id,)
            ).fetchone()["count"]
        assert attendees == 0
        assert comments == 0
