# Test configuration
import html
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from reactivities_api.app.core.config import settings
from reactivities_api.app.main import app
from reactivities_api.app.services.email_service import EmailMessage, LoggingEmailSender, get_email_sender
from reactivities_api.app.services.photo_service import LocalPhotoStorage, get_photo_storage


PASSWORD = "Pa$$w0rd"


@dataclass
class RegisteredUser:
    id: str
    display_name: str
    email: str
    token: str

    @property
    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


def link_params(message: EmailMessage) -> Dict[str, str]:
    """Extract the query parameters of the link in an outgoing email."""
    match = re.search(r"href='([^']+)'", message.html_body)
    assert match, message.html_body
    query = parse_qs(urlparse(html.unescape(match.group(1))).query)
    return {key: values[0] for key, values in query.items()}


def activity_payload(**overrides) -> dict:
    payload = {
        "title": "Future Activity",
        "date": (datetime.now(timezone.utc) + timedelta(days=30)).isoformat(),
        "description": "Drinks with friends",
        "category": "drinks",
        "city": "London",
        "venue": "The Lamb and Flag",
        "latitude": 51.5117,
        "longitude": -0.1257,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def email_sender():
    return LoggingEmailSender()


@pytest.fixture
def photo_storage(tmp_path):
    return LocalPhotoStorage(str(tmp_path / "photos"), "/photos")


@pytest.fixture
def client(tmp_path, monkeypatch, email_sender, photo_storage):
    """Test client backed by a fresh SQLite database."""
    monkeypatch.setattr(settings, "database_url", str(tmp_path / "test.db"))
    monkeypatch.setattr(settings, "seed_data", False)
    monkeypatch.setattr(settings, "require_confirmed_email", False)
    monkeypatch.setattr(settings, "photo_storage_dir", str(tmp_path / "photos"))
    app.dependency_overrides[get_email_sender] = lambda: email_sender
    app.dependency_overrides[get_photo_storage] = lambda: photo_storage
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(client):
    """Factory registering a user and signing them in."""

    def _make_user(display_name: str, password: str = PASSWORD) -> RegisteredUser:
        email = f"{display_name.lower()}@test.com"
        response = client.post(
            "/api/account/register",
            json={"displayName": display_name, "email": email, "password": password},
        )
        assert response.status_code == 200, response.text
        response = client.post("/api/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        token = response.json()["access_token"]
        info = client.get("/api/account/user-info", headers={"Authorization": f"Bearer {token}"}).json()
        return RegisteredUser(id=info["id"], display_name=display_name, email=email, token=token)

    return _make_user


@pytest.fixture
def bob(make_user):
    return make_user("Bob")


@pytest.fixture
def tom(make_user):
    return make_user("Tom")


@pytest.fixture
def jane(make_user):
    return make_user("Jane")


@pytest.fixture
def activity_id(client, bob):
    """An upcoming activity hosted by Bob."""
    response = client.post("/api/activities", json=activity_payload(), headers=bob.headers)
    assert response.status_code == 200, response.text
    return response.json()
