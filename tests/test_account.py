"""
Tests for registration, email confirmation, login and password management.
"""

import pytest
from conftest import PASSWORD, link_params

from reactivities_api.app.core.config import settings
from reactivities_api.app.services import account_service
from reactivities_api.app.services.account_service import validate_password


def _register(client, email="alice@test.com", password=PASSWORD, display_name="Alice"):
    return client.post(
        "/api/account/register",
        json={"displayName": display_name, "email": email, "password": password},
    )


def _login(client, email="alice@test.com", password=PASSWORD):
    return client.post("/api/login", json={"email": email, "password": password})


class TestPasswordPolicy:
    def test_strong_password_passes(self):
        assert validate_password("Pa$$w0rd") == {}

    @pytest.mark.parametrize(
        "password, code",
        [
            ("Pa$1", "PasswordTooShort"),
            ("Password1", "PasswordRequiresNonAlphanumeric"),
            ("Pa$$word", "PasswordRequiresDigit"),
            ("PA$$W0RD", "PasswordRequiresLower"),
            ("pa$$w0rd", "PasswordRequiresUpper"),
        ],
    )
    def test_each_rule(self, password, code):
        assert list(validate_password(password)) == [code]


class TestRegister:
    """POST /api/account/register."""

    def test_register_sends_confirmation_link(self, client, email_sender):
        response = _register(client)
        assert response.status_code == 200
        assert len(email_sender.outbox) == 1
        message = email_sender.outbox[0]
        assert message.to == "alice@test.com"
        assert message.subject == "Confirm your email address"
        assert f"{settings.client_app_url}/confirm-email?" in message.html_body
        params = link_params(message)
        assert params["userId"] and params["code"]

    def test_weak_password(self, client):
        response = _register(client, password="password")
        assert response.status_code == 400
        errors = response.json()["errors"]
        assert set(errors) == {
            "PasswordRequiresNonAlphanumeric",
            "PasswordRequiresDigit",
            "PasswordRequiresUpper",
        }

    def test_duplicate_email(self, client):
        _register(client)
        response = _register(client, email="ALICE@test.com")
        assert response.status_code == 400
        assert "DuplicateEmail" in response.json()["errors"]

    def test_duplicate_email_detected_by_unique_index(self, client, monkeypatch):
        _register(client)
        # Simulate a concurrent registration that passed the lookup.
        monkeypatch.setattr(account_service, "_find_user", lambda cursor, **kwargs: None)
        response = _register(client, email="ALICE@test.com")
        assert response.status_code == 400
        errors = response.json()["errors"]
        assert list(errors) == ["DuplicateEmail"]
        assert errors["DuplicateEmail"][0].endswith("is already taken.")


class TestEmailConfirmation:
    """Confirmation codes and the confirmed-email login requirement."""

    @pytest.fixture(autouse=True)
    def require_confirmation(self, client, monkeypatch):
        monkeypatch.setattr(settings, "require_confirmed_email", True)

    def test_unconfirmed_login_is_not_allowed(self, client):
        _register(client)
        response = _login(client)
        assert response.status_code == 401
        assert response.json()["message"] == "NotAllowed"

    def test_confirm_then_login(self, client, email_sender):
        _register(client)
        params = link_params(email_sender.outbox[-1])
        response = client.get("/api/confirmEmail", params=params)
        assert response.status_code == 200
        response = _login(client)
        assert response.status_code == 200
        assert response.json()["token_type"] == "bearer"

    def test_invalid_code_is_401(self, client, email_sender):
        _register(client)
        params = link_params(email_sender.outbox[-1])
        response = client.get("/api/confirmEmail", params={"userId": params["userId"], "code": "bogus"})
        assert response.status_code == 401

    def test_resend_confirmation(self, client, email_sender):
        _register(client)
        response = client.get("/api/account/resendConfirmEmail", params={"email": "alice@test.com"})
        assert response.status_code == 200
        assert len(email_sender.outbox) == 2
        user_id = link_params(email_sender.outbox[0])["userId"]
        response = client.get("/api/account/resendConfirmEmail", params={"userId": user_id})
        assert response.status_code == 200
        assert len(email_sender.outbox) == 3

    def test_resend_for_unknown_user_is_400(self, client):
        response = client.get("/api/account/resendConfirmEmail", params={"email": "nobody@test.com"})
        assert response.status_code == 400

    def test_confirmation_code_is_not_an_access_token(self, client, email_sender):
        _register(client)
        code = link_params(email_sender.outbox[-1])["code"]
        response = client.get("/api/activities", headers={"Authorization": f"Bearer {code}"})
        assert response.status_code == 401


class TestLogin:
    def test_wrong_password(self, client, bob):
        response = _login(client, email=bob.email, password="Wr0ng!pass")
        assert response.status_code == 401
        assert response.json()["message"] == "Failed"

    def test_unknown_email(self, client):
        response = _login(client, email="nobody@test.com")
        assert response.status_code == 401

    def test_email_is_case_insensitive(self, client, bob):
        response = _login(client, email="BOB@test.com")
        assert response.status_code == 200


class TestUserInfo:
    def test_anonymous_gets_204(self, client):
        response = client.get("/api/account/user-info")
        assert response.status_code == 204

    def test_signed_in_user(self, client, bob):
        response = client.get("/api/account/user-info", headers=bob.headers)
        assert response.status_code == 200
        assert response.json() == {"id": bob.id, "email": bob.email, "displayName": "Bob", "imageUrl": None}

    def test_logout(self, client, bob):
        response = client.post("/api/account/logout", headers=bob.headers)
        assert response.status_code == 204


class TestPasswordReset:
    """forgotPassword / resetPassword / change-password."""

    def _reset_code(self, client, email_sender, user):
        response = client.post("/api/forgotPassword", json={"email": user.email})
        assert response.status_code == 200
        message = email_sender.outbox[-1]
        assert message.subject == "Reset your password"
        return link_params(message)["code"]

    def test_forgot_password_for_unknown_email_is_200(self, client, email_sender):
        response = client.post("/api/forgotPassword", json={"email": "nobody@test.com"})
        assert response.status_code == 200
        assert email_sender.outbox == []

    def test_forgot_password_requires_confirmed_email(self, client, bob, email_sender):
        sent = len(email_sender.outbox)
        client.post("/api/forgotPassword", json={"email": bob.email})
        assert len(email_sender.outbox) == sent

    def test_reset_flow(self, client, email_sender, bob):
        code = link_params(email_sender.outbox[0])["code"]
        client.get("/api/confirmEmail", params={"userId": bob.id, "code": code})

        reset_code = self._reset_code(client, email_sender, bob)
        response = client.post(
            "/api/resetPassword",
            json={"email": bob.email, "resetCode": reset_code, "newPassword": "N3w!Passw0rd"},
        )
        assert response.status_code == 200
        assert _login(client, email=bob.email, password="N3w!Passw0rd").status_code == 200
        assert _login(client, email=bob.email).status_code == 401

        # The stamp rotated, so the code cannot be used twice.
        response = client.post(
            "/api/resetPassword",
            json={"email": bob.email, "resetCode": reset_code, "newPassword": "An0ther!pass"},
        )
        assert response.status_code == 400
        assert "InvalidToken" in response.json()["errors"]

    def test_reset_with_invalid_code(self, client, bob):
        response = client.post(
            "/api/resetPassword",
            json={"email": bob.email, "resetCode": "bogus", "newPassword": "N3w!Passw0rd"},
        )
        assert response.status_code == 400
        assert response.json()["errors"] == {"InvalidToken": ["Invalid token."]}

    def test_change_password(self, client, bob):
        response = client.post(
            "/api/account/change-password",
            json={"currentPassword": PASSWORD, "newPassword": "N3w!Passw0rd"},
            headers=bob.headers,
        )
        assert response.status_code == 200
        assert _login(client, email=bob.email, password="N3w!Passw0rd").status_code == 200

    def test_change_password_mismatch(self, client, bob):
        response = client.post(
            "/api/account/change-password",
            json={"currentPassword": "Wr0ng!pass", "newPassword": "N3w!Passw0rd"},
            headers=bob.headers,
        )
        assert response.status_code == 400
        assert "PasswordMismatch" in response.json()["errors"]
