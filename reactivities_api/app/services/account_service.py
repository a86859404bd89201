"""
Business logic for accounts: registration, email confirmation, login
and password management.

Errors follow the identity conventions the client understands: policy
and lookup failures are reported as ``ValidationFailedError`` keyed by
an error code (``DuplicateEmail``, ``PasswordRequiresDigit``,
``InvalidToken`` ...), while failed sign-ins are ``UnauthorizedError``
with the message ``Failed`` or ``NotAllowed``.

Confirmation and reset codes are purpose tokens bound to the user's
security stamp (see ``core.security``); rotating the stamp revokes
every code issued before.
"""

import logging
import sqlite3
from typing import Dict, List, Optional

from reactivities_api.app.core.config import settings
from reactivities_api.app.core.db import get_cursor, new_id
from reactivities_api.app.core.exceptions import (
    BadRequestError,
    UnauthorizedError,
    ValidationFailedError,
)
from reactivities_api.app.core.security import (
    PURPOSE_CONFIRM_EMAIL,
    PURPOSE_RESET_PASSWORD,
    create_access_token,
    create_purpose_token,
    hash_password,
    new_security_stamp,
    verify_password,
    verify_purpose_token,
)
from reactivities_api.app.schemas.account import (
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
    UserInfo,
)
from reactivities_api.app.services.email_service import EmailSender


logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def validate_password(password: str) -> Dict[str, List[str]]:
    """Check ``password`` against the password policy.

    Returns a mapping of error code to messages; empty when the
    password is acceptable.
    """
    errors: Dict[str, List[str]] = {}
    if len(password or "") < MIN_PASSWORD_LENGTH:
        errors["PasswordTooShort"] = [f"Passwords must be at least {MIN_PASSWORD_LENGTH} characters."]
    if all(ch.isalnum() for ch in password or ""):
        errors["PasswordRequiresNonAlphanumeric"] = ["Passwords must have at least one non alphanumeric character."]
    if not any(ch.isdigit() for ch in password or ""):
        errors["PasswordRequiresDigit"] = ["Passwords must have at least one digit ('0'-'9')."]
    if not any(ch.islower() for ch in password or ""):
        errors["PasswordRequiresLower"] = ["Passwords must have at least one lowercase ('a'-'z')."]
    if not any(ch.isupper() for ch in password or ""):
        errors["PasswordRequiresUpper"] = ["Passwords must have at least one uppercase ('A'-'Z')."]
    return errors


def _find_user(cursor: sqlite3.Cursor, email: Optional[str] = None, user_id: Optional[str] = None) -> Optional[sqlite3.Row]:
    if user_id:
        return cursor.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
    if email:
        return cursor.execute("SELECT * FROM users WHERE email = ?", (email.strip(),)).fetchone()
    return None


def _duplicate_email_message(email: str) -> str:
    return f"Email '{email}' is already taken."


class AccountService:
    """Service for user accounts and credentials."""

    @classmethod
    async def register(cls, data: RegisterRequest, email_sender: EmailSender) -> str:
        """Create an unconfirmed user and email them a confirmation link.

        Returns the new user's id.
        """
        errors = validate_password(data.password)
        user_id = new_id()
        stamp = new_security_stamp()
        with get_cursor() as cursor:
            if _find_user(cursor, email=data.email):
                errors = {"DuplicateEmail": [_duplicate_email_message(data.email)], **errors}
            if errors:
                raise ValidationFailedError(errors)
            try:
                cursor.execute(
                    """
                    INSERT INTO users (id, email, display_name, password, email_confirmed, security_stamp)
                    VALUES (?, ?, ?, ?, 0, ?)
                    """,
                    (user_id, data.email, data.display_name, hash_password(data.password), stamp),
                )
            except sqlite3.IntegrityError:
                # Another registration took the email after the lookup above.
                raise ValidationFailedError.single("DuplicateEmail", _duplicate_email_message(data.email))
        logger.info("Registered user %s (%s)", user_id, data.email)
        code = create_purpose_token(user_id, PURPOSE_CONFIRM_EMAIL, stamp)
        await email_sender.send_confirmation_link(data.display_name, data.email, user_id, code)
        return user_id

    @classmethod
    async def resend_confirmation(
        cls, email_sender: EmailSender, email: Optional[str] = None, user_id: Optional[str] = None
    ) -> None:
        with get_cursor() as cursor:
            user = _find_user(cursor, email=email, user_id=user_id)
        if not user:
            raise BadRequestError("User not found or email not valid")
        code = create_purpose_token(user["id"], PURPOSE_CONFIRM_EMAIL, user["security_stamp"])
        await email_sender.send_confirmation_link(user["display_name"], user["email"], user["id"], code)

    @classmethod
    async def confirm_email(cls, user_id: str, code: str) -> None:
        with get_cursor() as cursor:
            user = _find_user(cursor, user_id=user_id)
            if not user or not verify_purpose_token(code, user["id"], PURPOSE_CONFIRM_EMAIL, user["security_stamp"]):
                raise UnauthorizedError("Invalid confirmation code")
            cursor.execute("UPDATE users SET email_confirmed = 1 WHERE id = ?", (user_id,))
        logger.info("User %s confirmed their email", user_id)

    @classmethod
    async def login(cls, data: LoginRequest) -> TokenResponse:
        with get_cursor() as cursor:
            user = _find_user(cursor, email=data.email)
        if not user or not verify_password(data.password, user["password"]):
            logger.info("Failed login for %s", data.email)
            raise UnauthorizedError("Failed")
        if settings.require_confirmed_email and not user["email_confirmed"]:
            logger.info("Login refused for unconfirmed user %s", user["id"])
            raise UnauthorizedError("NotAllowed")
        token = create_access_token({"sub": user["id"]})
        return TokenResponse(access_token=token)

    @classmethod
    async def user_info(cls, user_id: str) -> Optional[UserInfo]:
        with get_cursor() as cursor:
            user = _find_user(cursor, user_id=user_id)
        if not user:
            return None
        return UserInfo(
            id=user["id"],
            email=user["email"],
            display_name=user["display_name"],
            image_url=user["image_url"],
        )

    @classmethod
    async def forgot_password(cls, email: str, email_sender: EmailSender) -> None:
        """Email a reset link to a known, confirmed user.

        Unknown or unconfirmed addresses are ignored silently so that
        the endpoint does not reveal which emails are registered.
        """
        with get_cursor() as cursor:
            user = _find_user(cursor, email=email)
        if not user or not user["email_confirmed"]:
            logger.info("Password reset requested for unknown or unconfirmed email")
            return
        code = create_purpose_token(user["id"], PURPOSE_RESET_PASSWORD, user["security_stamp"])
        await email_sender.send_password_reset_code(user["display_name"], user["email"], code)

    @classmethod
    async def reset_password(cls, data: ResetPasswordRequest) -> None:
        with get_cursor() as cursor:
            user = _find_user(cursor, email=data.email)
            if not user or not verify_purpose_token(
                data.reset_code, user["id"], PURPOSE_RESET_PASSWORD, user["security_stamp"]
            ):
                raise ValidationFailedError.single("InvalidToken", "Invalid token.")
            errors = validate_password(data.new_password)
            if errors:
                raise ValidationFailedError(errors)
            cursor.execute(
                "UPDATE users SET password = ?, security_stamp = ? WHERE id = ?",
                (hash_password(data.new_password), new_security_stamp(), user["id"]),
            )
        logger.info("Password reset for user %s", user["id"])

    @classmethod
    async def change_password(cls, user_id: str, data: ChangePasswordRequest) -> None:
        with get_cursor() as cursor:
            user = _find_user(cursor, user_id=user_id)
            if not user:
                raise UnauthorizedError("Failed")
            if not verify_password(data.current_password, user["password"]):
                raise ValidationFailedError.single("PasswordMismatch", "Incorrect password.")
            errors = validate_password(data.new_password)
            if errors:
                raise ValidationFailedError(errors)
            cursor.execute(
                "UPDATE users SET password = ?, security_stamp = ? WHERE id = ?",
                (hash_password(data.new_password), new_security_stamp(), user_id),
            )
        logger.info("User %s changed their password", user_id)
