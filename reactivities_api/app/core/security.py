"""
Security helpers for password hashing, JWT authentication and
activity-host authorization.

This module implements a lightweight JSON Web Token (JWT) mechanism
using HMAC-SHA256 signatures and base64url encoding.  Tokens embed
arbitrary claims and an expiration timestamp (``exp``).  The same
signing scheme issues short-lived *purpose* tokens used as email
confirmation and password reset codes; those embed the user's
security stamp so that rotating the stamp revokes them.

Passwords are hashed with PBKDF2-HMAC-SHA256 and a random salt.
"""

import base64
import hashlib
import hmac
import json
import logging
import os
import time
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import settings
from .db import get_connection
from .exceptions import ForbiddenError


logger = logging.getLogger(__name__)

PASSWORD_ITERATIONS = 100_000

PURPOSE_CONFIRM_EMAIL = "confirm_email"
PURPOSE_RESET_PASSWORD = "reset_password"


def _b64_url_encode(data: bytes) -> str:
    """Base64-url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64-url encoded string, adding padding if necessary."""
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(message: bytes, secret: str) -> bytes:
    """Compute HMAC-SHA256 signature of a message using the given secret."""
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def create_access_token(data: Dict[str, Any], expires_delta: Optional[int] = None) -> str:
    """Create a signed JWT token with the given payload.

    The payload is extended with an ``exp`` field representing the
    expiration time as a UNIX timestamp.  The token is a string of the
    form ``header.payload.signature``, where each part is base64url
    encoded.  Clients send it in the ``Authorization`` header as
    ``Bearer <token>`` (or as the ``access_token`` query parameter on
    the comments websocket).

    Parameters
    ----------
    data : dict
        Claims to embed in the token (e.g. {"sub": "<user id>"}).
    expires_delta : Optional[int]
        Lifetime of the token in seconds.  Defaults to
        ``settings.access_token_expire_minutes * 60``.
    """
    to_encode = data.copy()
    exp_seconds = expires_delta or settings.access_token_expire_minutes * 60
    to_encode["exp"] = int(time.time()) + exp_seconds
    header = {"alg": "HS256", "typ": "JWT"}
    header_b64 = _b64_url_encode(json.dumps(header, separators=(",", ":")).encode("utf-8"))
    payload_b64 = _b64_url_encode(json.dumps(to_encode, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    signature_b64 = _b64_url_encode(_sign(signing_input, settings.secret_key))
    return f"{header_b64}.{payload_b64}.{signature_b64}"


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Verify and decode a JWT token.

    Verifies the HMAC signature and checks the ``exp`` field.  Returns
    the payload dictionary when valid, otherwise ``None``.
    """
    parts = token.split(".")
    if len(parts) != 3:
        return None
    header_b64, payload_b64, signature_b64 = parts
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    expected_sig = _sign(signing_input, settings.secret_key)
    try:
        actual_sig = _b64_url_decode(signature_b64)
        if not hmac.compare_digest(expected_sig, actual_sig):
            return None
        data = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        return None
    if not isinstance(data, dict):
        return None
    if data.get("exp") is None or int(data["exp"]) < int(time.time()):
        return None
    return data


def create_purpose_token(user_id: str, purpose: str, security_stamp: str) -> str:
    """Issue a short-lived code for email confirmation or password reset."""
    return create_access_token(
        {"sub": user_id, "purpose": purpose, "stamp": security_stamp},
        expires_delta=settings.email_token_expire_minutes * 60,
    )


def verify_purpose_token(token: str, user_id: str, purpose: str, security_stamp: str) -> bool:
    """Check that ``token`` was issued for this user, purpose and stamp and has not expired."""
    payload = decode_access_token(token)
    if not payload:
        return False
    return (
        payload.get("sub") == user_id
        and payload.get("purpose") == purpose
        and payload.get("stamp") == security_stamp
    )


def load_user_for_token(token: str) -> Optional[Dict[str, Any]]:
    """Resolve an access token to the user it was issued for.

    Purpose tokens (confirmation and reset codes) are not accepted as
    access tokens.  Returns ``None`` when the token is invalid or the
    user no longer exists.
    """
    payload = decode_access_token(token)
    if not payload or payload.get("purpose"):
        return None
    conn = get_connection()
    try:
        row = conn.execute(
            "SELECT id, email, display_name, image_url FROM users WHERE id = ?",
            (payload.get("sub"),),
        ).fetchone()
    finally:
        conn.close()
    if not row:
        return None
    return {
        "user_id": row["id"],
        "email": row["email"],
        "display_name": row["display_name"],
        "image_url": row["image_url"],
    }


security = HTTPBearer(auto_error=False)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[Dict[str, Any]]:
    """Dependency returning the authenticated user, or ``None`` for anonymous requests."""
    if credentials is None:
        return None
    return load_user_for_token(credentials.credentials)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Dict[str, Any]:
    """Dependency that retrieves the current authenticated user.

    Raises HTTP 401 if the request carries no bearer token, the token
    is invalid or expired, or the user it names no longer exists.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user = load_user_for_token(credentials.credentials)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_activity_host(
    activity_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
) -> Dict[str, Any]:
    """Dependency enforcing that the current user hosts the activity in the route.

    The check is a single lookup of the attendee row for (activity,
    user).  When the activity does not exist the request is let through
    so that the handler can answer 404.
    """
    conn = get_connection()
    try:
        exists = conn.execute("SELECT 1 FROM activities WHERE id = ?", (activity_id,)).fetchone()
        attendee = conn.execute(
            "SELECT is_host FROM activity_attendees WHERE activity_id = ? AND user_id = ?",
            (activity_id, current_user["user_id"]),
        ).fetchone()
    finally:
        conn.close()
    if exists and not (attendee and attendee["is_host"]):
        logger.info("User %s denied host access to activity %s", current_user["user_id"], activity_id)
        raise ForbiddenError("Only the host can modify this activity")
    return current_user


def hash_password(password: str) -> str:
    """Hash a password using PBKDF2-HMAC with SHA-256.

    A 16-byte random salt is generated for each password.  The
    resulting string holds the salt and hash in hex separated by ``$``.
    """
    salt = os.urandom(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PASSWORD_ITERATIONS)
    return f"{salt.hex()}${dk.hex()}"


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a plain password against a stored salt+hash string."""
    if not hashed_password or "$" not in hashed_password:
        return False
    salt_hex, hash_hex = hashed_password.split("$", 1)
    try:
        salt = bytes.fromhex(salt_hex)
        stored_hash = bytes.fromhex(hash_hex)
    except ValueError:
        return False
    dk = hashlib.pbkdf2_hmac("sha256", plain_password.encode("utf-8"), salt, PASSWORD_ITERATIONS)
    return hmac.compare_digest(dk, stored_hash)


def new_security_stamp() -> str:
    return os.urandom(16).hex()
