"""Reactivities API client.

This module defines a small client wrapper around the Reactivities REST
API.  It uses the ``requests`` library internally and is meant for
scripts, smoke tests and integrations that talk to a running server.

The client exposes high-level methods for the main operations:

* :meth:`login` - obtain a bearer token and use it for later calls.
* :meth:`register` - create a new account.
* :meth:`list_activities` / :meth:`get_activity` - browse activities.
* :meth:`create_activity`, :meth:`edit_activity`, :meth:`delete_activity`.
* :meth:`attend` - toggle attendance for the current user.
* :meth:`list_comments` - read the comments of an activity.
* :meth:`get_profile` / :meth:`follow` - profiles and followings.

Every method returns a tuple ``(result, error)``; ``error`` is ``None``
on success and otherwise a dictionary with ``status_code``, ``message``
and, for validation failures, ``errors``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

import requests


logger = logging.getLogger(__name__)

Error = Dict[str, Any]


class ReactivitiesAPI:
    """Client for interacting with the Reactivities API."""

    def __init__(
        self,
        *,
        base_url: str,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 15,
    ) -> None:
        """Initialise the API client.

        Args:
            base_url: Base URL of the server, e.g. ``http://localhost:8000``.
                The ``/api`` prefix is added by the client.
            api_key: Optional bearer token.  :meth:`login` sets it.
            session: Optional requests session.  If not supplied a
                session will be created automatically.
            timeout: Request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Low level HTTP helpers
    # ------------------------------------------------------------------
    def _request(
        self, method: str, path: str, *, params: Dict[str, Any] | None = None,
        json_body: Any | None = None
    ) -> Tuple[Optional[Any], Optional[Error]]:
        """Perform an HTTP request against ``/api``.

        Returns:
            A tuple ``(data, error)``. ``data`` contains the parsed JSON
            response on success (``None`` for empty bodies) and ``error``
            is ``None``. On failure, ``data`` is ``None`` and ``error``
            describes the issue.
        """
        url = f"{self.base_url}/api{path}"
        headers: Dict[str, str] = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        try:
            logger.debug("Sending %s request to %s", method, url)
            response = self.session.request(
                method=method,
                url=url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            if response.content:
                return response.json(), None
            return None, None
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            message = ""
            errors = None
            if exc.response is not None:
                try:
                    err_json = exc.response.json()
                except ValueError:
                    message = exc.response.text
                else:
                    if isinstance(err_json, dict):
                        message = err_json.get("message") or err_json.get("detail") or str(err_json)
                        errors = err_json.get("errors")
                    else:
                        message = str(err_json)
            if not message:
                message = str(exc)
            logger.error("API request failed (%s): %s", status, message)
            error: Error = {"status_code": status, "message": message}
            if errors:
                error["errors"] = errors
            return None, error
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            return None, {"status_code": None, "message": str(exc)}

    # ------------------------------------------------------------------
    # Account operations
    # ------------------------------------------------------------------
    def login(self, email: str, password: str) -> Tuple[bool, Optional[Error]]:
        """Sign in and keep the returned bearer token for later requests."""
        data, error = self._request("POST", "/login", json_body={"email": email, "password": password})
        if error:
            return False, error
        self.api_key = data.get("access_token") if isinstance(data, dict) else None
        return self.api_key is not None, None

    def register(self, display_name: str, email: str, password: str) -> Tuple[bool, Optional[Error]]:
        _, error = self._request(
            "POST",
            "/account/register",
            json_body={"displayName": display_name, "email": email, "password": password},
        )
        return error is None, error

    def user_info(self) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        """Return the signed-in user, or ``None`` when anonymous."""
        return self._request("GET", "/account/user-info")

    # ------------------------------------------------------------------
    # Activity operations
    # ------------------------------------------------------------------
    def list_activities(
        self,
        *,
        filter: Optional[str] = None,
        start_date: Optional[str] = None,
        cursor: Optional[str] = None,
        page_size: Optional[int] = None,
    ) -> Tuple[Dict[str, Any], Optional[Error]]:
        """Retrieve one page of activities.

        Returns:
            A tuple ``(page, error)`` where ``page`` has ``items`` and
            ``nextCursor``.  On failure ``page`` is an empty page.
        """
        params = {
            key: value
            for key, value in {
                "filter": filter,
                "startDate": start_date,
                "cursor": cursor,
                "pageSize": page_size,
            }.items()
            if value is not None
        }
        data, error = self._request("GET", "/activities", params=params or None)
        if error or not isinstance(data, dict):
            return {"items": [], "nextCursor": None}, error
        return data, None

    def iter_activities(self, **kwargs: Any):
        """Yield activities across pages until ``nextCursor`` is empty."""
        cursor = kwargs.pop("cursor", None)
        while True:
            page, error = self.list_activities(cursor=cursor, **kwargs)
            if error:
                return
            yield from page.get("items", [])
            cursor = page.get("nextCursor")
            if not cursor:
                return

    def get_activity(self, activity_id: str) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        return self._request("GET", f"/activities/{activity_id}")

    def create_activity(self, payload: Dict[str, Any]) -> Tuple[Optional[str], Optional[Error]]:
        """Create an activity and return its id."""
        return self._request("POST", "/activities", json_body=payload)

    def edit_activity(self, activity_id: str, payload: Dict[str, Any]) -> Tuple[bool, Optional[Error]]:
        _, error = self._request("PUT", f"/activities/{activity_id}", json_body=payload)
        return error is None, error

    def delete_activity(self, activity_id: str) -> Tuple[bool, Optional[Error]]:
        _, error = self._request("DELETE", f"/activities/{activity_id}")
        return error is None, error

    def attend(self, activity_id: str) -> Tuple[bool, Optional[Error]]:
        _, error = self._request("POST", f"/activities/{activity_id}/attend")
        return error is None, error

    def list_comments(self, activity_id: str) -> Tuple[List[Dict[str, Any]], Optional[Error]]:
        data, error = self._request("GET", f"/activities/{activity_id}/comments")
        if error or not isinstance(data, list):
            return [], error
        return data, None

    # ------------------------------------------------------------------
    # Profile operations
    # ------------------------------------------------------------------
    def get_profile(self, user_id: str) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        return self._request("GET", f"/profiles/{user_id}")

    def follow(self, user_id: str) -> Tuple[bool, Optional[Error]]:
        """Toggle following ``user_id``."""
        _, error = self._request("POST", f"/profiles/{user_id}/follow")
        return error is None, error
