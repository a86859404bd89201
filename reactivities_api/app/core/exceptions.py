"""
Application exceptions raised by the service layer.

Services raise these instead of returning status codes; the handlers
registered in ``main.py`` map each class to an HTTP response.  Routes
therefore stay free of ``try``/``except`` boilerplate.
"""

from typing import Any, Dict, Iterable, List, Optional

from pydantic.alias_generators import to_camel


class AppError(Exception):
    """Base class for errors that map to a specific HTTP status."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(AppError):
    """Raised when a requested entity does not exist.  Maps to 404."""

    status_code = 404


class BadRequestError(AppError):
    """Raised when an operation cannot be completed as requested.  Maps to 400."""

    status_code = 400


class UnauthorizedError(AppError):
    """Raised when credentials are missing or invalid.  Maps to 401."""

    status_code = 401


class ForbiddenError(AppError):
    """Raised when the caller lacks permission.  Maps to 403."""

    status_code = 403


class ValidationFailedError(AppError):
    """Raised with per-field messages; rendered as a validation problem (400).

    ``errors`` maps a field name (or an error code such as
    ``DuplicateEmail``) to the list of messages for it.
    """

    status_code = 400

    def __init__(self, errors: Dict[str, List[str]], message: Optional[str] = None):
        super().__init__(message or "One or more validation errors has occurred")
        self.errors = errors

    @classmethod
    def single(cls, key: str, message: str) -> "ValidationFailedError":
        return cls({key: [message]})


def format_validation_errors(errors: Iterable[Dict[str, Any]]) -> Dict[str, List[str]]:
    """Group pydantic error entries by field name.

    Location prefixes such as ``body`` or ``query`` are dropped and
    snake_case field names are reported by their camelCase request name.  For
    errors raised inside field validators the bare message is used
    instead of pydantic's ``"Value error, ..."`` rendering.
    """
    grouped: Dict[str, List[str]] = {}
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        if len(loc) > 1 and loc[0] in {"body", "query", "path", "header"}:
            loc = loc[1:]
        key = ".".join(to_camel(part) if "_" in part else part for part in loc) or "request"
        ctx = error.get("ctx") or {}
        if error.get("type") == "value_error" and "error" in ctx:
            message = str(ctx["error"])
        else:
            message = error.get("msg", "Invalid value")
        grouped.setdefault(key, []).append(message)
    return grouped
