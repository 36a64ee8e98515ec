"""Application error taxonomy.

Every failure a handler can report is an ``ApiError`` carrying the HTTP
status it maps to. Flask error handlers render them with ``to_dict()``.
"""
from __future__ import annotations
from typing import Optional


class ApiError(Exception):
    """Error with HTTP status, message and optional details."""

    status = 500

    def __init__(self, message: str, details: Optional[str] = None, status: Optional[int] = None):
        self.message = message
        self.details = details
        if status is not None:
            self.status = status
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to the error envelope."""
        body = {"success": False, "error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class InvalidInput(ApiError):
    """Missing or malformed request fields."""
    status = 400


class Unauthenticated(ApiError):
    """No session or an invalid one."""
    status = 401


class AuthenticationFailed(ApiError):
    """Credentials rejected at login."""
    status = 401


class Forbidden(ApiError):
    """Role or scope mismatch."""
    status = 403


class NotFound(ApiError):
    status = 404


class ProvisioningFailed(ApiError):
    """Identity or profile creation failed."""
    status = 400


class UpdateFailed(ApiError):
    status = 500


class DeleteFailed(ApiError):
    status = 500


class Internal(ApiError):
    status = 500
