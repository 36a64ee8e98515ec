"""Supabase Auth (GoTrue) identity operations."""
from __future__ import annotations
import hashlib
import logging
from typing import Optional

import jwt
from jwt.exceptions import InvalidTokenError, ExpiredSignatureError

from .client import SupabaseClient
from .exceptions import SupabaseAPIError, InvalidSessionError, IdentityAlreadyExistsError

logger = logging.getLogger(__name__)

AUTH_PATH = "/auth/v1"
TOKEN_AUDIENCE = "authenticated"


def token_fingerprint(token: str) -> str:
    """Truncated SHA-256 of a token, safe to log."""
    return hashlib.sha256(token.encode()).hexdigest()[:12]


class IdentityService:
    """Service for authenticating and managing Supabase Auth identities.

    Admin operations (create/update/delete) go through ``admin_client``, which
    must carry the service-role key. Password sign-in and session lookups use
    ``public_client`` (anon key) when given.
    """

    def __init__(self, admin_client: SupabaseClient, public_client: Optional[SupabaseClient] = None, jwt_secret: str = ""):
        self.admin_client = admin_client
        self.public_client = public_client or admin_client
        self.jwt_secret = jwt_secret

    def authenticate(self, email: str, password: str) -> dict:
        """Exchange email/password for a session.

        Returns:
            GoTrue token response (``access_token``, ``refresh_token``, ``user``...)

        Raises:
            SupabaseAPIError: If the provider rejects the credentials
        """
        resp = self.public_client.post(
            f"{AUTH_PATH}/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        return resp.json()

    def resolve_session(self, access_token: str) -> dict:
        """Resolve an access token to the identity it was issued for.

        With a configured JWT secret the token is verified locally (HS256,
        audience ``authenticated``); otherwise the provider is asked.

        Returns:
            dict with ``id``, ``email`` and ``user_metadata``

        Raises:
            InvalidSessionError: If the token is missing, expired or rejected
        """
        if not access_token:
            raise InvalidSessionError("Access token is empty")

        if self.jwt_secret:
            return self._decode_session(access_token)

        try:
            resp = self.public_client.get(f"{AUTH_PATH}/user", bearer=access_token)
        except SupabaseAPIError as exc:
            logger.warning("Session lookup rejected for token %s: %s", token_fingerprint(access_token), exc.message)
            raise InvalidSessionError(exc.message) from exc

        user = resp.json() or {}
        if not user.get("id"):
            raise InvalidSessionError("Provider returned no user for token")
        return {
            "id": user["id"],
            "email": user.get("email"),
            "user_metadata": user.get("user_metadata") or {},
        }

    def _decode_session(self, access_token: str) -> dict:
        try:
            claims = jwt.decode(
                access_token,
                self.jwt_secret,
                algorithms=["HS256"],
                audience=TOKEN_AUDIENCE,
                options={"require": ["exp", "sub"]},
                leeway=5,
            )
        except ExpiredSignatureError:
            raise InvalidSessionError("Token expired (exp claim)")
        except InvalidTokenError as exc:
            logger.warning("JWT validation failed for token %s: %s", token_fingerprint(access_token), exc)
            raise InvalidSessionError(f"Token validation failed: {exc}")

        return {
            "id": claims["sub"],
            "email": claims.get("email"),
            "user_metadata": claims.get("user_metadata") or {},
        }

    def create_identity(self, email: str, password: str, user_metadata: Optional[dict] = None) -> dict:
        """Create a confirmed identity.

        Returns:
            User representation (with ``id``)

        Raises:
            IdentityAlreadyExistsError: If the email is already registered
            SupabaseAPIError: On any other provider failure
        """
        payload = {
            "email": email,
            "password": password,
            "email_confirm": True,
            "user_metadata": user_metadata or {},
        }
        try:
            resp = self.admin_client.post(f"{AUTH_PATH}/admin/users", json=payload)
        except SupabaseAPIError as exc:
            if exc.status_code == 422 and "already" in exc.message.lower():
                raise IdentityAlreadyExistsError(exc.message) from exc
            raise
        user = resp.json()
        logger.info("Identity created for %s (id=%s)", email, user.get("id"))
        return user

    def update_identity(self, user_id: str, attributes: dict) -> dict:
        """Update email and/or password of an identity.

        Raises:
            SupabaseAPIError: On provider failure
        """
        resp = self.admin_client.put(f"{AUTH_PATH}/admin/users/{user_id}", json=attributes)
        logger.info("Identity %s updated (%s)", user_id, ", ".join(sorted(attributes)))
        return resp.json()

    def delete_identity(self, user_id: str) -> None:
        """Delete an identity.

        Raises:
            SupabaseAPIError: On provider failure
        """
        self.admin_client.delete(f"{AUTH_PATH}/admin/users/{user_id}")
        logger.info("Identity %s deleted", user_id)
