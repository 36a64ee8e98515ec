"""
Flask decorators for authentication and authorization.

The session token is taken from the request exactly once, resolved by
``storeadmin.core.rbac.authorize`` and handed to the view as ``caller``.

Token sources, in order:
1. ``Authorization: Bearer <token>`` header
2. Server-side Flask session (stored by ``POST /login``)
3. ``sb-access-token`` cookie set by Supabase browser clients
"""

import logging
from functools import wraps
from typing import Optional

from flask import current_app, g, request, session

from storeadmin.api.helpers.backends import get_identity, get_store
from storeadmin.core.rbac import CallerContext, Scope, authorize

logger = logging.getLogger(__name__)

SESSION_TOKEN_KEY = "token"
ACCESS_TOKEN_COOKIE = "sb-access-token"


def extract_access_token() -> Optional[str]:
    """Return the caller's access token, or None if the request carries none."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()
        if token:
            return token

    stored = session.get(SESSION_TOKEN_KEY)
    if isinstance(stored, dict) and stored.get("access_token"):
        return stored["access_token"]

    return request.cookies.get(ACCESS_TOKEN_COOKIE) or None


def resolve_caller(role: Optional[str] = None, scope: Optional[Scope] = None, admin: bool = False) -> CallerContext:
    """Authorize the current request and remember the caller on ``g``.

    Raises:
        ApiError subclasses from ``authorize`` (401/403/404/500)
    """
    cfg = current_app.config["APP_CONFIG"]
    required_role = cfg.admin_role if admin else role
    caller = authorize(
        get_identity(),
        get_store(),
        extract_access_token(),
        required_role,
        scope,
        admin_role=cfg.admin_role,
        headquarters_company_code=cfg.headquarters_company_code,
    )
    g.caller = caller
    return caller


def require_caller(role: Optional[str] = None, scope: Optional[Scope] = None, admin: bool = False):
    """
    Decorator resolving the CallerContext before the view runs.

    Args:
        role: Role the caller's profile must have
        scope: Scope.STORE / Scope.HEADQUARTERS restriction
        admin: Shortcut for the configured admin role

    Example:
        @bp.route("/menu-items", methods=["GET"])
        @require_caller(scope=Scope.STORE)
        def list_menu_items(caller):
            ...
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            kwargs["caller"] = resolve_caller(role=role, scope=scope, admin=admin)
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def get_caller() -> Optional[CallerContext]:
    """CallerContext of the current request, if one was resolved."""
    return getattr(g, "caller", None)
