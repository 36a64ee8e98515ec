"""Role-Based Access Control helpers.

``authorize`` is the single place where a session token becomes a
``CallerContext``: the token is resolved with the identity provider, the
caller's profile is loaded and role/scope requirements are checked.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from storeadmin.core.errors import Forbidden, Internal, NotFound, Unauthenticated
from storeadmin.core.supabase import (
    IdentityService,
    InvalidSessionError,
    SupabaseError,
    TableService,
    token_fingerprint,
)

logger = logging.getLogger(__name__)

PROFILES_TABLE = "Profiles"
PROFILE_COLUMNS = "id,company_code,role,store_name,group"


class Scope(str, Enum):
    """Which side of the business a route serves."""
    STORE = "store"
    HEADQUARTERS = "headquarters"


@dataclass(frozen=True)
class CallerContext:
    """Resolved identity, role and store scope of the current request."""
    user_id: str
    role: str
    company_code: Optional[str] = None
    email: Optional[str] = None
    store_name: Optional[str] = None
    group: Optional[str] = None
    is_headquarters: bool = False

    @property
    def store_id(self) -> Optional[str]:
        """Store identifier used to scope Ingredient/StoreItem queries."""
        return self.company_code


def is_headquarters_profile(profile: dict, admin_role: str = "admin", headquarters_company_code: str = "admin") -> bool:
    """Check if a profile belongs to a headquarters user."""
    role = (profile.get("role") or "").lower()
    return role == admin_role.lower() or profile.get("company_code") == headquarters_company_code


def has_role(caller: CallerContext, role: str) -> bool:
    return caller.role.lower() == role.lower()


def load_profile(store: TableService, user_id: str) -> Optional[dict]:
    """Fetch the profile row for an identity id."""
    return store.select_one(PROFILES_TABLE, PROFILE_COLUMNS, eq={"id": user_id})


def authorize(
    identity: IdentityService,
    store: TableService,
    token: Optional[str],
    required_role: Optional[str] = None,
    scope: Optional[Scope] = None,
    *,
    admin_role: str = "admin",
    headquarters_company_code: str = "admin",
) -> CallerContext:
    """Resolve a session token to a CallerContext.

    Raises:
        Unauthenticated: Token missing or rejected by the provider
        NotFound: No profile for the identity
        Forbidden: Role or scope mismatch
        Internal: Profile lookup failed
    """
    if not token:
        raise Unauthenticated("Authentication required. Please log in to continue.")

    try:
        session_user = identity.resolve_session(token)
    except InvalidSessionError as exc:
        raise Unauthenticated("Authentication required. Please log in to continue.", details=str(exc))

    user_id = session_user["id"]
    try:
        profile = load_profile(store, user_id)
    except SupabaseError as exc:
        logger.error("Profile lookup failed for %s: %s", user_id, exc)
        raise Internal("Unable to load user profile", details=str(exc))

    if not profile:
        logger.warning("No profile for identity %s (token %s)", user_id, token_fingerprint(token))
        raise NotFound("User profile not found. Please contact support.")

    caller = CallerContext(
        user_id=user_id,
        role=(profile.get("role") or ""),
        company_code=profile.get("company_code"),
        email=session_user.get("email"),
        store_name=profile.get("store_name"),
        group=profile.get("group"),
        is_headquarters=is_headquarters_profile(profile, admin_role, headquarters_company_code),
    )

    if required_role and not has_role(caller, required_role):
        logger.warning("Caller %s lacks role %s (has %s)", user_id, required_role, caller.role)
        raise Forbidden("Insufficient permissions", details=f"Required role: {required_role}")

    if scope == Scope.STORE and caller.is_headquarters:
        raise Forbidden(
            "Headquarters users should manage menus through the Available Menu page "
            "instead of the Menu Settings page."
        )
    if scope == Scope.HEADQUARTERS and not caller.is_headquarters:
        raise Forbidden("This operation is restricted to headquarters users.")

    return caller
