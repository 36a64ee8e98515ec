"""Login: exchange credentials for a provider session token."""
from __future__ import annotations
import logging

from storeadmin.core.errors import AuthenticationFailed, Internal, NotFound
from storeadmin.core.rbac import PROFILES_TABLE
from storeadmin.core.supabase import IdentityService, SupabaseError, TableService
from storeadmin.core.validators import require_fields

logger = logging.getLogger(__name__)


def login(identity: IdentityService, store: TableService, email: str, password: str) -> dict:
    """Authenticate and return ``{"companyCode", "token"}``.

    Raises:
        InvalidInput: email or password missing
        AuthenticationFailed: Provider rejected the credentials
        NotFound: Identity has no profile / company code
    """
    require_fields({"email": email, "password": password}, "email", "password")

    try:
        session = identity.authenticate(email, password)
    except SupabaseError as exc:
        logger.warning("Login rejected for %s: %s", email, exc)
        raise AuthenticationFailed("Authentication failed")

    user_id = (session.get("user") or {}).get("id")
    token = session.get("access_token")
    if not user_id or not token:
        raise AuthenticationFailed("Authentication failed")

    try:
        profile = store.select_one(PROFILES_TABLE, "company_code", eq={"id": user_id})
    except SupabaseError as exc:
        logger.error("Profile lookup failed after login for %s: %s", user_id, exc)
        raise Internal("Internal server error")

    if not profile or not profile.get("company_code"):
        raise NotFound("Company code not found")

    logger.info("Login succeeded for %s (company=%s)", user_id, profile["company_code"])
    return {"companyCode": profile["company_code"], "token": token}
