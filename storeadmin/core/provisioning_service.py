"""
Provisioning Service Layer: identity + profile lifecycle

Users exist twice: as an identity in Supabase Auth and as a row in the
``Profiles`` table. This module keeps the pair consistent.

Architecture:
    /users routes ──> provisioning_service.py ──┬──> IdentityService ──> Supabase Auth
                                                └──> TableService    ──> PostgREST (Profiles)

Creation runs as an explicit workflow (``UserProvisioning``):

    VALIDATING -> CREATING_IDENTITY -> CREATING_PROFILE -> COMMITTED
                                             |
                                          (failure)
                                             v
                                    DELETING_IDENTITY -> FAILED

There is no transaction spanning both services, so a failed profile insert is
undone by deleting the identity created just before it.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from storeadmin.core import audit
from storeadmin.core.errors import (
    DeleteFailed,
    Forbidden,
    Internal,
    InvalidInput,
    NotFound,
    ProvisioningFailed,
    UpdateFailed,
)
from storeadmin.core.rbac import (
    PROFILE_COLUMNS,
    PROFILES_TABLE,
    CallerContext,
    has_role,
    load_profile,
)
from storeadmin.core.supabase import IdentityService, SupabaseError, TableService
from storeadmin.core.validators import login_email_for, require_fields

logger = logging.getLogger(__name__)

PATCHABLE_FIELDS = ("company_code", "password", "role", "store_name", "group")


# ─────────────────────────────────────────────────────────────────────────────
# Workflow
# ─────────────────────────────────────────────────────────────────────────────

class ProvisioningState(str, Enum):
    VALIDATING = "validating"
    CREATING_IDENTITY = "creating_identity"
    CREATING_PROFILE = "creating_profile"
    COMMITTED = "committed"
    DELETING_IDENTITY = "deleting_identity"
    FAILED = "failed"


@dataclass
class NewUser:
    """Fields of a user to provision."""
    company_code: str
    password: str
    role: str
    store_name: Optional[str] = None
    group: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: dict) -> "NewUser":
        """Build from a ``POST /users`` body (camelCase keys)."""
        return cls(
            company_code=payload.get("companyCode") or "",
            password=payload.get("password") or "",
            role=payload.get("role") or "",
            store_name=payload.get("storeName"),
            group=payload.get("group"),
        )

    def validate(self) -> None:
        require_fields(
            {"companyCode": self.company_code, "password": self.password, "role": self.role},
            "companyCode",
            "password",
            "role",
        )


@dataclass
class UserProvisioning:
    """Create an identity and its profile, deleting the identity on failure.

    One instance provisions one user; ``transitions`` records every state
    entered, which is what tests and logs inspect.
    """
    identity: IdentityService
    store: TableService
    email_domain: str
    store_role: str = "store"
    operator: str = "system"
    state: ProvisioningState = ProvisioningState.VALIDATING
    identity_id: Optional[str] = None
    transitions: list[ProvisioningState] = field(default_factory=lambda: [ProvisioningState.VALIDATING])

    def _transition(self, state: ProvisioningState) -> None:
        logger.debug("Provisioning %s: %s -> %s", self.identity_id or "-", self.state.value, state.value)
        self.state = state
        self.transitions.append(state)

    def run(self, new_user: NewUser) -> str:
        """Provision ``new_user`` and return the new identity id.

        Raises:
            InvalidInput: Required fields missing
            ProvisioningFailed: Identity or profile creation failed
        """
        try:
            new_user.validate()
        except InvalidInput:
            self._transition(ProvisioningState.FAILED)
            raise

        self._transition(ProvisioningState.CREATING_IDENTITY)
        email = login_email_for(new_user.company_code, self.email_domain)
        try:
            created = self.identity.create_identity(
                email,
                new_user.password,
                user_metadata={"company_code": new_user.company_code, "role": new_user.role},
            )
        except SupabaseError as exc:
            self._transition(ProvisioningState.FAILED)
            logger.warning("Identity creation rejected for %s: %s", email, exc)
            raise ProvisioningFailed(_cause(exc) or "Failed to create user")

        self.identity_id = (created.get("user") or created).get("id")
        if not self.identity_id:
            self._transition(ProvisioningState.FAILED)
            raise ProvisioningFailed("Failed to create user", details="Identity provider returned no id")

        self._transition(ProvisioningState.CREATING_PROFILE)
        profile = {
            "id": self.identity_id,
            "company_code": new_user.company_code,
            "role": new_user.role,
            "store_name": new_user.store_name if new_user.role == self.store_role else None,
            "group": new_user.group,
        }
        try:
            self.store.insert(PROFILES_TABLE, [profile])
        except SupabaseError as exc:
            logger.error("Profile insert failed for identity %s: %s", self.identity_id, exc)
            self._compensate(exc)
            raise ProvisioningFailed(_cause(exc) or "Failed to create profile")

        self._transition(ProvisioningState.COMMITTED)
        audit.safe_log_provisioning_event(
            "user_create",
            self.identity_id,
            operator=self.operator,
            details={"company_code": new_user.company_code, "role": new_user.role},
        )
        return self.identity_id

    def _compensate(self, cause: Exception) -> None:
        self._transition(ProvisioningState.DELETING_IDENTITY)
        compensated = True
        try:
            self.identity.delete_identity(self.identity_id)
        except SupabaseError as exc:
            compensated = False
            logger.error(
                "Compensation failed: identity %s has no profile and could not be deleted: %s",
                self.identity_id,
                exc,
            )
        audit.safe_log_provisioning_event(
            "user_create_compensated",
            self.identity_id,
            operator=self.operator,
            details={"cause": str(cause), "identity_deleted": compensated},
            success=False,
        )
        self._transition(ProvisioningState.FAILED)


def _cause(exc: SupabaseError) -> str:
    return getattr(exc, "message", None) or str(exc)


# ─────────────────────────────────────────────────────────────────────────────
# Service
# ─────────────────────────────────────────────────────────────────────────────

class ProvisioningService:
    """List, create, update and delete users (identity + profile pairs)."""

    def __init__(
        self,
        identity: IdentityService,
        store: TableService,
        *,
        email_domain: str = "example.com",
        admin_role: str = "admin",
        store_role: str = "store",
    ):
        self.identity = identity
        self.store = store
        self.email_domain = email_domain
        self.admin_role = admin_role
        self.store_role = store_role

    def _require_admin(self, caller: CallerContext) -> None:
        if not has_role(caller, self.admin_role):
            raise Forbidden("Insufficient permissions", details=f"Required role: {self.admin_role}")

    def list_users(self) -> list[dict]:
        try:
            return self.store.select(PROFILES_TABLE, PROFILE_COLUMNS)
        except SupabaseError as exc:
            logger.error("Failed to list profiles: %s", exc)
            raise Internal("Failed to fetch users", details=_cause(exc))

    def create_user(self, caller: CallerContext, new_user: NewUser) -> str:
        """Provision a user; returns the new identity id."""
        new_user.validate()
        self._require_admin(caller)
        workflow = UserProvisioning(
            self.identity,
            self.store,
            self.email_domain,
            store_role=self.store_role,
            operator=caller.user_id,
        )
        return workflow.run(new_user)

    def update_user(self, caller: CallerContext, user_id: str, patch: dict[str, Any]) -> dict:
        """Apply ``patch`` to the identity (credentials) and then the profile.

        Raises:
            Forbidden: Caller is not an admin
            NotFound: Target profile does not exist
            UpdateFailed: Identity or profile update failed
        """
        self._require_admin(caller)
        patch = {key: patch[key] for key in PATCHABLE_FIELDS if key in patch}
        for key in ("company_code", "role"):
            if key in patch and not patch[key]:
                raise InvalidInput(f"{key} must not be empty")

        existing = self._get_profile(user_id)

        credentials = {}
        if patch.get("company_code"):
            credentials["email"] = login_email_for(patch["company_code"], self.email_domain)
        if patch.get("password"):
            credentials["password"] = patch["password"]

        if credentials:
            try:
                self.identity.update_identity(user_id, credentials)
            except SupabaseError as exc:
                logger.error("Credential update failed for %s: %s", user_id, exc)
                raise UpdateFailed("Failed to update credentials", details=_cause(exc))

        effective_role = patch.get("role") or existing.get("role")
        values = {key: patch[key] for key in ("company_code", "role", "group") if key in patch}
        if effective_role == self.store_role:
            values["store_name"] = patch.get("store_name", existing.get("store_name"))
        else:
            values["store_name"] = None

        try:
            rows = self.store.update(PROFILES_TABLE, values, eq={"id": user_id})
        except SupabaseError as exc:
            logger.error("Profile update failed for %s: %s", user_id, exc)
            raise UpdateFailed("Failed to update profile", details=_cause(exc))

        audit.safe_log_provisioning_event(
            "user_update",
            user_id,
            operator=caller.user_id,
            details={"fields": sorted(values), "credentials": sorted(credentials)},
        )
        return rows[0] if rows else {**existing, **values}

    def delete_user(self, user_id: str, *, operator: str = "anonymous") -> None:
        """Delete the identity, then the profile.

        Raises:
            Forbidden: Target is a headquarters user
            NotFound: Target profile does not exist
            DeleteFailed: Identity or profile deletion failed
        """
        target = self._get_profile(user_id)

        if (target.get("role") or "").lower() == self.admin_role.lower():
            raise Forbidden("Headquarters users cannot be deleted")

        try:
            self.identity.delete_identity(user_id)
        except SupabaseError as exc:
            logger.error("Identity deletion failed for %s: %s", user_id, exc)
            raise DeleteFailed("Failed to delete user", details=_cause(exc))

        try:
            self.store.delete(PROFILES_TABLE, eq={"id": user_id})
        except SupabaseError as exc:
            logger.error("Identity %s deleted but its profile could not be: %s", user_id, exc)
            audit.safe_log_provisioning_event(
                "user_delete", user_id, operator=operator, details={"cause": _cause(exc)}, success=False
            )
            raise DeleteFailed("Failed to delete profile", details=_cause(exc))

        audit.safe_log_provisioning_event("user_delete", user_id, operator=operator)

    def _get_profile(self, user_id: str) -> dict:
        try:
            profile = load_profile(self.store, user_id)
        except SupabaseError as exc:
            logger.error("Profile lookup failed for %s: %s", user_id, exc)
            raise Internal("Failed to fetch user", details=_cause(exc))
        if not profile:
            raise NotFound("User not found")
        return profile
