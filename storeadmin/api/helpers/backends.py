"""Access to the identity provider and table store bound to the app."""
from __future__ import annotations

from flask import current_app

from storeadmin.core.provisioning_service import ProvisioningService
from storeadmin.core.supabase import IdentityService, TableService

EXTENSION_KEY = "storeadmin"


def init_backends(app, identity: IdentityService, store: TableService) -> None:
    app.extensions[EXTENSION_KEY] = {"identity": identity, "store": store}


def get_identity() -> IdentityService:
    return current_app.extensions[EXTENSION_KEY]["identity"]


def get_store() -> TableService:
    return current_app.extensions[EXTENSION_KEY]["store"]


def get_provisioning_service() -> ProvisioningService:
    cfg = current_app.config["APP_CONFIG"]
    return ProvisioningService(
        get_identity(),
        get_store(),
        email_domain=cfg.login_email_domain,
        admin_role=cfg.admin_role,
        store_role=cfg.store_role,
    )
