"""Store menu routes (menu settings of a single store)."""
from flask import Blueprint

from storeadmin.api.decorators import require_caller
from storeadmin.api.helpers.backends import get_store
from storeadmin.api.helpers.cors import register_preflight
from storeadmin.api.helpers.payloads import json_body
from storeadmin.api.helpers.responses import success_response
from storeadmin.core import store_menu_service
from storeadmin.core.rbac import Scope

bp = Blueprint("menu_items", __name__)


@bp.route("/menu-items", methods=["GET"], provide_automatic_options=False)
@require_caller(scope=Scope.STORE)
def list_menu_items(caller):
    return success_response(store_menu_service.list_store_menu(get_store(), caller))


@bp.route("/menu-items", methods=["PUT"], provide_automatic_options=False)
@require_caller(scope=Scope.STORE)
def update_menu_item(caller):
    """Update status/price; the echoed ``isActive`` is the stored status."""
    payload = json_body()
    stored_status = store_menu_service.update_store_menu_item(get_store(), caller, payload.get("name"), payload)
    return success_response(isActive=stored_status)


register_preflight(bp, "/menu-items", ["GET", "PUT"])
