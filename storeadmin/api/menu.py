"""Headquarters catalog routes (available menu)."""
from flask import Blueprint

from storeadmin.api.helpers.backends import get_store
from storeadmin.api.helpers.cors import register_preflight
from storeadmin.api.helpers.payloads import json_body
from storeadmin.api.helpers.responses import success_response
from storeadmin.core import catalog_service

bp = Blueprint("menu", __name__)


@bp.route("/menu", methods=["GET"], provide_automatic_options=False)
def list_menu():
    return success_response(catalog_service.list_menu(get_store()))


@bp.route("/menu", methods=["PUT"], provide_automatic_options=False)
def update_menu():
    """Partially update a catalog item identified by ``name``."""
    payload = json_body()
    updated_count = catalog_service.update_menu_item(get_store(), payload.get("name"), payload)
    return success_response(updatedCount=updated_count)


register_preflight(bp, "/menu", ["GET", "PUT"])
