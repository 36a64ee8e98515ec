"""User administration routes (identity + profile provisioning)."""
from __future__ import annotations

from flask import Blueprint

from storeadmin.api.decorators import require_caller, resolve_caller
from storeadmin.api.helpers.backends import get_provisioning_service
from storeadmin.api.helpers.cors import register_preflight
from storeadmin.api.helpers.payloads import json_body
from storeadmin.api.helpers.responses import success_response
from storeadmin.core.provisioning_service import NewUser

bp = Blueprint("users", __name__)


@bp.route("/users", methods=["GET"], provide_automatic_options=False)
def list_users():
    return success_response(get_provisioning_service().list_users())


@bp.route("/users", methods=["POST"], provide_automatic_options=False)
def create_user():
    """Provision a user; fields are validated before the caller is checked."""
    new_user = NewUser.from_payload(json_body())
    new_user.validate()
    caller = resolve_caller(admin=True)
    user_id = get_provisioning_service().create_user(caller, new_user)
    return success_response(message="User created", userId=user_id)


@bp.route("/users/<user_id>", methods=["PATCH"], provide_automatic_options=False)
@require_caller(admin=True)
def update_user(user_id: str, caller):
    profile = get_provisioning_service().update_user(caller, user_id, json_body())
    return success_response(profile)


@bp.route("/users/<user_id>", methods=["DELETE"], provide_automatic_options=False)
def delete_user(user_id: str):
    """Delete a user; headquarters users are always refused."""
    get_provisioning_service().delete_user(user_id)
    return success_response()


register_preflight(bp, "/users", ["GET", "POST"])
register_preflight(bp, "/users/<user_id>", ["PATCH", "DELETE"])
