"""Authentication routes."""
from __future__ import annotations

from flask import Blueprint, session

from storeadmin.api.decorators import SESSION_TOKEN_KEY
from storeadmin.api.helpers.backends import get_identity, get_store
from storeadmin.api.helpers.cors import register_preflight
from storeadmin.api.helpers.payloads import json_body
from storeadmin.api.helpers.responses import success_response
from storeadmin.core import session_service

bp = Blueprint("auth", __name__)


@bp.route("/login", methods=["POST"], provide_automatic_options=False)
def login():
    """Exchange ``{email, password}`` for ``{companyCode, token}``."""
    payload = json_body()
    result = session_service.login(get_identity(), get_store(), payload.get("email"), payload.get("password"))

    # Keep the token server-side so cookie-authenticated calls resolve the caller
    session[SESSION_TOKEN_KEY] = {"access_token": result["token"]}

    return success_response(**result)


register_preflight(bp, "/login", ["POST"], headers=["Content-Type"])
