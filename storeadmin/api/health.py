"""Liveness and readiness checks."""
from flask import Blueprint, current_app

from storeadmin.api.helpers.backends import EXTENSION_KEY

bp = Blueprint("health", __name__)


@bp.route("/health")
def health_check():
    return ("ok", 200, {"Content-Type": "text/plain"})


@bp.route("/ready")
def readiness_check():
    """Ready once the identity provider and table store are bound to the app."""
    backends = current_app.extensions.get(EXTENSION_KEY) or {}
    if not backends.get("identity") or not backends.get("store"):
        return ("backends not configured", 503, {"Content-Type": "text/plain"})
    return ("ready", 200, {"Content-Type": "text/plain"})
