"""Request body helpers."""
from __future__ import annotations

from flask import request

from storeadmin.core.errors import InvalidInput


def json_body() -> dict:
    """Parsed JSON object body of the current request."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise InvalidInput("Request body must be a JSON object")
    return payload
