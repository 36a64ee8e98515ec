"""JSON response envelope helpers."""
from __future__ import annotations
from typing import Any

from flask import Response, jsonify


def success_response(data: Any = None, status: int = 200, **extra: Any) -> tuple[Response, int]:
    """Build ``{"success": true, "data"?, ...extra}``."""
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    body.update({key: value for key, value in extra.items() if value is not None})
    return jsonify(body), status
