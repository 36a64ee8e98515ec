"""CORS configuration for the API routes.

Each blueprint declares the methods and request headers a route accepts with
``register_preflight``; ``init_cors`` hands the collected resources to
Flask-CORS, which adds the ``Access-Control-*`` headers to every response,
OPTIONS answers included.
"""
from __future__ import annotations
import re
from typing import Iterable

from flask import Response
from flask_cors import CORS

DEFAULT_ALLOW_HEADERS = ("Content-Type", "Authorization")

# Flask-CORS resource pattern -> per-resource options
CORS_RESOURCES: dict[str, dict] = {}


def _resource_pattern(rule: str) -> str:
    """Exact path for static rules, anchored regex for rules with variables."""
    if "<" not in rule:
        return rule
    return "^" + re.sub(r"<[^>]+>", "[^/]+", rule) + "$"


def register_preflight(bp, rule: str, methods: Iterable[str], headers: Iterable[str] = DEFAULT_ALLOW_HEADERS) -> None:
    """Answer OPTIONS on ``rule`` with an empty 204 and record its CORS allow-lists.

    Routes sharing the rule must be declared with
    ``provide_automatic_options=False`` so this view receives OPTIONS.
    """
    allowed = [method.upper() for method in methods]
    if "OPTIONS" not in allowed:
        allowed.append("OPTIONS")
    CORS_RESOURCES[_resource_pattern(rule)] = {"methods": allowed, "allow_headers": list(headers)}

    endpoint = "preflight_" + rule.strip("/").replace("/", "_").replace("<", "").replace(">", "").replace("-", "_")

    def preflight(**_kwargs):
        return Response(status=204)

    bp.add_url_rule(rule, endpoint=endpoint, view_func=preflight, methods=["OPTIONS"])


def init_cors(app, cfg) -> None:
    """Enable Flask-CORS for every registered route."""
    origin = cfg.cors_allow_origin or "*"
    CORS(
        app,
        resources={pattern: dict(options) for pattern, options in CORS_RESOURCES.items()},
        origins=origin,
        send_wildcard=origin == "*",
    )
